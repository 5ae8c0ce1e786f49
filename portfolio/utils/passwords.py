"""
Password hashing helpers (bcrypt).
"""

import bcrypt

BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    """Return a bcrypt hash of ``password``."""
    hashed: bytes = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=BCRYPT_ROUNDS))
    return hashed.decode()


def check_password(password: str, hashed_password: str | None) -> bool:
    """Compare ``password`` with a stored hash.

    A missing or malformed hash never matches.
    """
    if not hashed_password:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False
