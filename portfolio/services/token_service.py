"""
Session token issuing and verification.

Tokens are HS256 JWTs with a fixed issuer, audience and lifetime. Every
verification failure is reported as the same :class:`InvalidTokenError`;
callers treat all of them as "not authenticated".
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from authlib.jose import JoseError, JsonWebToken
from pydantic import BaseModel

from portfolio.exceptions import ConfigurationError, InvalidTokenError
from portfolio.settings import Settings
from portfolio.utils.common import utc_now
from portfolio.utils.logger import logger

MIN_SECRET_LENGTH = 32
DEV_SECRET_KEY = "insecure-development-secret-key-change-me-before-deploying"

type Clock = Callable[[], datetime]


class TokenPayload(BaseModel):
    """Decoded claims of a valid session token."""

    sub: str
    username: str
    issued_at: datetime
    expires_at: datetime


class TokenService:
    """Issues and verifies signed, time-limited admin session tokens."""

    def __init__(
        self,
        secret_key: str,
        *,
        issuer: str,
        audience: str,
        lifetime: timedelta = timedelta(hours=2),
        algorithm: str = "HS256",
        clock: Clock = utc_now,
    ) -> None:
        self._secret_key = secret_key
        self.issuer = issuer
        self.audience = audience
        self.lifetime = lifetime
        self.algorithm = algorithm
        self._clock = clock
        # Only the configured algorithm is accepted on decode
        self._jwt = JsonWebToken([algorithm])
        self._claims_options = {
            "iss": {"essential": True, "value": issuer},
            "aud": {"essential": True, "value": audience},
            "sub": {"essential": True},
            "iat": {"essential": True},
            "exp": {"essential": True},
            "username": {"essential": True},
        }

    def issue(self, subject: str | int, username: str) -> str:
        """Create a signed token for ``subject``.

        Args:
            subject: Admin user id, stored as the ``sub`` claim
            username: Admin username, stored as a custom claim

        Returns:
            Compact JWT string
        """
        issued_at = int(self._clock().timestamp())
        payload = {
            "sub": str(subject),
            "username": username,
            "iss": self.issuer,
            "aud": self.audience,
            "iat": issued_at,
            "exp": issued_at + int(self.lifetime.total_seconds()),
        }
        token: bytes = self._jwt.encode({"alg": self.algorithm}, payload, self._secret_key)
        return token.decode()

    def verify(self, token: str | None) -> TokenPayload:
        """Check signature, issuer, audience and validity window of ``token``.

        Raises:
            InvalidTokenError: For any token that is not currently valid
        """
        if not token:
            raise InvalidTokenError()

        now = int(self._clock().timestamp())
        try:
            claims = self._jwt.decode(token, self._secret_key, claims_options=self._claims_options)
            claims.validate(now=now, leeway=0)
        except (JoseError, ValueError, TypeError) as e:
            logger.debug(f"Session token rejected: {type(e).__name__}")
            raise InvalidTokenError() from e

        issued_at, expires_at = claims["iat"], claims["exp"]
        # Validity window is [iat, exp)
        if not issued_at <= now < expires_at:
            logger.debug("Session token outside its validity window")
            raise InvalidTokenError()

        return TokenPayload(
            sub=str(claims["sub"]),
            username=str(claims["username"]),
            issued_at=datetime.fromtimestamp(issued_at, UTC),
            expires_at=datetime.fromtimestamp(expires_at, UTC),
        )


def resolve_secret_key(settings: Settings) -> str:
    """Pick the signing secret, enforcing the production policy.

    Outside debug mode the secret must be set and at least
    ``MIN_SECRET_LENGTH`` characters long.

    Raises:
        ConfigurationError: If the secret is unusable in production
    """
    secret = settings.jwt_secret_key
    if not secret:
        if not settings.debug:
            raise ConfigurationError(
                "PORTFOLIO_JWT_SECRET_KEY is not set; it is required outside debug mode"
            )
        logger.warning(
            "PORTFOLIO_JWT_SECRET_KEY is not set, using a development-only secret. "
            "Never run like this in production."
        )
        return DEV_SECRET_KEY

    if len(secret) < MIN_SECRET_LENGTH:
        if not settings.debug:
            raise ConfigurationError(
                f"PORTFOLIO_JWT_SECRET_KEY must be at least {MIN_SECRET_LENGTH} characters long"
            )
        logger.warning(
            f"PORTFOLIO_JWT_SECRET_KEY is shorter than {MIN_SECRET_LENGTH} characters"
        )
    return secret


def build_token_service(settings: Settings, clock: Clock = utc_now) -> TokenService:
    """Create a :class:`TokenService` from settings."""
    return TokenService(
        resolve_secret_key(settings),
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        lifetime=timedelta(hours=settings.session_expire_hours),
        algorithm=settings.jwt_algorithm,
        clock=clock,
    )
