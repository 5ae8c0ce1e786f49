"""
Base models shared across the portfolio backend.
"""

from pydantic import BaseModel


class ActionResult(BaseModel):
    """Uniform result of every server-side action.

    Failures carry a short human-readable ``error``; internal detail is
    kept in the server log.
    """

    success: bool
    error: str | None = None

    @classmethod
    def ok(cls) -> "ActionResult":
        return cls(success=True)

    @classmethod
    def fail(cls, error: str) -> "ActionResult":
        return cls(success=False, error=error)
