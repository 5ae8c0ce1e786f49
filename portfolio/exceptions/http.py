"""
HTTP exceptions raised directly by routers.

Services and repositories raise domain errors instead; these are only for
responses that have no domain meaning, such as a missing download.
"""

from typing import Self

from fastapi import HTTPException, status


class CustomHTTPException(HTTPException):
    """HTTP exception whose detail can be specialised per raise site."""

    def with_context(self, detail: str) -> Self:
        """Return a copy of this exception carrying ``detail``.

        The module-level instances below are shared, so they are never
        mutated in place.
        """
        return type(self)(status_code=self.status_code, detail=detail, headers=self.headers)


NOT_FOUND = CustomHTTPException(
    status_code=status.HTTP_404_NOT_FOUND,
    detail="The requested resource was not found",
)
