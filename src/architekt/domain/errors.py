"""Domain errors raised on the write path.

Each error carries an HTTP status affinity for the transport layer. The
engine itself never inspects ``status_code``; it only raises.

INVARIANT: Read-path sanitization never raises. Only caller-supplied
mutation input can produce these errors.
"""

from __future__ import annotations

from typing import Any


class ArchitektError(Exception):
    """Base class for errors surfaced to callers of the service layer."""

    code: str = "ERROR"
    status_code: int = 500

    def __init__(self, message: str, *, detail: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.detail = detail or {}

    def to_dict(self) -> dict[str, Any]:
        """Structured payload for an outer (HTTP) layer."""
        payload: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.detail:
            payload["detail"] = self.detail
        return payload


class NotFoundError(ArchitektError):
    """A referenced entity does not exist at the expected scope."""

    code = "NOT_FOUND"
    status_code = 404


class BadRequestError(ArchitektError):
    """Caller input violates a structural or referential-integrity rule."""

    code = "BAD_REQUEST"
    status_code = 400
