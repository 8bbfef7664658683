"""
Domain exceptions raised by the service layer.

Routes let these propagate; the exception handlers registered in `main.py`
render each one as a single JSON error body with the matching status code.
Authorization failures are raised as `NotFoundError` so callers
cannot probe for resources they do not own.
"""

from typing import Dict, List, Optional


class SecondBrainError(Exception):
    """Base class for all expected, user-facing failures."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(SecondBrainError):
    """Missing or malformed input, carrying a per-field error list."""

    status_code = 400

    def __init__(self, message: str = "Validation failed", errors: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.errors = errors or []

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(errors=[{"field": field, "message": message}])


class AuthenticationError(SecondBrainError):
    """Missing, invalid or expired credential."""

    status_code = 401


class NotFoundError(SecondBrainError):
    """No matching resource within the caller's scope."""

    status_code = 404


class ConflictError(SecondBrainError):
    """Duplicate username, e-mail or share token."""

    status_code = 409


class UpstreamError(SecondBrainError):
    """An outbound call (page fetch, Google token check) failed."""

    status_code = 502
