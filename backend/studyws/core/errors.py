"""
Error taxonomy for the authentication core.

Errors describe *what* went wrong via an ErrorKind; the HTTP boundary
decides which status code that becomes. Messages are safe to show to
callers, so credential and token failures stay deliberately vague.
"""
from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Categories of failure surfaced by the auth core."""
    VALIDATION = "validation"
    CONFLICT = "conflict"
    AUTH = "auth"
    RATE_LIMITED = "rate_limited"
    INTERNAL = "internal"


class AuthServiceError(Exception):
    """Base class for every error the auth core raises on purpose."""

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message: str = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Any] = None,
    ):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class ValidationError(AuthServiceError):
    """Malformed or incomplete input."""
    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"


class ConflictError(AuthServiceError):
    """A unique resource already exists (duplicate email)."""
    kind = ErrorKind.CONFLICT
    default_message = "Resource already exists"


class AuthError(AuthServiceError):
    """Bad credentials or a bad, expired, revoked or mistyped token."""
    kind = ErrorKind.AUTH
    default_message = "Unauthorized"


class RateLimitedError(AuthServiceError):
    """Too many requests inside the endpoint's window."""
    kind = ErrorKind.RATE_LIMITED
    default_message = "Too many requests. Please try again later."

    def __init__(self, message: Optional[str] = None, *, retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after


class InternalError(AuthServiceError):
    """Store unavailable or any other unexpected fault."""
    kind = ErrorKind.INTERNAL
