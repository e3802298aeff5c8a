"""
Core module - Credentials, tokens, rate limiting and the error taxonomy.
"""
from studyws.core.errors import (
    AuthError,
    AuthServiceError,
    ConflictError,
    ErrorKind,
    InternalError,
    RateLimitedError,
    ValidationError,
)
from studyws.core.rate_limit import RateLimitDecision, RateLimiter, get_client_ip
from studyws.core.security import hash_password, hash_refresh_token, verify_password
from studyws.core.tokens import (
    TokenClaims,
    TokenType,
    issue_access_token,
    issue_refresh_token,
    verify_token,
)

__all__ = [
    "AuthError",
    "AuthServiceError",
    "ConflictError",
    "ErrorKind",
    "InternalError",
    "RateLimitedError",
    "ValidationError",
    "RateLimitDecision",
    "RateLimiter",
    "get_client_ip",
    "hash_password",
    "hash_refresh_token",
    "verify_password",
    "TokenClaims",
    "TokenType",
    "issue_access_token",
    "issue_refresh_token",
    "verify_token",
]
