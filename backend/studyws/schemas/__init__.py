"""
Request and response schemas for API endpoints.
"""
from studyws.schemas.auth import (
    AuthResponse,
    AuthSessionData,
    AuthTokens,
    ClientInfo,
    CurrentUserResponse,
    ErrorResponse,
    LoginRequest,
    MessageResponse,
    RefreshRequest,
    RegisterRequest,
    SessionListResponse,
    TokenRefreshResponse,
)
from studyws.schemas.user import AuthContext, SessionInfo, UserProfile

__all__ = [
    # Auth
    "AuthResponse",
    "AuthSessionData",
    "AuthTokens",
    "ClientInfo",
    "CurrentUserResponse",
    "ErrorResponse",
    "LoginRequest",
    "MessageResponse",
    "RefreshRequest",
    "RegisterRequest",
    "SessionListResponse",
    "TokenRefreshResponse",
    # User
    "AuthContext",
    "SessionInfo",
    "UserProfile",
]
