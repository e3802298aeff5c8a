"""
Authentication request/response schemas.

Request models only enforce presence and type; content rules (email
syntax, password length, non-blank names) are applied by AuthService so
every caller gets them.
"""
from typing import Any, Optional

from pydantic import BaseModel, Field

from studyws.schemas.user import AuthContext, SessionInfo, UserProfile


class RegisterRequest(BaseModel):
    """Registration request body."""
    email: str = Field(..., description="User email address")
    password: str = Field(..., description="User password (min 8 characters)")
    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")


class LoginRequest(BaseModel):
    """Login request body."""
    email: str = Field(..., description="User email address")
    password: str = Field(..., description="User password")


class RefreshRequest(BaseModel):
    """Token refresh request body."""
    refresh_token: str = Field(..., description="Refresh token from login, register or a previous refresh")


class ClientInfo(BaseModel):
    """Client metadata recorded on sessions for audit."""
    ip: str = Field(default="", description="Resolved client address")
    user_agent: str = Field(default="", description="User-Agent header")


class AuthTokens(BaseModel):
    """Token pair plus the session that tracks the refresh token."""
    access_token: str = Field(..., description="Access token for the Authorization header")
    refresh_token: str = Field(..., description="Single-use refresh token")
    token_type: str = Field(default="Bearer", description="Token type")
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    session_id: int = Field(..., description="Server-side session ID")


class AuthSessionData(AuthTokens):
    """Register/login payload: tokens and the user they belong to."""
    user: UserProfile = Field(..., description="Authenticated user")


class AuthResponse(BaseModel):
    """Envelope for register and login."""
    success: bool = True
    data: AuthSessionData


class TokenRefreshResponse(BaseModel):
    """Envelope for refresh."""
    success: bool = True
    data: AuthTokens


class MessageResponse(BaseModel):
    """Envelope carrying only a message."""
    success: bool = True
    message: str


class CurrentUserData(BaseModel):
    user: AuthContext


class CurrentUserResponse(BaseModel):
    """Envelope for the current user."""
    success: bool = True
    data: CurrentUserData


class SessionListData(BaseModel):
    sessions: list[SessionInfo]


class SessionListResponse(BaseModel):
    """Envelope for the caller's active sessions."""
    success: bool = True
    data: SessionListData


class ErrorResponse(BaseModel):
    """Uniform error envelope."""
    success: bool = False
    error: str = Field(..., description="Caller-safe error message")
    details: Optional[Any] = Field(None, description="Field errors for malformed requests")
