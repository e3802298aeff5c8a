"""
User and session response schemas (no secrets).
"""
from datetime import datetime

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """Public profile returned by register and login."""
    id: int = Field(..., description="User ID")
    email: str = Field(..., description="User email")
    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")


class AuthContext(UserProfile):
    """
    Identity of the caller, resolved from a verified access token.

    Produced per request by the authentication dependency and handed to the
    route; never stored anywhere else.
    """
    registration_date: datetime = Field(..., description="Account creation timestamp")
    last_access: datetime = Field(..., description="Last successful login")


class SessionInfo(BaseModel):
    """Active refresh session as shown to its owner."""
    id: int = Field(..., description="Session ID")
    created_at: datetime = Field(..., description="When the session was opened")
    expires_at: datetime = Field(..., description="When its refresh token expires")
    user_agent: str = Field(default="", description="Client user-agent")
    ip: str = Field(default="", description="Client address")
