"""
Refresh-token session model for authentication database.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from studyws.core.clock import utcnow


class Session(BaseModel):
    """
    Session document model for MongoDB auth_db.sessions collection.

    One document per issued refresh token. Only the SHA-256 of the token is
    stored.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., alias="_id", description="Numeric session identifier")
    user_id: int = Field(..., description="Owning user")
    refresh_token_hash: str = Field(..., description="SHA-256 hex of the refresh token")
    created_at: datetime = Field(default_factory=utcnow)
    expires_at: datetime = Field(..., description="Refresh token expiry (UTC)")
    revoked_at: Optional[datetime] = Field(None, description="Revocation time, None while usable")
    revocation_id: Optional[str] = Field(
        None,
        description="Stamp of the latest revocation; a rollback only undoes its own stamp",
    )
    user_agent: str = Field(default="", description="Client user-agent for audit")
    ip: str = Field(default="", description="Client address for audit")
