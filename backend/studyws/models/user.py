"""
User model for authentication database.
"""
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from studyws.core.clock import utcnow


class User(BaseModel):
    """
    User document model for MongoDB auth_db.users collection.
    """
    model_config = ConfigDict(populate_by_name=True)

    id: int = Field(..., alias="_id", description="Numeric user identifier")
    email: str = Field(..., description="Unique email address (lower-cased)")
    hashed_password: str = Field(..., description="Bcrypt hashed password")
    first_name: str = Field(..., description="Given name")
    last_name: str = Field(..., description="Family name")
    registration_date: datetime = Field(
        default_factory=utcnow,
        description="Account creation timestamp (UTC)"
    )
    last_access: datetime = Field(
        default_factory=utcnow,
        description="Last successful login (UTC)"
    )
