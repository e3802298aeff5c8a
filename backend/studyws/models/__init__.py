"""
Pydantic models for database documents.
"""
from studyws.models.session import Session
from studyws.models.user import User

__all__ = [
    "Session",
    "User",
]
