"""
Service layer for business logic.
"""
from studyws.services.auth_service import AuthService
from studyws.services.session_store import SessionStore
from studyws.services.session_sweeper import SessionSweeper
from studyws.services.user_store import UserStore

__all__ = [
    "AuthService",
    "SessionStore",
    "SessionSweeper",
    "UserStore",
]
