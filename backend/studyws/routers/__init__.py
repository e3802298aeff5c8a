"""
API Routers module.
"""
from studyws.routers import auth, health

__all__ = ["auth", "health"]
