"""
Database definitions and collection constants.
"""
from studyws.database.databases import auth_db

__all__ = ["auth_db"]
