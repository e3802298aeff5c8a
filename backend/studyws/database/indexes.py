"""
Index creation, run once on application startup.
"""
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from studyws.database.databases import auth_db


async def create_indexes(db: AsyncIOMotorDatabase) -> None:
    """Create necessary indexes for auth_db."""

    users = db[auth_db.Collections.USERS]
    await users.create_index("email", unique=True)

    sessions = db[auth_db.Collections.SESSIONS]
    await sessions.create_index(
        [("user_id", ASCENDING), ("refresh_token_hash", ASCENDING)],
        unique=True,
    )
    await sessions.create_index([("user_id", ASCENDING), ("created_at", DESCENDING)])
    await sessions.create_index("expires_at")
