"""
User store over MongoDB auth_db.users.
"""
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo.errors import DuplicateKeyError

from studyws.core.clock import utcnow
from studyws.core.errors import ConflictError
from studyws.database.databases import auth_db
from studyws.database.sequences import next_sequence
from studyws.models.user import User

EMAIL_TAKEN = "Email already registered"


class UserStore:
    """Read/write access to user documents."""

    def __init__(self, db: AsyncIOMotorDatabase):
        """Initialize with auth database."""
        self.db = db
        self.users_collection = db[auth_db.Collections.USERS]

    async def create(
        self,
        email: str,
        hashed_password: str,
        first_name: str,
        last_name: str,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> User:
        """
        Insert a new user.

        Raises:
            ConflictError: If the email is already registered
        """
        existing = await self.users_collection.find_one({"email": email}, session=session)
        if existing:
            raise ConflictError(EMAIL_TAKEN)

        now = utcnow()
        user = User(
            id=await next_sequence(self.db, auth_db.Sequences.USERS),
            email=email,
            hashed_password=hashed_password,
            first_name=first_name,
            last_name=last_name,
            registration_date=now,
            last_access=now,
        )
        try:
            await self.users_collection.insert_one(
                user.model_dump(by_alias=True),
                session=session,
            )
        except DuplicateKeyError:
            # Lost a race with a concurrent registration of the same email
            raise ConflictError(EMAIL_TAKEN)
        return user

    async def get_by_id(
        self,
        user_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Optional[User]:
        """Get user by ID, or None."""
        user_doc = await self.users_collection.find_one({"_id": user_id}, session=session)
        if not user_doc:
            return None
        return User(**user_doc)

    async def get_by_email(
        self,
        email: str,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Optional[User]:
        """Get user by (normalised) email, or None."""
        user_doc = await self.users_collection.find_one({"email": email}, session=session)
        if not user_doc:
            return None
        return User(**user_doc)

    async def touch_last_access(
        self,
        user_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> None:
        """Record a successful login."""
        await self.users_collection.update_one(
            {"_id": user_id},
            {"$set": {"last_access": utcnow()}},
            session=session,
        )

    async def delete(
        self,
        user_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> None:
        """Remove a user. Only used to undo a registration that failed halfway."""
        await self.users_collection.delete_one({"_id": user_id}, session=session)
