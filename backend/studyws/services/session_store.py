"""
Refresh-token session store over MongoDB auth_db.sessions.

A session is *active* iff ``revoked_at`` is unset and ``expires_at`` lies in
the future. Business logic only ever revokes; documents are deleted by the
expiry sweep alone.
"""
import secrets
from datetime import datetime
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClientSession, AsyncIOMotorDatabase
from pymongo import DESCENDING

from studyws.core.clock import utcnow
from studyws.database.databases import auth_db
from studyws.database.sequences import next_sequence
from studyws.models.session import Session


def _active_filter(now: datetime) -> dict:
    return {"revoked_at": None, "expires_at": {"$gt": now}}


class SessionStore:
    """Durable record of issued refresh sessions."""

    def __init__(self, db: AsyncIOMotorDatabase):
        """Initialize with auth database."""
        self.db = db
        self.sessions_collection = db[auth_db.Collections.SESSIONS]

    async def create(
        self,
        user_id: int,
        refresh_token_hash: str,
        expires_at: datetime,
        user_agent: str = "",
        ip: str = "",
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> int:
        """
        Persist a new session for a freshly issued refresh token.

        Args:
            user_id: Owning user
            refresh_token_hash: SHA-256 hex of the refresh token
            expires_at: Naive UTC expiry, matching the token's exp
            user_agent: Client user-agent for audit
            ip: Client address for audit
            session: Driver session when running inside a transaction

        Returns:
            The new session ID
        """
        doc = Session(
            id=await next_sequence(self.db, auth_db.Sequences.SESSIONS),
            user_id=user_id,
            refresh_token_hash=refresh_token_hash,
            created_at=utcnow(),
            expires_at=expires_at,
            user_agent=user_agent,
            ip=ip,
        )
        await self.sessions_collection.insert_one(doc.model_dump(by_alias=True), session=session)
        return doc.id

    async def find_active_by_hash(
        self,
        user_id: int,
        refresh_token_hash: str,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Optional[Session]:
        """Return the active session for this user and token hash, or None."""
        doc = await self.sessions_collection.find_one(
            {
                "user_id": user_id,
                "refresh_token_hash": refresh_token_hash,
                **_active_filter(utcnow()),
            },
            session=session,
        )
        if not doc:
            return None
        return Session(**doc)

    async def list_active_for_user(
        self,
        user_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> list[Session]:
        """Active sessions of a user, newest first."""
        cursor = self.sessions_collection.find(
            {"user_id": user_id, **_active_filter(utcnow())},
            session=session,
        ).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
        docs = await cursor.to_list(length=None)
        return [Session(**doc) for doc in docs]

    async def revoke(
        self,
        session_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> Optional[str]:
        """
        Revoke one session if it is not revoked yet.

        Returns:
            The revocation stamp written by this call, to hand to
            ``reinstate``; None if the session was already revoked (or does
            not exist)
        """
        revocation_id = secrets.token_hex(8)
        result = await self.sessions_collection.update_one(
            {"_id": session_id, "revoked_at": None},
            {"$set": {"revoked_at": utcnow(), "revocation_id": revocation_id}},
            session=session,
        )
        if result.modified_count != 1:
            return None
        return revocation_id

    async def reinstate(
        self,
        session_id: int,
        revocation_id: str,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> bool:
        """
        Undo a revocation made by ``revoke``. Only used to compensate a
        failed rotation.

        Does nothing once the session has been revoked again since (a logout
        re-stamps every session), so a rollback never resurrects a session
        that a later revocation covered.

        Returns:
            True if the session was reinstated
        """
        result = await self.sessions_collection.update_one(
            {"_id": session_id, "revocation_id": revocation_id},
            {"$set": {"revoked_at": None, "revocation_id": None}},
            session=session,
        )
        return result.modified_count == 1

    async def revoke_all_for_user(
        self,
        user_id: int,
        session: Optional[AsyncIOMotorClientSession] = None,
    ) -> int:
        """
        Revoke every unexpired session of a user.

        Sessions already revoked get a fresh stamp as well, so a rotation
        still in flight cannot roll its revocation back afterwards.

        Returns:
            Number of active sessions revoked by this call
        """
        now = utcnow()
        revocation_id = secrets.token_hex(8)
        result = await self.sessions_collection.update_many(
            {"user_id": user_id, **_active_filter(now)},
            {"$set": {"revoked_at": now, "revocation_id": revocation_id}},
            session=session,
        )
        await self.sessions_collection.update_many(
            {
                "user_id": user_id,
                "revoked_at": {"$ne": None},
                "revocation_id": {"$ne": revocation_id},
                "expires_at": {"$gt": now},
            },
            {"$set": {"revocation_id": revocation_id}},
            session=session,
        )
        return result.modified_count

    async def purge_expired(self) -> int:
        """
        Delete sessions whose expiry has passed, revoked or not.

        Returns:
            Number of deleted sessions
        """
        result = await self.sessions_collection.delete_many({"expires_at": {"$lte": utcnow()}})
        return result.deleted_count
