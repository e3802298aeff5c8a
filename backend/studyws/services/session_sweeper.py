#!/usr/bin/env python3
"""
Expired Session Sweeper

Deletes refresh sessions whose expiry has passed. Purely storage hygiene:
expired sessions are already unusable, so a missed or failed sweep never
affects correctness.

Runs inside the API process (started from the app lifespan) or standalone:

    python -m studyws.services.session_sweeper

Environment Variables:
    MONGO_URI: MongoDB connection string
    SESSION_PURGE_INTERVAL_SECONDS: Seconds between sweeps (default: 3600)
    LOG_LEVEL: Logging level (default: INFO)
"""
import asyncio
import logging
import signal

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.errors import PyMongoError

from studyws.config import get_settings
from studyws.core.log import configure_logging
from studyws.database.connections import close_connections, get_database
from studyws.services.session_store import SessionStore

logger = logging.getLogger(__name__)


class SessionSweeper:
    """Periodic purge of expired sessions."""

    def __init__(self, db: AsyncIOMotorDatabase, interval_seconds: int):
        self.store = SessionStore(db)
        self.interval_seconds = interval_seconds
        self.running = False

    async def sweep_once(self) -> int:
        """Run a single purge; store errors are logged, not raised."""
        try:
            deleted = await self.store.purge_expired()
        except PyMongoError as e:
            logger.error(f"Session sweep failed: {e}")
            return 0

        if deleted:
            logger.info(f"Purged {deleted} expired session(s)")
        return deleted

    async def run(self) -> None:
        """Sweep, then sleep, until stopped or cancelled."""
        self.running = True
        logger.info(f"Session sweeper started (every {self.interval_seconds}s)")

        while self.running:
            try:
                await self.sweep_once()
                await asyncio.sleep(self.interval_seconds)
            except asyncio.CancelledError:
                logger.info("Session sweeper cancelled")
                break

    def stop(self) -> None:
        """Stop the loop after the current iteration."""
        logger.info("Stopping session sweeper...")
        self.running = False


async def main() -> None:
    """Standalone entry point."""
    settings = get_settings()
    configure_logging(settings.log_level)

    sweeper = SessionSweeper(await get_database(), settings.session_purge_interval_seconds or 3600)
    task = asyncio.create_task(sweeper.run())

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, task.cancel)

    try:
        await task
    finally:
        await close_connections()
        logger.info("Session sweeper shutdown complete")


if __name__ == "__main__":
    asyncio.run(main())
