"""
StudyWS Auth - FastAPI Application

Authentication and session-lifecycle service: registration, login,
refresh-token rotation, logout and brute-force rate limiting.
"""
import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyws.config import get_settings
from studyws.core.log import configure_logging
from studyws.database.connections import close_connections, get_database
from studyws.database.indexes import create_indexes
from studyws.database.transactions import resolve_transaction_mode
from studyws.errors import register_exception_handlers
from studyws.routers import auth, health
from studyws.services.session_sweeper import SessionSweeper

# Fails fast when JWT_SECRET_KEY is missing
settings = get_settings()
configure_logging(settings.log_level)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup:
    - Create indexes
    - Decide whether auth flows run in transactions
    - Start the expired-session sweeper

    Shutdown:
    - Stop the sweeper
    - Close all database connections
    """
    logger.info("Starting up StudyWS Auth...")

    app.state.mongo_transactions = bool(settings.mongo_transactions)
    sweeper_task = None
    try:
        db = await get_database()
        await create_indexes(db)
        logger.info("Indexes created")
        app.state.mongo_transactions = await resolve_transaction_mode(
            db.client, settings.mongo_transactions
        )
        if settings.session_purge_interval_seconds > 0:
            sweeper = SessionSweeper(db, settings.session_purge_interval_seconds)
            sweeper_task = asyncio.create_task(sweeper.run())
    except Exception as e:
        logger.warning(f"Database initialization warning: {e}")

    yield

    logger.info("Shutting down StudyWS Auth...")
    if sweeper_task is not None:
        sweeper_task.cancel()
        await asyncio.gather(sweeper_task, return_exceptions=True)
    await close_connections()
    logger.info("Database connections closed")


# Create FastAPI application
app = FastAPI(
    title="StudyWS Auth API",
    description="""
## StudyWS Authentication API

### Flow
1. `POST /auth/register` or `POST /auth/login` returns an access token,
   a refresh token and a session id.
2. Call protected endpoints with `Authorization: Bearer <access_token>`.
3. When the access token expires, `POST /auth/refresh` with the refresh
   token. The old refresh token is consumed; store the new pair.
4. `POST /auth/logout` revokes every refresh session of the user.

Login, register and refresh are rate limited per client address.
    """,
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# Include routers
app.include_router(health.router)
app.include_router(auth.router)


@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": "StudyWS Auth API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
