"""
Store and service providers.

Everything is built from the injected clients so tests can swap the
MongoDB/Redis clients through ``app.dependency_overrides``.
"""
from typing import Annotated

from fastapi import Depends, Request
from motor.motor_asyncio import AsyncIOMotorClient
from redis.asyncio import Redis

from studyws.config import Settings, get_settings
from studyws.core.rate_limit import RateLimiter, get_client_ip
from studyws.database.connections import get_mongo_client, get_redis_client
from studyws.database.databases import auth_db
from studyws.schemas.auth import ClientInfo
from studyws.services.auth_service import AuthService
from studyws.services.user_store import UserStore


async def get_auth_service(
    request: Request,
    client: Annotated[AsyncIOMotorClient, Depends(get_mongo_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> AuthService:
    """Dependency to get AuthService instance, in the transaction mode chosen at startup."""
    return AuthService(
        client,
        settings,
        use_transactions=getattr(request.app.state, "mongo_transactions", None),
    )


async def get_user_store(
    client: Annotated[AsyncIOMotorClient, Depends(get_mongo_client)],
) -> UserStore:
    """Dependency to get UserStore instance."""
    return UserStore(client[auth_db.DB_NAME])


async def get_rate_limiter(
    redis: Annotated[Redis, Depends(get_redis_client)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> RateLimiter:
    """Dependency to get RateLimiter instance."""
    return RateLimiter(
        redis,
        settings.rate_limits,
        retention_seconds=settings.rate_limit_retention_seconds,
    )


def get_client_info(request: Request) -> ClientInfo:
    """Client address and user-agent of the current request."""
    return ClientInfo(
        ip=get_client_ip(
            request.headers.get("X-Forwarded-For"),
            request.client.host if request.client else None,
        ),
        user_agent=request.headers.get("User-Agent", ""),
    )
