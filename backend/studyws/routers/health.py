"""
Health router: liveness for uptime checks, readiness for load balancers.
"""
from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse
from pymongo.errors import PyMongoError
from redis.exceptions import RedisError

from studyws.database.connections import get_mongo_client, get_redis_client

SERVICE_NAME = "studyws-auth"

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    status_code=status.HTTP_200_OK,
    summary="Liveness check",
)
async def health_check():
    """Answers as long as the process serves requests; touches no store."""
    return {"service": SERVICE_NAME, "status": "ok"}


async def _ping_mongodb() -> str:
    try:
        client = await get_mongo_client()
        await client.admin.command("ping")
    except PyMongoError as e:
        return f"error: {e}"
    return "ok"


async def _ping_redis() -> str:
    try:
        redis = await get_redis_client()
        await redis.ping()
    except (RedisError, OSError) as e:
        return f"error: {e}"
    return "ok"


@router.get(
    "/health/ready",
    summary="Readiness check",
    responses={status.HTTP_503_SERVICE_UNAVAILABLE: {"description": "MongoDB unreachable"}},
)
async def readiness_check(request: Request):
    """
    Report whether the service can take traffic.

    MongoDB backs every auth flow, so without it the service is
    ``unavailable`` (503). Redis only backs rate limiting, which fails open,
    so losing it leaves the service ``degraded`` but ready.
    """
    checks = {
        "mongodb": await _ping_mongodb(),
        "redis": await _ping_redis(),
    }

    if checks["mongodb"] != "ok":
        overall, code = "unavailable", status.HTTP_503_SERVICE_UNAVAILABLE
    elif checks["redis"] != "ok":
        overall, code = "degraded", status.HTTP_200_OK
    else:
        overall, code = "ok", status.HTTP_200_OK

    return JSONResponse(
        status_code=code,
        content={
            "service": SERVICE_NAME,
            "status": overall,
            "checks": checks,
            "transactions": bool(getattr(request.app.state, "mongo_transactions", False)),
        },
    )
