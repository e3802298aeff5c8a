"""
Rate limiting for the auth routes, applied before anything else runs.

FastAPI decodes a JSON body before it resolves any dependency, so a plain
``Depends`` limiter never sees requests whose body fails to parse. The
limiter therefore runs inside the route handler itself, ahead of body
decoding, through a custom route class.
"""
from typing import Callable

from fastapi import Request, Response
from fastapi.routing import APIRoute

from studyws.config import get_settings
from studyws.core.errors import RateLimitedError
from studyws.database.connections import get_redis_client
from studyws.dependencies.services import get_client_info, get_rate_limiter


async def enforce_rate_limit(request: Request) -> None:
    """
    Reject the request with RateLimitedError once its endpoint window is full.

    Keyed on the request path; paths without a configured rule pass through.
    Store providers are looked up through ``app.dependency_overrides`` so
    overridden clients apply here too.
    """
    overrides = request.app.dependency_overrides
    redis = await overrides.get(get_redis_client, get_redis_client)()
    settings = overrides.get(get_settings, get_settings)()
    limiter = await get_rate_limiter(redis, settings)

    client = get_client_info(request)
    decision = await limiter.check(client.ip, request.url.path)
    if not decision.allowed:
        raise RateLimitedError(retry_after=decision.retry_after)


class RateLimitedRoute(APIRoute):
    """APIRoute whose handler consults the rate limiter before reading the body."""

    def get_route_handler(self) -> Callable:
        handler = super().get_route_handler()

        async def rate_limited_handler(request: Request) -> Response:
            await enforce_rate_limit(request)
            return await handler(request)

        return rate_limited_handler
