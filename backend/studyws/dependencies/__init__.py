"""
Dependencies for dependency injection in routes.
"""
from studyws.dependencies.auth import CurrentUser, get_current_user
from studyws.dependencies.rate_limit import RateLimitedRoute, enforce_rate_limit
from studyws.dependencies.services import (
    get_auth_service,
    get_client_info,
    get_rate_limiter,
    get_user_store,
)

__all__ = [
    "CurrentUser",
    "get_current_user",
    "RateLimitedRoute",
    "enforce_rate_limit",
    "get_auth_service",
    "get_client_info",
    "get_rate_limiter",
    "get_user_store",
]
