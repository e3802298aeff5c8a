"""
Application configuration loaded from environment variables.
"""
from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitRule(BaseModel):
    """Sliding-window limit for a single endpoint."""
    max_requests: int = Field(..., gt=0)
    window_seconds: int = Field(..., gt=0)


def _default_rate_limits() -> dict[str, RateLimitRule]:
    return {
        "/auth/login": RateLimitRule(max_requests=5, window_seconds=60),
        "/auth/register": RateLimitRule(max_requests=3, window_seconds=60),
        "/auth/refresh": RateLimitRule(max_requests=10, window_seconds=60),
    }


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # MongoDB
    mongo_uri: str = "mongodb://mongodb:27017"
    # None: use transactions when the server is a replica set or mongos
    mongo_transactions: Optional[bool] = None
    mongo_timeout_ms: int = 5000
    transaction_max_attempts: int = 3

    # Redis
    redis_host: str = "redis"
    redis_port: int = 6379
    redis_timeout_seconds: float = 2.0

    # JWT Configuration (no default: the process must not start unsigned)
    jwt_secret_key: str = Field(..., min_length=1)
    jwt_access_token_ttl_seconds: int = 3600
    jwt_refresh_token_ttl_seconds: int = 7 * 24 * 3600

    # Password hashing
    bcrypt_rounds: int = 12

    # Rate Limiting
    rate_limits: dict[str, RateLimitRule] = Field(default_factory=_default_rate_limits)
    rate_limit_retention_seconds: int = 24 * 3600

    # Maintenance
    session_purge_interval_seconds: int = 3600

    # HTTP
    cors_origins: list[str] = [
        "http://localhost:8080",
        "http://localhost:3000",
    ]

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
