"""
Sliding-window rate limiting backed by Redis sorted sets.

Each (endpoint, client address) pair owns one sorted set,
``ratelimit:{endpoint}:{ip}``, whose members are individual requests scored
by their unix timestamp. Admission counts the members inside the trailing
window; it is a counting window, not a token bucket.

The window is counted as the closed range ``[now - window, now]``: an entry
scored exactly ``now`` counts as well. Entries are only ever recorded at
the time of their own check, so this differs from a half-open window only
for requests that share a timestamp to the microsecond.

Known hazard: counting and recording are two separate round-trips, so
concurrent requests from one client in the same instant can all observe a
count below the limit and all be admitted. The limit can therefore be
exceeded by up to the degree of concurrency. That is acceptable for
brute-force deterrence; this is not a hard quota.
"""
import logging
import math
import time
import uuid
from dataclasses import dataclass
from typing import Mapping, Optional

from redis.asyncio import Redis
from redis.exceptions import RedisError

from studyws.config import RateLimitRule

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_SECONDS = 24 * 3600


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a single admission check."""
    allowed: bool
    limit: Optional[int] = None
    remaining: Optional[int] = None
    retry_after: int = 0


ADMIT_UNLIMITED = RateLimitDecision(allowed=True)


def rate_limit_key(endpoint: str, ip: str) -> str:
    """Redis key holding the request log for one client on one endpoint."""
    return f"ratelimit:{endpoint}:{ip}"


class RateLimiter:
    """Per-endpoint sliding-window limiter."""

    def __init__(
        self,
        redis: Redis,
        rules: Mapping[str, RateLimitRule],
        retention_seconds: int = DEFAULT_RETENTION_SECONDS,
    ):
        self.redis = redis
        self.rules = dict(rules)
        self.retention_seconds = retention_seconds

    async def check(self, ip: str, endpoint: str) -> RateLimitDecision:
        """
        Decide whether a request may proceed and record it if so.

        Endpoints without a rule are always admitted. Storage failures fail
        open: the request is admitted and the fault is logged.

        Args:
            ip: Resolved client address
            endpoint: Request path (e.g. "/auth/login")

        Returns:
            RateLimitDecision
        """
        rule = self.rules.get(endpoint)
        if rule is None:
            return ADMIT_UNLIMITED

        key = rate_limit_key(endpoint, ip)
        now = time.time()
        window_start = now - rule.window_seconds

        try:
            count = await self.redis.zcount(key, window_start, now)
            if count >= rule.max_requests:
                retry_after = await self._retry_after(key, window_start, rule, now)
                logger.warning(
                    f"Rate limit exceeded: {endpoint} from {ip} "
                    f"({count}/{rule.max_requests} in {rule.window_seconds}s)"
                )
                return RateLimitDecision(
                    allowed=False,
                    limit=rule.max_requests,
                    remaining=0,
                    retry_after=retry_after,
                )

            await self.redis.zadd(key, {f"{now:.6f}:{uuid.uuid4().hex}": now})
        except RedisError as e:
            logger.error(f"Rate limiter unavailable, admitting request to {endpoint}: {e}")
            return ADMIT_UNLIMITED

        await self._purge(key, now)

        return RateLimitDecision(
            allowed=True,
            limit=rule.max_requests,
            remaining=max(0, rule.max_requests - count - 1),
        )

    async def _retry_after(
        self,
        key: str,
        window_start: float,
        rule: RateLimitRule,
        now: float,
    ) -> int:
        """Seconds until the oldest entry inside the window slides out."""
        oldest = await self.redis.zrangebyscore(
            key, window_start, now, start=0, num=1, withscores=True
        )
        if not oldest:
            return rule.window_seconds
        _, score = oldest[0]
        return max(1, math.ceil(score + rule.window_seconds - now))

    async def _purge(self, key: str, now: float) -> None:
        """Drop entries past the retention horizon; never affects admission."""
        try:
            pipe = self.redis.pipeline()
            pipe.zremrangebyscore(key, "-inf", now - self.retention_seconds)
            pipe.expire(key, self.retention_seconds)
            await pipe.execute()
        except RedisError as e:
            logger.warning(f"Rate limit cleanup failed for {key}: {e}")


def get_client_ip(forwarded_for: Optional[str], peer_host: Optional[str]) -> str:
    """
    Resolve the client address, preferring the first X-Forwarded-For hop.

    The header is trusted as-is; this only makes sense behind a reverse
    proxy that sets it.
    """
    if forwarded_for:
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    return peer_host or "unknown"
