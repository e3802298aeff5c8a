"""
Time helpers.

MongoDB hands back naive datetimes in UTC, so everything persisted or
compared against stored values uses naive UTC as well.
"""
import time
from datetime import datetime, timezone


def utcnow() -> datetime:
    """Current time as a naive UTC datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def unix_now() -> int:
    """Current time in whole unix seconds."""
    return int(time.time())
