from datetime import datetime, timezone
from typing import Callable

# Real wall-clock source in epoch milliseconds; injectable for tests.
Clock = Callable[[], int]


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_now_ms() -> int:
    """Return the current UTC time as integer epoch milliseconds."""
    return int(utc_now().timestamp() * 1000)
