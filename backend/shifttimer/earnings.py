from __future__ import annotations

import datetime as dt
from typing import Optional

HOUR = dt.timedelta(hours=1)


def earnings(
    elapsed: Optional[dt.timedelta],
    total_duration: dt.timedelta,
    hourly_rate: Optional[float],
) -> float:
    """Money earned so far; accrual stops once the scheduled duration is reached."""
    if elapsed is None or elapsed <= dt.timedelta(0) or not hourly_rate:
        return 0.0
    return hourly_rate * (min(elapsed, total_duration) / HOUR)


def flexible_duration(hours: Optional[int], minutes: Optional[int]) -> dt.timedelta:
    return dt.timedelta(hours=hours or 0, minutes=minutes or 0)


def time_to_shift_start(elapsed: Optional[dt.timedelta]) -> Optional[dt.timedelta]:
    """Countdown until the shift begins, while the clock is still before it."""
    if elapsed is None or elapsed >= dt.timedelta(0):
        return None
    return -elapsed
