from __future__ import annotations

import datetime as dt
from typing import Any, Iterable, List, Optional

from .models import BreakInterval


def clamp(value: float, lower: float, upper: float) -> float:
    return min(max(value, lower), upper)


def merge_intervals(intervals: Iterable[BreakInterval]) -> List[BreakInterval]:
    """Return the intervals sorted by start with overlapping or touching ones coalesced."""
    merged: List[BreakInterval] = []
    for interval in sorted(intervals, key=lambda item: (item.start, item.end)):
        if merged and interval.start <= merged[-1].end:
            last = merged[-1]
            merged[-1] = BreakInterval(start=last.start, end=max(last.end, interval.end))
            continue
        merged.append(interval)
    return merged


def complete_intervals(drafts: Iterable[Any]) -> List[BreakInterval]:
    """Keep only break drafts with both endpoints set."""
    intervals: List[BreakInterval] = []
    for draft in drafts:
        start: Optional[dt.datetime] = getattr(draft, "break_start", None)
        end: Optional[dt.datetime] = getattr(draft, "break_end", None)
        if start is None or end is None:
            continue
        intervals.append(BreakInterval(start=start, end=end))
    return intervals


def format_duration(value: dt.timedelta) -> str:
    """Render a duration as ``Hh Mm Ss``, flooring each unit; negative values get a leading ``-``."""
    total_ms = int(value / dt.timedelta(milliseconds=1))
    if total_ms < 0:
        return "-" + format_duration(-value)
    hours = total_ms // 3_600_000
    minutes = (total_ms % 3_600_000) // 60_000
    seconds = (total_ms % 60_000) // 1000
    return f"{hours}h {minutes}m {seconds}s"


def to_milliseconds(value: Optional[dt.timedelta]) -> Optional[int]:
    if value is None:
        return None
    return int(value / dt.timedelta(milliseconds=1))
