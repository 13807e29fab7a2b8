"""Domain value objects shared by the timer, geometry and earnings code."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Point:
    x: float
    y: float


@dataclass(frozen=True, slots=True)
class ShiftWindow:
    """Scheduled start and end of a work period."""

    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None

    @property
    def is_complete(self) -> bool:
        return self.start_time is not None and self.end_time is not None

    @property
    def duration(self) -> dt.timedelta:
        if self.start_time is None or self.end_time is None:
            return dt.timedelta(0)
        return self.end_time - self.start_time


@dataclass(frozen=True, slots=True)
class BreakInterval:
    start: dt.datetime
    end: dt.datetime


@dataclass(frozen=True, slots=True)
class TimerRunState:
    """Running flag plus the pause bookkeeping of a live timer."""

    is_running: bool = False
    paused_at: Optional[dt.datetime] = None
    accumulated_pause: dt.timedelta = dt.timedelta(0)

    def toggled(self, running: bool, at: dt.datetime) -> "TimerRunState":
        if running == self.is_running:
            return self
        # A pending pause is folded into the accumulated total on the next transition.
        accumulated = self.accumulated_pause
        if self.paused_at is not None:
            accumulated += at - self.paused_at
        return TimerRunState(
            is_running=running,
            paused_at=at if self.is_running else None,
            accumulated_pause=accumulated,
        )


@dataclass(frozen=True, slots=True)
class ProgressSnapshot:
    now: Optional[dt.datetime] = None
    elapsed: Optional[dt.timedelta] = None
    progress: float = 0.0


@dataclass(frozen=True, slots=True)
class ArcSpan:
    start_fraction: float
    span_fraction: float


@dataclass(frozen=True, slots=True)
class ArcSegment:
    start: Point
    end: Point
    major_arc: bool


@dataclass(frozen=True, slots=True)
class ProjectedBreak:
    """A merged break mapped onto the progress arc."""

    interval: BreakInterval
    span: ArcSpan
    segment: ArcSegment
    is_flipped: bool
    countdown: Optional[dt.timedelta] = None


@dataclass(frozen=True, slots=True)
class GeometryConfig:
    view_box_size: float
    radius: float
    stroke_width: float
    center: Point
    start_point: Point
    end_point: Point
    gap_angle: float
    flip_threshold: float


__all__ = [
    "ArcSegment",
    "ArcSpan",
    "BreakInterval",
    "GeometryConfig",
    "Point",
    "ProgressSnapshot",
    "ProjectedBreak",
    "ShiftWindow",
    "TimerRunState",
]
