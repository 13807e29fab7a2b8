from __future__ import annotations

import datetime as dt
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_serializer

from .models import ArcSegment, GeometryConfig, ProjectedBreak
from .services import ShiftView
from .utils import format_duration, to_milliseconds


class StandardShiftUpdateRequest(BaseModel):
    """Raw field edits; only the fields present in the body are applied."""

    start_time: Optional[Any] = None
    end_time: Optional[Any] = None
    hourly_rate: Optional[Any] = None


class BreakUpdateRequest(BaseModel):
    break_start: Optional[Any] = None
    break_end: Optional[Any] = None


class FlexibleShiftUpdateRequest(BaseModel):
    duration_hours: Optional[Any] = None
    duration_minutes: Optional[Any] = None
    hourly_rate: Optional[Any] = None


class PointResponse(BaseModel):
    x: float
    y: float


class ArcSegmentResponse(BaseModel):
    start: PointResponse
    end: PointResponse
    major_arc: bool

    @classmethod
    def from_segment(cls, segment: ArcSegment) -> "ArcSegmentResponse":
        return cls(
            start=PointResponse(x=segment.start.x, y=segment.start.y),
            end=PointResponse(x=segment.end.x, y=segment.end.y),
            major_arc=segment.major_arc,
        )


class BreakSegmentResponse(BaseModel):
    start: dt.datetime
    end: dt.datetime
    start_fraction: float
    span_fraction: float
    segment: ArcSegmentResponse
    is_flipped: bool
    countdown_ms: Optional[int] = None

    @model_serializer(mode="wrap", when_used="json")
    def _serialize(self, handler) -> dict[str, Any]:
        data = handler(self)
        data["countdown"] = (
            format_duration(dt.timedelta(milliseconds=self.countdown_ms))
            if self.countdown_ms is not None
            else None
        )
        return data

    @classmethod
    def from_projection(cls, projected: ProjectedBreak) -> "BreakSegmentResponse":
        return cls(
            start=projected.interval.start,
            end=projected.interval.end,
            start_fraction=projected.span.start_fraction,
            span_fraction=projected.span.span_fraction,
            segment=ArcSegmentResponse.from_segment(projected.segment),
            is_flipped=projected.is_flipped,
            countdown_ms=to_milliseconds(projected.countdown),
        )


class TimerStateResponse(BaseModel):
    is_running: bool
    paused_at: Optional[dt.datetime]
    accumulated_pause_ms: int


class ProgressResponse(BaseModel):
    now: Optional[dt.datetime]
    elapsed_ms: Optional[int]
    progress: float
    total_duration_ms: int
    earnings: float
    time_to_shift_start_ms: Optional[int]
    progress_segment: ArcSegmentResponse
    breaks: List[BreakSegmentResponse] = Field(default_factory=list)
    timer: TimerStateResponse

    @model_serializer(mode="wrap", when_used="json")
    def _serialize(self, handler) -> dict[str, Any]:
        data = handler(self)
        data["earnings"] = round(self.earnings, 2)
        data["time_to_shift_start"] = (
            format_duration(dt.timedelta(milliseconds=self.time_to_shift_start_ms))
            if self.time_to_shift_start_ms is not None
            else None
        )
        return data

    @classmethod
    def from_view(cls, view: ShiftView) -> "ProgressResponse":
        return cls(
            now=view.snapshot.now,
            elapsed_ms=to_milliseconds(view.snapshot.elapsed),
            progress=view.snapshot.progress,
            total_duration_ms=to_milliseconds(view.total_duration) or 0,
            earnings=view.earnings,
            time_to_shift_start_ms=to_milliseconds(view.time_to_shift_start),
            progress_segment=ArcSegmentResponse.from_segment(view.progress_segment),
            breaks=[BreakSegmentResponse.from_projection(item) for item in view.breaks],
            timer=TimerStateResponse(
                is_running=view.timer.is_running,
                paused_at=view.timer.paused_at,
                accumulated_pause_ms=to_milliseconds(view.timer.accumulated_pause) or 0,
            ),
        )


class BreakDraftResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    break_start: Optional[dt.datetime]
    break_end: Optional[dt.datetime]


class StandardShiftResponse(BaseModel):
    start_time: Optional[dt.datetime]
    end_time: Optional[dt.datetime]
    hourly_rate: Optional[float]
    breaks: List[BreakDraftResponse]
    errors: Dict[str, Any]
    progress: ProgressResponse


class FlexibleShiftResponse(BaseModel):
    start_time: Optional[dt.datetime]
    end_time: Optional[dt.datetime]
    duration_hours: Optional[int]
    duration_minutes: Optional[int]
    hourly_rate: Optional[float]
    errors: Dict[str, Any]
    progress: ProgressResponse


class GeometryResponse(BaseModel):
    view_box_size: float
    radius: float
    stroke_width: float
    center: PointResponse
    start_point: PointResponse
    end_point: PointResponse
    gap_angle: float
    flip_threshold: float

    @classmethod
    def from_config(cls, config: GeometryConfig) -> "GeometryResponse":
        return cls(
            view_box_size=config.view_box_size,
            radius=config.radius,
            stroke_width=config.stroke_width,
            center=PointResponse(x=config.center.x, y=config.center.y),
            start_point=PointResponse(x=config.start_point.x, y=config.start_point.y),
            end_point=PointResponse(x=config.end_point.x, y=config.end_point.y),
            gap_angle=config.gap_angle,
            flip_threshold=config.flip_threshold,
        )
