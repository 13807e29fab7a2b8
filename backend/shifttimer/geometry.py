"""Mapping of shift fractions onto the gapped circular progress arc.

The arc is a circle with an open gap at the bottom. Fractions in ``[0, 1]``
run clockwise (in screen space) from the left end of the gap to its right
end. Screen y grows downward, so sines are negated when producing points.
"""

from __future__ import annotations

import datetime as dt
import math
from typing import Iterable, List, Optional

from .config import Settings, settings
from .models import (
    ArcSegment,
    ArcSpan,
    BreakInterval,
    GeometryConfig,
    Point,
    ProjectedBreak,
    ShiftWindow,
)
from .utils import clamp, merge_intervals


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def _angle_at(vertex: Point, p1: Point, p2: Point) -> float:
    """Angle at ``vertex`` of the triangle (vertex, p1, p2), by the law of cosines."""
    a = _distance(vertex, p1)
    b = _distance(vertex, p2)
    c = _distance(p1, p2)
    return math.acos((a**2 + b**2 - c**2) / (2 * a * b))


def build_geometry_config(base_settings: Settings) -> GeometryConfig:
    box = base_settings.view_box_size
    radius = base_settings.arc_radius
    start_point = Point(x=base_settings.arc_x_offset, y=box - base_settings.arc_y_offset)
    end_point = Point(x=box - base_settings.arc_x_offset, y=box - base_settings.arc_y_offset)
    half_chord = (end_point.x - start_point.x) / 2
    if half_chord >= radius:
        raise ValueError("Arc radius must exceed half the distance between the arc ends")
    center = Point(x=box / 2, y=start_point.y - math.sqrt(radius**2 - half_chord**2))
    gap_angle = _angle_at(center, start_point, end_point)
    return GeometryConfig(
        view_box_size=box,
        radius=radius,
        stroke_width=base_settings.stroke_width,
        center=center,
        start_point=start_point,
        end_point=end_point,
        gap_angle=gap_angle,
        flip_threshold=0.5 / (1 - gap_angle / (2 * math.pi)),
    )


GEOMETRY = build_geometry_config(settings)


def arc_start_angle(config: GeometryConfig) -> float:
    return 3 * math.pi / 2 - config.gap_angle / 2


def arc_end_angle(config: GeometryConfig) -> float:
    return 3 * math.pi / 2 + config.gap_angle / 2 - 2 * math.pi


def fraction_angle(config: GeometryConfig, fraction: float) -> float:
    start = arc_start_angle(config)
    return start + (arc_end_angle(config) - start) * fraction


def point_at(config: GeometryConfig, angle: float) -> Point:
    return Point(
        x=config.center.x + config.radius * math.cos(angle),
        y=config.center.y - config.radius * math.sin(angle),
    )


def arc_segment(config: GeometryConfig, start_fraction: float, span_fraction: float) -> ArcSegment:
    """Endpoints of the arc piece covering ``[start, start + span]``.

    Callers are expected to clamp the fractions; nothing is clamped here.
    """
    start = point_at(config, fraction_angle(config, start_fraction))
    end = point_at(config, fraction_angle(config, start_fraction + span_fraction))
    return ArcSegment(start=start, end=end, major_arc=span_fraction > config.flip_threshold)


def progress_segment(config: GeometryConfig, progress: float) -> ArcSegment:
    return arc_segment(config, 0.0, progress)


def break_span(window: ShiftWindow, interval: BreakInterval) -> ArcSpan:
    total = window.duration
    if window.start_time is None or total == dt.timedelta(0):
        return ArcSpan(start_fraction=0.0, span_fraction=0.0)
    start_fraction = clamp((interval.start - window.start_time) / total, 0.0, 1.0)
    span_fraction = clamp((interval.end - interval.start) / total, 0.0, 1.0 - start_fraction)
    return ArcSpan(start_fraction=start_fraction, span_fraction=span_fraction)


def project_breaks(
    window: ShiftWindow,
    breaks: Iterable[BreakInterval],
    config: GeometryConfig = GEOMETRY,
    now: Optional[dt.datetime] = None,
) -> List[ProjectedBreak]:
    """Merge the breaks and place each on the arc, with its countdown at ``now``."""
    if not window.is_complete:
        return []
    projected: List[ProjectedBreak] = []
    for interval in merge_intervals(breaks):
        span = break_span(window, interval)
        segment = arc_segment(config, span.start_fraction, span.span_fraction)
        projected.append(
            ProjectedBreak(
                interval=interval,
                span=span,
                segment=segment,
                is_flipped=segment.major_arc,
                countdown=break_countdown(now, interval),
            )
        )
    return projected


def break_countdown(now: Optional[dt.datetime], interval: BreakInterval) -> Optional[dt.timedelta]:
    """Time left in the break, or (negative) time until it starts.

    ``None`` once the break is over or when no clock sample exists.
    """
    if now is None or now >= interval.end:
        return None
    if now > interval.start:
        return interval.end - now
    return now - interval.start
