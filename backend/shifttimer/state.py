"""Immutable shift state and the reducer that advances it.

Every command produces a fresh snapshot via :func:`reduce`; nothing is
mutated in place. The ``at`` timestamps on timer commands come from the
caller's clock so the reducer stays pure.
"""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, replace
from typing import Any, Optional, Tuple, TypeVar, Union

from .earnings import flexible_duration
from .models import ShiftWindow, TimerRunState
from .validation import ErrorTree, empty_errors


@dataclass(frozen=True, slots=True)
class BreakDraft:
    """A break as entered; either endpoint may still be missing."""

    break_start: Optional[dt.datetime] = None
    break_end: Optional[dt.datetime] = None

    def as_input(self) -> dict[str, Any]:
        return {"break_start": self.break_start, "break_end": self.break_end}


@dataclass(frozen=True, slots=True)
class StandardShiftState:
    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None
    hourly_rate: Optional[float] = None
    breaks: Tuple[BreakDraft, ...] = ()
    timer: TimerRunState = TimerRunState()
    errors: ErrorTree = field(default_factory=empty_errors)

    @property
    def window(self) -> ShiftWindow:
        return ShiftWindow(start_time=self.start_time, end_time=self.end_time)

    @property
    def total_duration(self) -> dt.timedelta:
        return self.window.duration

    def as_input(self) -> dict[str, Any]:
        return {
            "start_time": self.start_time,
            "end_time": self.end_time,
            "hourly_rate": self.hourly_rate,
            "breaks": [item.as_input() for item in self.breaks],
        }


@dataclass(frozen=True, slots=True)
class FlexibleShiftState:
    start_time: Optional[dt.datetime] = None
    end_time: Optional[dt.datetime] = None
    duration_hours: Optional[int] = None
    duration_minutes: Optional[int] = None
    hourly_rate: Optional[float] = None
    timer: TimerRunState = TimerRunState()
    errors: ErrorTree = field(default_factory=empty_errors)

    @property
    def window(self) -> ShiftWindow:
        return ShiftWindow(start_time=self.start_time, end_time=self.end_time)

    @property
    def total_duration(self) -> dt.timedelta:
        return flexible_duration(self.duration_hours, self.duration_minutes)

    def as_input(self) -> dict[str, Any]:
        return {
            "duration_hours": self.duration_hours,
            "duration_minutes": self.duration_minutes,
            "hourly_rate": self.hourly_rate,
        }


ShiftState = Union[StandardShiftState, FlexibleShiftState]
S = TypeVar("S", StandardShiftState, FlexibleShiftState)


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class ReplaceAll:
    state: Any


@dataclass(frozen=True, slots=True)
class SetErrors:
    errors: ErrorTree


@dataclass(frozen=True, slots=True)
class AddBreak:
    pass


@dataclass(frozen=True, slots=True)
class RemoveBreak:
    index: int


@dataclass(frozen=True, slots=True)
class SetTimerRunning:
    running: bool
    at: dt.datetime


@dataclass(frozen=True, slots=True)
class Reset:
    pass


Command = Union[ReplaceAll, SetErrors, AddBreak, RemoveBreak, SetTimerRunning, Reset]


def with_duration(state: FlexibleShiftState) -> FlexibleShiftState:
    """Re-derive the end of a started flexible shift from its duration."""
    if state.start_time is None:
        return state
    duration = state.total_duration
    end_time = state.start_time + duration if duration else None
    return replace(state, end_time=end_time)


def reduce(state: S, command: Command) -> S:
    if isinstance(command, ReplaceAll):
        return command.state
    if isinstance(command, SetErrors):
        return replace(state, errors=command.errors)
    if isinstance(command, SetTimerRunning):
        return replace(state, timer=state.timer.toggled(command.running, command.at))
    if isinstance(command, Reset):
        return type(state)()
    if isinstance(state, StandardShiftState):
        if isinstance(command, AddBreak):
            return replace(state, breaks=state.breaks + (BreakDraft(),))
        if isinstance(command, RemoveBreak):
            breaks = tuple(item for index, item in enumerate(state.breaks) if index != command.index)
            return replace(state, breaks=breaks)
    return state
