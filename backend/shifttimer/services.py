from __future__ import annotations

import asyncio
import datetime as dt
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Generic, List, Mapping, Optional

from fastapi import HTTPException, status

from .config import settings
from .earnings import earnings, time_to_shift_start
from .geometry import GEOMETRY, progress_segment, project_breaks
from .models import (
    ArcSegment,
    BreakInterval,
    GeometryConfig,
    ProgressSnapshot,
    ProjectedBreak,
    TimerRunState,
)
from .state import (
    AddBreak,
    BreakDraft,
    Command,
    FlexibleShiftState,
    RemoveBreak,
    ReplaceAll,
    Reset,
    S,
    SetErrors,
    SetTimerRunning,
    StandardShiftState,
    reduce,
    with_duration,
)
from .timer import Clock, Poller, TimerEngine
from .utils import complete_intervals
from .validation import ErrorTree, empty_errors, validate_flexible_shift, validate_standard_shift

logger = logging.getLogger(__name__)


def _loop_running() -> bool:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return False
    return True


@dataclass(frozen=True, slots=True)
class ShiftView:
    """Everything a renderer needs to draw one shift at one instant."""

    snapshot: ProgressSnapshot
    total_duration: dt.timedelta
    earnings: float
    time_to_shift_start: Optional[dt.timedelta]
    progress_segment: ArcSegment
    breaks: List[ProjectedBreak]
    timer: TimerRunState
    errors: ErrorTree = field(default_factory=empty_errors)


class ShiftSession(Generic[S]):
    """One live shift: its state, the timer sampling it and the poll loop.

    Sessions never share state. When an asyncio loop is running the session
    polls the clock on its own; otherwise the host calls :meth:`refresh`.
    """

    state_type: type

    def __init__(
        self,
        clock: Optional[Clock] = None,
        geometry: GeometryConfig = GEOMETRY,
        poll_interval: Optional[float] = None,
    ) -> None:
        self.clock: Clock = clock or dt.datetime.now
        self.geometry = geometry
        self.engine = TimerEngine(self.clock)
        self.poller = Poller(
            poll_interval if poll_interval is not None else settings.poll_interval_seconds,
            self._tick,
        )
        self.state: S = self.state_type()

    # ------------------------------------------------------------------
    def dispatch(self, command: Command) -> S:
        self.state = reduce(self.state, command)
        self._sync()
        return self.state

    def _tick(self, now: Optional[dt.datetime] = None) -> None:
        self.engine.observe(self.state.window, self.state.timer, now)

    def _sync(self) -> None:
        if self.state.window.is_complete and self.state.timer.is_running:
            if _loop_running():
                self.poller.start()
                return
        else:
            self.poller.cancel()
        self._tick()

    def _reject(self, errors: ErrorTree) -> S:
        logger.debug("Rejected %s edit: %s", self.state_type.__name__, errors)
        return self.dispatch(SetErrors(errors))

    def _break_intervals(self) -> List[BreakInterval]:
        return []

    # ------------------------------------------------------------------
    def refresh(self) -> ShiftView:
        self._tick()
        return self.view()

    def pause(self) -> S:
        if not self.state.timer.is_running:
            return self.state
        logger.debug("Pausing %s", self.state_type.__name__)
        now = self.clock()
        # the sample taken at the pause instant is the one kept while paused
        self._tick(now)
        return self.dispatch(SetTimerRunning(running=False, at=now))

    def reset(self) -> S:
        self.poller.cancel()
        self.engine.clear()
        return self.dispatch(Reset())

    def close(self) -> None:
        self.poller.cancel()

    def view(self) -> ShiftView:
        state = self.state
        snapshot = self.engine.snapshot(state.window)
        total = state.total_duration
        return ShiftView(
            snapshot=snapshot,
            total_duration=total,
            earnings=earnings(snapshot.elapsed, total, state.hourly_rate),
            time_to_shift_start=time_to_shift_start(snapshot.elapsed),
            progress_segment=progress_segment(self.geometry, snapshot.progress),
            breaks=project_breaks(state.window, self._break_intervals(), self.geometry, snapshot.now),
            timer=state.timer,
            errors=state.errors,
        )


class StandardShiftSession(ShiftSession[StandardShiftState]):
    """Shift with a fixed start and end plus optional breaks."""

    state_type = StandardShiftState

    def _commit(self, candidate: Mapping[str, Any]) -> StandardShiftState:
        result = validate_standard_shift(candidate)
        if not result.ok:
            return self._reject(result.errors)
        shift = result.value
        committed = replace(
            self.state,
            start_time=shift.start_time,
            end_time=shift.end_time,
            hourly_rate=shift.hourly_rate,
            breaks=tuple(BreakDraft(item.break_start, item.break_end) for item in shift.breaks),
            errors=empty_errors(),
        )
        return self.dispatch(ReplaceAll(committed))

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self.state.breaks):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Break not found")

    def _break_intervals(self) -> List[BreakInterval]:
        return complete_intervals(self.state.breaks)

    def edit(self, changes: Mapping[str, Any]) -> StandardShiftState:
        candidate = self.state.as_input()
        candidate.update({key: value for key, value in changes.items() if key != "breaks"})
        if "breaks" in changes:
            candidate["breaks"] = list(changes["breaks"])
        return self._commit(candidate)

    def add_break(self) -> StandardShiftState:
        return self.dispatch(AddBreak())

    def update_break(self, index: int, changes: Mapping[str, Any]) -> StandardShiftState:
        self._check_index(index)
        candidate = self.state.as_input()
        candidate["breaks"][index].update(changes)
        return self._commit(candidate)

    def remove_break(self, index: int) -> StandardShiftState:
        self._check_index(index)
        return self.dispatch(RemoveBreak(index))

    def toggle(self) -> StandardShiftState:
        if self.state.timer.is_running:
            return self.pause()
        result = validate_standard_shift(self.state.as_input(), starting=True)
        if not result.ok:
            return self._reject(result.errors)
        logger.debug("Starting standard shift %s - %s", self.state.start_time, self.state.end_time)
        return self.dispatch(SetTimerRunning(running=True, at=self.clock()))


class FlexibleShiftSession(ShiftSession[FlexibleShiftState]):
    """Shift defined by a duration, anchored to the moment it is first started."""

    state_type = FlexibleShiftState

    def edit(self, changes: Mapping[str, Any]) -> FlexibleShiftState:
        candidate = self.state.as_input()
        candidate.update(changes)
        result = validate_flexible_shift(candidate)
        if not result.ok:
            return self._reject(result.errors)
        shift = result.value
        committed = replace(
            self.state,
            duration_hours=shift.duration_hours,
            duration_minutes=shift.duration_minutes,
            hourly_rate=shift.hourly_rate,
            errors=empty_errors(),
        )
        return self.dispatch(ReplaceAll(with_duration(committed)))

    def toggle(self) -> FlexibleShiftState:
        if self.state.timer.is_running:
            return self.pause()
        now = self.clock()
        if self.state.start_time is None:
            result = validate_flexible_shift(self.state.as_input(), starting=True)
            if not result.ok:
                return self._reject(result.errors)
            anchored = replace(
                self.state,
                start_time=now,
                end_time=now + self.state.total_duration,
                errors=empty_errors(),
            )
            self.dispatch(ReplaceAll(anchored))
            logger.debug("Flexible shift anchored at %s for %s", now, self.state.total_duration)
        return self.dispatch(SetTimerRunning(running=True, at=now))
