from __future__ import annotations

import asyncio
import datetime as dt
import logging
from typing import Callable, Optional

from .models import ProgressSnapshot, ShiftWindow, TimerRunState
from .utils import clamp

logger = logging.getLogger(__name__)

Clock = Callable[[], dt.datetime]


def compute_progress(window: ShiftWindow, sample: Optional[dt.datetime]) -> ProgressSnapshot:
    """Derive elapsed time and progress from a pause-adjusted clock sample.

    Elapsed time is reported as-is, negative before the shift starts; only
    the progress fraction is clamped.
    """
    if sample is None or window.start_time is None or window.end_time is None:
        return ProgressSnapshot()
    elapsed = sample - window.start_time
    total = window.end_time - window.start_time
    if total == dt.timedelta(0):
        progress = 1.0 if elapsed >= dt.timedelta(0) else 0.0
    else:
        progress = clamp(elapsed / total, 0.0, 1.0)
    return ProgressSnapshot(now=sample, elapsed=elapsed, progress=progress)


class TimerEngine:
    """Holds the current clock sample of one shift and turns it into progress.

    The host decides when to sample: either by calling :meth:`observe` after
    each state change and on every poll tick, or by feeding explicit
    timestamps to :meth:`advance`.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self.clock: Clock = clock or dt.datetime.now
        self._sample: Optional[dt.datetime] = None

    @property
    def sample(self) -> Optional[dt.datetime]:
        return self._sample

    def clear(self) -> None:
        self._sample = None

    def advance(self, window: ShiftWindow, now: dt.datetime) -> ProgressSnapshot:
        self._sample = now
        return compute_progress(window, now)

    def observe(
        self,
        window: ShiftWindow,
        run_state: TimerRunState,
        now: Optional[dt.datetime] = None,
    ) -> ProgressSnapshot:
        if not window.is_complete:
            self._sample = None
            return ProgressSnapshot()
        if run_state.is_running:
            wall = now if now is not None else self.clock()
            return self.advance(window, wall - run_state.accumulated_pause)
        # paused or stopped: keep whatever was sampled last
        return compute_progress(window, self._sample)

    def snapshot(self, window: ShiftWindow) -> ProgressSnapshot:
        return compute_progress(window, self._sample)


class Poller:
    """Repeating callback on the running asyncio loop.

    At most one task is alive per poller; starting again replaces it and
    cancelling guarantees no further tick runs.
    """

    def __init__(self, interval: float, tick: Callable[[], None]) -> None:
        self.interval = interval
        self._tick = tick
        self._task: Optional[asyncio.Task[None]] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        self.cancel()
        loop = asyncio.get_running_loop()
        self._tick()
        self._task = loop.create_task(self._run())
        logger.debug("Poller started with %.3fs interval", self.interval)

    def cancel(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        self._task = None
        logger.debug("Poller cancelled")

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self._tick()
            except Exception:
                logger.exception("Poll tick failed")
