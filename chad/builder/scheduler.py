# ==============================================================================
# Tick Scheduler
# ==============================================================================
"""
Quarter-hour tick scheduler as an explicit two-state machine.

    IDLE --(boundary reached)--> RUNNING --(cycle done, ok or failed)--> IDLE

Cycles never overlap: the next wait is computed only after the previous
cycle has fully returned, so a slow cycle delays the next tick instead of
running alongside it. A failing cycle is logged and absorbed.

Each scheduled cycle is handed the boundary it waited for rather than the
wake-up time, so wait rounding or timer jitter cannot shift it into the
previous quarter. Each boundary is processed at most once.

Time comes from an injected Clock, so cadence and skip behaviour can be
tested with a virtual clock.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from enum import Enum

from chad.base.clock import Clock
from chad.core.time_aligner import QUARTER_HOUR, ms_until, ms_until_next_boundary, next_boundary

logger = logging.getLogger(__name__)


class SchedulerState(str, Enum):
    """Scheduler states."""

    IDLE = "idle"
    RUNNING = "running"


class TickScheduler:
    """Drives one cycle per quarter-hour boundary, sequentially."""

    def __init__(
        self,
        cycle: Callable[[datetime], object],
        clock: Clock,
        run_on_start: bool = True,
    ):
        """
        Initialize the scheduler.

        Args:
            cycle: Called with the clock's current time once per tick
            clock: Time source and interruptible wait
            run_on_start: Run one cycle immediately before the first wait
        """
        self._cycle = cycle
        self._clock = clock
        self._run_on_start = run_on_start
        self._state = SchedulerState.IDLE
        self._stop = threading.Event()
        self.ticks = 0
        self._last_target: datetime | None = None

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    def stop(self) -> None:
        """Request shutdown. An in-flight cycle finishes first; a pending wait returns at once."""
        self._stop.set()

    def tick(self, at: datetime | None = None):
        """
        Run exactly one cycle: IDLE -> RUNNING -> IDLE.

        Args:
            at: Time handed to the cycle. Defaults to the clock's current time.

        Returns:
            Whatever the cycle returned, or None if it raised
        """
        if self._state is SchedulerState.RUNNING:
            raise RuntimeError("A cycle is already running")

        self._state = SchedulerState.RUNNING
        try:
            return self._cycle(at or self._clock.now())
        except Exception:
            logger.exception("Cycle raised; continuing with the next tick")
            return None
        finally:
            self.ticks += 1
            self._state = SchedulerState.IDLE

    def next_wait_seconds(self) -> float:
        """Seconds from now until the next quarter-hour boundary."""
        return ms_until_next_boundary(self._clock.now()) / 1000

    def run(self, max_ticks: int | None = None) -> None:
        """
        Loop until stop() is called (or max_ticks cycles have run).

        Args:
            max_ticks: Optional cap on cycles, mainly for tests
        """
        logger.info("Session builder starting - ticks every 15 minutes on the quarter hour")

        if self._run_on_start and not self.stopped:
            self.tick()

        while not self.stopped and (max_ticks is None or self.ticks < max_ticks):
            now = self._clock.now()
            target = next_boundary(now)
            # An early wake-up must not repeat the boundary just processed
            if self._last_target is not None and target <= self._last_target:
                target = self._last_target + QUARTER_HOUR
            wait_s = ms_until(target, now) / 1000
            logger.info("Next tick at %s in %ds", target.isoformat(), round(wait_s))
            if self._clock.wait(wait_s, self._stop):
                break
            # The cycle runs for the boundary it waited for, not the wake-up time
            self._last_target = target
            self.tick(target)

        logger.info("Scheduler stopped after %d ticks", self.ticks)
