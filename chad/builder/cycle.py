# ==============================================================================
# Session Cycle with Timing Instrumentation
# ==============================================================================
"""
One full fetch -> segment -> write cycle for a single tick.

    1. uow.events.fetch_window(window, mode)     - read raw events
    2. Segmenter(uow.contexts).segment(events)   - attribution lookups + grouping
    3. AggregateWriter.write(uow.aggregates)     - upserts
    4. uow.commit()

Everything happens inside one unit of work. Any exception rolls the whole
cycle back, is logged, and is reported on the returned CycleResult; it never
escapes run(). The next tick naturally retries against the same data.
"""

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta

from chad.base.repositories import UnitOfWork
from chad.builder.writer import AggregateWriter
from chad.core.models import Mode, Window
from chad.core.segmenter import DEFAULT_DEVICE_TAG, Segmenter
from chad.core.time_aligner import (
    DEFAULT_WINDOW,
    align_to_window_floor,
    mode_for,
    window_ending_at,
)

logger = logging.getLogger(__name__)


@dataclass
class CycleResult:
    """Outcome of one cycle.

    Attributes:
        tick_time: Aligned boundary the cycle ran for (window end)
        mode: Lane processed
        window: Window processed
        event_count: Raw events fetched
        segment_count: Segments built
        written: Upserts committed (0 on failure)
        error: Error message when the cycle was rolled back
        duration_ms: Wall time spent in the cycle
    """

    tick_time: datetime
    mode: Mode
    window: Window
    event_count: int = 0
    segment_count: int = 0
    written: int = 0
    error: str | None = None
    duration_ms: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None


def _precision(ms: float) -> int:
    """Decimal places for a millisecond value: 0 for >=10, 1 for >=1, else 2."""
    if ms >= 10:
        return 0
    if ms >= 1:
        return 1
    return 2


class SessionCycle:
    """Runs one windowed cycle inside a fresh unit of work."""

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        window_length: timedelta = DEFAULT_WINDOW,
        namespace: str = "chad",
        resolver_workers: int = 1,
        fallback_device_tag: str = DEFAULT_DEVICE_TAG,
        log: logging.Logger | None = None,
    ):
        """
        Initialize the cycle.

        Args:
            uow_factory: Returns a new unit of work per cycle
            window_length: Length of the window ending at each tick
            namespace: Idempotency key namespace
            resolver_workers: Threads for attribution lookups
            fallback_device_tag: Tag used for events without one
            log: Optional logger override. Defaults to this module's logger.
        """
        self._uow_factory = uow_factory
        self._window_length = window_length
        self._resolver_workers = resolver_workers
        self._fallback_tag = fallback_device_tag
        self._writer = AggregateWriter(namespace, fallback_device_tag)
        self._log = log or logger

    def run(self, now: datetime) -> CycleResult:
        """
        Process the window ending at the quarter hour at or before now.

        Args:
            now: Current (or simulated) time

        Returns:
            CycleResult; result.error is set if the cycle was rolled back
        """
        tick_time = align_to_window_floor(now)
        mode = mode_for(tick_time)
        window = window_ending_at(tick_time, self._window_length)
        result = CycleResult(tick_time=tick_time, mode=mode, window=window)

        self._log.info(
            "Tick at %s | mode=%s | window=%s to %s",
            tick_time.isoformat(),
            mode.value,
            window.start.isoformat(),
            window.end.isoformat(),
        )

        t0 = time.monotonic()
        try:
            with self._uow_factory() as uow:
                events = uow.events.fetch_window(window, mode)
                result.event_count = len(events)
                self._log.info("Found %d raw events for %s", len(events), mode.value)

                t1 = time.monotonic()
                segmenter = Segmenter(uow.contexts, self._resolver_workers, self._fallback_tag)
                segments = segmenter.segment(events, mode)
                result.segment_count = len(segments)

                t2 = time.monotonic()
                written = self._writer.write(uow.aggregates, segments, window)
                uow.commit()
                t3 = time.monotonic()

            result.written = written
            if events:
                self._log_timing(result, t0, t1, t2, t3)
        except Exception as e:
            result.error = f"{type(e).__name__}: {e}"
            self._log.error(
                "Cycle for %s window ending %s rolled back: %s",
                mode.value,
                window.end.isoformat(),
                result.error,
            )
        finally:
            result.duration_ms = (time.monotonic() - t0) * 1000

        return result

    def _log_timing(self, result: CycleResult, t0: float, t1: float, t2: float, t3: float) -> None:
        fetch_ms = (t1 - t0) * 1000
        segment_ms = (t2 - t1) * 1000
        write_ms = (t3 - t2) * 1000
        total_ms = (t3 - t0) * 1000
        self._log.info(
            "Cycle: %s events, %s segments, %s written | "
            "fetch=%.*fms segment=%.*fms write=%.*fms | total=%.*fms",
            f"{result.event_count:,}",
            f"{result.segment_count:,}",
            f"{result.written:,}",
            _precision(fetch_ms),
            fetch_ms,
            _precision(segment_ms),
            segment_ms,
            _precision(write_ms),
            write_ms,
            _precision(total_ms),
            total_ms,
        )
