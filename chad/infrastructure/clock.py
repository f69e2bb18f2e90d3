# ==============================================================================
# System Clock
# ==============================================================================
"""Wall-clock implementation of the Clock interface."""

import threading
from datetime import datetime, timezone

from chad.base.clock import Clock


class SystemClock(Clock):
    """UTC wall clock; waits block on a threading.Event so stop() wakes them."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    def wait(self, seconds: float, stop: threading.Event) -> bool:
        return stop.wait(timeout=max(0.0, seconds))
