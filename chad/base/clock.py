# ==============================================================================
# Clock Abstract Base Class
# ==============================================================================
"""
Clock abstraction for the tick scheduler.

The scheduler only needs "what time is it" and "wait this long unless told
to stop". Production uses SystemClock; tests inject a virtual clock that
advances instantly.
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime


class Clock(ABC):
    """Source of wall-clock time and interruptible waits."""

    @abstractmethod
    def now(self) -> datetime:
        """Current time as a timezone-aware datetime."""
        ...

    @abstractmethod
    def wait(self, seconds: float, stop: threading.Event) -> bool:
        """
        Wait up to the given number of seconds.

        Returns:
            True if the stop event was set (wait interrupted), False on timeout
        """
        ...
