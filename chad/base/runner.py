# ==============================================================================
# Base Runner Abstract Class
# ==============================================================================
"""
Foreground process lifecycle for the session builder.

SIGINT and SIGTERM only request shutdown; the subclass decides how its loop
reacts (the scheduler finishes or rolls back the in-flight cycle and returns).
"""

import logging
import signal
from abc import ABC, abstractmethod
from typing import final

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

SHUTDOWN_SIGNALS = (signal.SIGTERM, signal.SIGINT)


def setup_logging(level: str = "INFO") -> None:
    """Configure root logging in the format used across the service."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


class BaseRunner(ABC):
    """Installs shutdown handlers and logging, then runs _run() to completion."""

    def __init__(self, log_level: str = "INFO"):
        self._log_level = log_level
        self._shutdown_requested = False

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested

    @final
    def run(self) -> None:
        for signum in SHUTDOWN_SIGNALS:
            signal.signal(signum, self._handle_signal)
        setup_logging(self._log_level)

        try:
            self._run()
        except KeyboardInterrupt:
            logger.info("Interrupted before shutdown handlers took over")
        finally:
            self._cleanup()

    @abstractmethod
    def _run(self) -> None:
        """Block until the work loop returns."""

    def _handle_signal(self, signum, frame) -> None:
        logger.info("Received %s, stopping after the current cycle", signal.Signals(signum).name)
        self._shutdown_requested = True
        self._on_shutdown_requested()

    def _on_shutdown_requested(self) -> None:
        """Stop the work loop. Subclasses override."""

    def _cleanup(self) -> None:
        """Release resources after _run() returns. Subclasses may override."""
