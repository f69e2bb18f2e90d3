# ==============================================================================
# Session Builder Runner
# ==============================================================================
"""
Foreground runner for the tick scheduler.

Wires settings, the PostgreSQL unit of work, the cycle and the system clock
together and runs the scheduler until SIGINT/SIGTERM. A signal stops the
scheduler: a pending wait returns immediately, an in-flight cycle commits or
rolls back first, then the process exits with status 0.
"""

import logging
from datetime import timedelta

from chad.base.runner import BaseRunner
from chad.builder.cycle import SessionCycle
from chad.builder.scheduler import TickScheduler
from chad.infrastructure.clock import SystemClock
from chad.infrastructure.repositories.postgresql import PostgreSQLUnitOfWork
from chad.utils.config import Settings
from chad.utils.versions import get_chad_version

logger = logging.getLogger(__name__)


def build_cycle(settings: Settings) -> SessionCycle:
    """Build the production cycle backed by PostgreSQL."""
    builder = settings.builder
    return SessionCycle(
        uow_factory=lambda: PostgreSQLUnitOfWork(settings),
        window_length=timedelta(minutes=builder.window_minutes),
        namespace=builder.namespace,
        resolver_workers=builder.resolver_workers,
        fallback_device_tag=builder.fallback_device_tag,
    )


class SessionBuilderRunner(BaseRunner):
    """Runs the scheduler loop with signal-driven shutdown."""

    def __init__(self, settings: Settings, scheduler: TickScheduler | None = None):
        super().__init__(log_level=settings.log_level)
        self._settings = settings
        self._scheduler = scheduler or TickScheduler(
            cycle=build_cycle(settings).run,
            clock=SystemClock(),
            run_on_start=settings.builder.run_on_start,
        )

    @property
    def scheduler(self) -> TickScheduler:
        return self._scheduler

    def _run(self) -> None:
        logger.info(
            "Session builder v%s | window=%dm | namespace=%s",
            get_chad_version(),
            self._settings.builder.window_minutes,
            self._settings.builder.namespace,
        )
        self._scheduler.run()

    def _on_shutdown_requested(self) -> None:
        self._scheduler.stop()

    def _cleanup(self) -> None:
        logger.info("Session builder shutdown complete.")
