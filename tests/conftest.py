# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- A virtual clock that advances instantly instead of sleeping
- A deterministic in-memory attribution resolver
- In-memory unit of work wired to both
- Event and timestamp factories anchored on 2026-10-17 (UTC)
"""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from chad.base.clock import Clock
from chad.core.models import AttributionContext, RawEvent
from chad.infrastructure.repositories.memory import (
    InMemoryContextResolver,
    InMemoryRawEventSource,
    InMemoryUnitOfWork,
)
from chad.utils.config import get_settings

DAY = datetime(2026, 10, 17, tzinfo=timezone.utc)


def at(hour: int, minute: int, second: int = 0) -> datetime:
    """Timestamp on the test day."""
    return DAY.replace(hour=hour, minute=minute, second=second)


class VirtualClock(Clock):
    """Clock whose waits advance time immediately."""

    def __init__(self, start: datetime):
        self.current = start
        self.waits: list[float] = []

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)

    def wait(self, seconds: float, stop: threading.Event) -> bool:
        if stop.is_set():
            return True
        self.waits.append(seconds)
        self.current += timedelta(seconds=seconds)
        return stop.is_set()


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Settings are lru_cached; start and end every test with a clean cache."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture()
def make_event():
    """Factory for raw events with sequential ids."""
    counter = iter(range(1, 100_000))

    def _make(
        when: datetime,
        device_tag: str | None = "Studio-PC",
        source_kind: str = "internal",
        **hints,
    ) -> RawEvent:
        return RawEvent(
            id=next(counter),
            device_tag=device_tag,
            source_kind=source_kind,
            content="message",
            occurred_at=when,
            **hints,
        )

    return _make


@pytest.fixture()
def resolver():
    """Resolver with P1 active 09:00-10:15 and P2 from 10:15 on for 'studio-pc'."""
    contexts = InMemoryContextResolver()
    contexts.add(
        "studio-pc",
        AttributionContext(
            project_id="P1",
            project_slug="project-one",
            user_id="u-1",
            context_mode="focus",
            started_at=at(9, 0),
            ended_at=at(10, 15),
        ),
    )
    contexts.add(
        "studio-pc",
        AttributionContext(
            project_id="P2",
            project_slug="project-two",
            user_id="u-1",
            started_at=at(10, 15),
        ),
    )
    return contexts


@pytest.fixture()
def event_source():
    return InMemoryRawEventSource()


@pytest.fixture()
def uow(event_source, resolver):
    """One in-memory unit of work reused across cycles (shared aggregate store)."""
    return InMemoryUnitOfWork(events=event_source, contexts=resolver)


@pytest.fixture()
def clock():
    return VirtualClock(at(10, 7))


@pytest.fixture()
def make_clock():
    """Factory for virtual clocks starting at a given time."""
    return VirtualClock
