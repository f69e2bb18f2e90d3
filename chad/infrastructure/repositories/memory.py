# ==============================================================================
# In-Memory Repository Implementations
# ==============================================================================
"""
In-memory implementations of the repository interfaces.

Same contracts as the PostgreSQL adapters, realized as read-modify-write over
plain Python structures. Used by the test suite.

Provides:
- InMemoryRawEventSource
- InMemoryContextResolver
- InMemoryAggregateStore
- InMemoryUnitOfWork: snapshot on begin, restore on rollback
"""

import logging
from datetime import datetime, timezone

from chad.base.repositories import (
    AggregateStore,
    ContextResolver,
    RawEventSource,
    UnitOfWork,
)
from chad.core.aggregates import STATUS_ACTIVE, SessionAggregate
from chad.core.models import AttributionContext, Mode, RawEvent, Window

logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class InMemoryRawEventSource(RawEventSource):
    """Holds raw events; only ever read by the builder."""

    def __init__(self, events: list[RawEvent] | None = None):
        self._events = list(events or [])

    def add(self, *events: RawEvent) -> None:
        self._events.extend(events)

    def fetch_window(self, window: Window, mode: Mode) -> list[RawEvent]:
        matching = [
            e for e in self._events if window.contains(e.occurred_at) and e.source_kind == mode.value
        ]
        # sorted() is stable, so equal timestamps keep insertion order
        return sorted(matching, key=lambda e: e.occurred_at)


class InMemoryContextResolver(ContextResolver):
    """Contexts per normalized device tag, each with its own validity interval."""

    def __init__(self):
        self._contexts: dict[str, list[AttributionContext]] = {}

    def add(self, device_tag_norm: str, context: AttributionContext) -> None:
        self._contexts.setdefault(device_tag_norm, []).append(context)

    def resolve(self, device_tag_norm: str, at: datetime) -> AttributionContext | None:
        covering = [c for c in self._contexts.get(device_tag_norm, []) if c.covers(at)]
        if not covering:
            return None
        covering.sort(key=lambda c: c.started_at or _EPOCH, reverse=True)
        if len(covering) > 1:
            logger.info(
                "Overlapping contexts for %s at %s; using the most recently started",
                device_tag_norm,
                at.isoformat(),
            )
        return covering[0]


class InMemoryAggregateStore(AggregateStore):
    """Aggregates keyed by idempotency key."""

    def __init__(self):
        self.records: dict[str, SessionAggregate] = {}

    def get(self, key: str) -> SessionAggregate | None:
        return self.records.get(key)

    def upsert(self, aggregate: SessionAggregate) -> None:
        existing = self.records.get(aggregate.idempotency_key)
        if existing is None:
            self.records[aggregate.idempotency_key] = aggregate.model_copy(
                update={"status": STATUS_ACTIVE}
            )
        else:
            self.records[aggregate.idempotency_key] = existing.merge(aggregate)


class InMemoryUnitOfWork(UnitOfWork):
    """
    Transaction scope over the in-memory stores.

    Aggregates are snapshotted on begin() and restored on rollback(); the
    event source and resolver are read-only and shared as-is.
    """

    def __init__(
        self,
        events: InMemoryRawEventSource | None = None,
        contexts: InMemoryContextResolver | None = None,
        aggregates: InMemoryAggregateStore | None = None,
    ):
        self.events = events or InMemoryRawEventSource()
        self.contexts = contexts or InMemoryContextResolver()
        self.aggregates = aggregates or InMemoryAggregateStore()
        self._snapshot: dict[str, SessionAggregate] | None = None
        self._committed = False
        self.commits = 0
        self.rollbacks = 0

    @property
    def committed(self) -> bool:
        return self._committed

    def begin(self) -> None:
        self._snapshot = dict(self.aggregates.records)
        self._committed = False

    def commit(self) -> None:
        self._snapshot = None
        self._committed = True
        self.commits += 1

    def rollback(self) -> None:
        if self._snapshot is not None:
            self.aggregates.records = self._snapshot
            self._snapshot = None
        self.rollbacks += 1

    def close(self) -> None:
        self._snapshot = None
