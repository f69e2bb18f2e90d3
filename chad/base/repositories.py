# ==============================================================================
# Repository Abstract Base Classes
# ==============================================================================
"""
Repository ABCs for the session builder's three stores.

These define the "what" (read events, resolve attribution, upsert aggregates)
not the "how". Concrete implementations in infrastructure/ handle the
specifics.

Includes:
- RawEventSource: Read-only range query over raw events
- ContextResolver: Point lookup of the active attribution context
- AggregateStore: Create-or-merge of session aggregates
- UnitOfWork: One transaction scope per cycle, bundling the three above
"""

from abc import ABC, abstractmethod
from datetime import datetime

from chad.core.models import AttributionContext, Mode, RawEvent, Window


class RawEventSource(ABC):
    """Read-only source of raw events."""

    @abstractmethod
    def fetch_window(self, window: Window, mode: Mode) -> list[RawEvent]:
        """
        Fetch events with occurred_at in [window.start, window.end) for one mode.

        Returns:
            Events ordered ascending by occurred_at
        """
        ...


class ContextResolver(ABC):
    """Attribution lookup by normalized device tag and time."""

    @abstractmethod
    def resolve(self, device_tag_norm: str, at: datetime) -> AttributionContext | None:
        """
        Return the context active for the tag at the given instant.

        When several contexts cover the instant, the most recently started wins.
        None means the event is unattributed, which is not an error.
        """
        ...


class AggregateStore(ABC):
    """Store of session aggregates keyed by idempotency key."""

    @abstractmethod
    def get(self, key: str):
        """Return the aggregate stored under key, or None."""
        ...

    @abstractmethod
    def upsert(self, aggregate) -> None:
        """
        Insert the aggregate, or merge it into the existing one with the same key.

        The merge is monotonic (see SessionAggregate.merge) and never changes status.
        """
        ...


class UnitOfWork(ABC):
    """
    One all-or-nothing transaction scope.

    Used as a context manager: leaving the block with an exception rolls back,
    and resources are always released on exit. Leaving it without calling
    commit() also rolls back.
    """

    events: RawEventSource
    contexts: ContextResolver
    aggregates: AggregateStore

    def __enter__(self) -> "UnitOfWork":
        self.begin()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        try:
            if exc_type is not None or not self.committed:
                self.rollback()
        finally:
            self.close()

    @property
    @abstractmethod
    def committed(self) -> bool:
        """Whether commit() has completed in this scope."""
        ...

    @abstractmethod
    def begin(self) -> None:
        """Acquire resources and open the transaction."""
        ...

    @abstractmethod
    def commit(self) -> None:
        """Make all writes in this scope durable."""
        ...

    @abstractmethod
    def rollback(self) -> None:
        """Discard all writes in this scope."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Release resources."""
        ...
