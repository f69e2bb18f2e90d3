# ==============================================================================
# Segmenter - Pure Domain Logic
# ==============================================================================
"""
Splits one window's events into segments wherever the attribution changes.

Each event is attributed at its own timestamp through an injected
ContextResolver. Consecutive events with the same attribution key form one
segment; an event that resolves to nothing gets the "UNASSIGNED" key, which
groups like any other key. Segments are contiguous: a closed segment ends
exactly where the next one starts, and the last one ends at its last event.

The segmenter never re-sorts its input. The event store query orders by
occurred_at ascending.
"""

import logging
import re
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor

from chad.base.repositories import ContextResolver
from chad.core.models import (
    UNASSIGNED_PROJECT_ID,
    UNASSIGNED_PROJECT_SLUG,
    AttributionContext,
    Mode,
    RawEvent,
    Segment,
)

logger = logging.getLogger(__name__)

DEFAULT_DEVICE_TAG = "studio-terminals"

_INVALID_TAG_CHARS = re.compile(r"[^a-z0-9-]")


def normalize_device_tag(tag: str | None, fallback: str = DEFAULT_DEVICE_TAG) -> str:
    """Lower-case, replace anything outside [a-z0-9-] with '-', fall back when empty."""
    if not tag:
        return fallback
    return _INVALID_TAG_CHARS.sub("-", tag.lower())


class Segmenter:
    """
    Groups ordered events into attribution segments.

    Attribution lookups are independent reads, so with workers > 1 they run
    on a thread pool. Results are still consumed in event order. A resolver
    that shares a single connection (the PostgreSQL one does) gains nothing
    from extra workers.
    """

    def __init__(
        self,
        resolver: ContextResolver,
        workers: int = 1,
        fallback_device_tag: str = DEFAULT_DEVICE_TAG,
    ):
        """
        Initialize the segmenter.

        Args:
            resolver: Point lookup of the active context for (device tag, time)
            workers: Number of threads for attribution lookups (1 = sequential)
            fallback_device_tag: Tag used for events without one
        """
        self._resolver = resolver
        self._workers = workers
        self._fallback_tag = fallback_device_tag

    def resolve_all(self, events: Sequence[RawEvent]) -> list[AttributionContext | None]:
        """Resolve each event's attribution at its own timestamp, in input order."""

        def _resolve(event: RawEvent) -> AttributionContext | None:
            tag = normalize_device_tag(event.device_tag, self._fallback_tag)
            return self._resolver.resolve(tag, event.occurred_at)

        if self._workers <= 1 or len(events) <= 1:
            return [_resolve(e) for e in events]

        with ThreadPoolExecutor(max_workers=self._workers) as pool:
            # map() yields results in submission order
            return list(pool.map(_resolve, events))

    @staticmethod
    def attribution_key(context: AttributionContext | None) -> str:
        """The project id, or the sentinel when unresolved."""
        if context is None or not context.project_id:
            return UNASSIGNED_PROJECT_ID
        return context.project_id

    def open_segment(
        self, event: RawEvent, context: AttributionContext | None, mode: Mode
    ) -> Segment:
        """Start a segment at the given event."""
        if context is not None:
            key = self.attribution_key(context)
            slug = context.project_slug or UNASSIGNED_PROJECT_SLUG
            user_id = context.user_id or event.user_id
        else:
            key = UNASSIGNED_PROJECT_ID
            slug = UNASSIGNED_PROJECT_SLUG
            user_id = event.user_id

        # Lane priority: resolved context mode, then the event's own hint, then the window mode
        lane = (context.context_mode if context else None) or event.raw_mode or mode.value

        return Segment(
            attribution_key=key,
            project_slug=slug,
            user_id=user_id,
            device_tag=event.device_tag,
            mode=mode,
            lane=lane,
            segment_start=event.occurred_at,
        )

    @staticmethod
    def append_event(segment: Segment, event: RawEvent) -> Segment:
        """Add an event to the open segment."""
        segment.events.append(event)
        if event.context_version is not None:
            segment.context_versions.append(event.context_version)
        return segment

    def segment(self, events: Sequence[RawEvent], mode: Mode) -> list[Segment]:
        """
        Partition ordered events into contiguous attribution segments.

        Args:
            events: Events for one window and mode, ascending by occurred_at
            mode: The window's mode

        Returns:
            Segments in time order; empty when there are no events
        """
        if not events:
            return []

        contexts = self.resolve_all(events)
        unassigned = sum(1 for c in contexts if c is None)
        if unassigned:
            logger.info("%d of %d events have no attribution context", unassigned, len(events))

        segments: list[Segment] = []
        current: Segment | None = None

        for event, context in zip(events, contexts):
            key = self.attribution_key(context)
            if current is None or current.attribution_key != key:
                if current is not None:
                    current.segment_end = event.occurred_at
                    segments.append(current)
                current = self.open_segment(event, context, mode)
            self.append_event(current, event)

        current.segment_end = current.last_event_at
        segments.append(current)
        return segments
