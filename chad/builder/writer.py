# ==============================================================================
# Aggregate Writer
# ==============================================================================
"""
Turns closed segments into session aggregates and upserts them.

The writer runs inside the cycle's unit of work: it never commits, never
rolls back and never touches any store other than the aggregate store it is
given. If one upsert fails the exception propagates and the unit of work
discards every write of the cycle.
"""

import logging
from collections.abc import Sequence

from chad.base.repositories import AggregateStore
from chad.core.aggregates import SessionAggregate
from chad.core.models import Segment, Window
from chad.core.segmenter import DEFAULT_DEVICE_TAG, normalize_device_tag

logger = logging.getLogger(__name__)


class AggregateWriter:
    """Applies one cycle's segments as idempotent upserts."""

    def __init__(self, namespace: str = "chad", fallback_device_tag: str = DEFAULT_DEVICE_TAG):
        self._namespace = namespace
        self._fallback_tag = fallback_device_tag

    def build(self, segment: Segment, window: Window) -> SessionAggregate:
        """Build the aggregate record for one segment."""
        return SessionAggregate.from_segment(
            segment,
            window,
            namespace=self._namespace,
            device_tag_norm=normalize_device_tag(segment.device_tag, self._fallback_tag),
        )

    def write(self, store: AggregateStore, segments: Sequence[Segment], window: Window) -> int:
        """
        Upsert every segment.

        Args:
            store: Aggregate store bound to the cycle's transaction
            segments: Closed segments in time order
            window: The window they were built from

        Returns:
            Number of upserts issued
        """
        written = 0
        for segment in segments:
            aggregate = self.build(segment, window)
            store.upsert(aggregate)
            logger.debug(
                "Upserted %s (%d events)", aggregate.idempotency_key, aggregate.raw_count
            )
            written += 1
        return written
