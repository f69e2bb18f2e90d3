# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Pure domain logic with no I/O.

This module contains:
- Domain models (RawEvent, AttributionContext, Window, Segment, Mode)
- Quarter-hour alignment and mode selection (time_aligner)
- Attribution segmentation (segmenter.Segmenter)
- Session aggregate records and their monotonic merge (aggregates)

The segmenter is imported from its own module because it depends on the
ContextResolver interface in chad.base.
"""

from chad.core.aggregates import SessionAggregate, idempotency_key
from chad.core.models import (
    UNASSIGNED_PROJECT_ID,
    UNASSIGNED_PROJECT_SLUG,
    AttributionContext,
    Mode,
    RawEvent,
    Segment,
    Window,
)
from chad.core.time_aligner import (
    align_to_window_floor,
    mode_for,
    ms_until_next_boundary,
    window_ending_at,
)

__all__ = [
    "UNASSIGNED_PROJECT_ID",
    "UNASSIGNED_PROJECT_SLUG",
    "AttributionContext",
    "Mode",
    "RawEvent",
    "Segment",
    "SessionAggregate",
    "Window",
    "align_to_window_floor",
    "idempotency_key",
    "mode_for",
    "ms_until_next_boundary",
    "window_ending_at",
]
