# ==============================================================================
# Session Aggregates - Pure Domain Logic
# ==============================================================================
"""
The persisted session-log record and its monotonic merge.

A SessionAggregate is keyed by an idempotency key derived from
(namespace, mode, attribution key, segment start, segment end). Writing the
same segment again merges into the existing record instead of duplicating it:
timestamps only move outward, references are unioned, counts grow only by
references not seen before, and the status stays "active".

The PostgreSQL adapter expresses the same merge as a single
INSERT ... ON CONFLICT statement; the in-memory adapter calls merge()
directly (read-modify-write).
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from chad.core.models import Mode, Segment, Window

# The only status this service ever writes
STATUS_ACTIVE = "active"


def format_timestamp(value: datetime) -> str:
    """UTC ISO-8601 with millisecond precision and a Z suffix."""
    utc = value.astimezone(timezone.utc)
    return utc.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def idempotency_key(
    namespace: str,
    mode: Mode | str,
    attribution_key: str,
    segment_start: datetime,
    segment_end: datetime,
) -> str:
    """Stable key for a segment's aggregate, e.g. chad:internal:P1:2026-...Z:2026-...Z."""
    mode_value = mode.value if isinstance(mode, Mode) else mode
    return ":".join(
        [
            namespace,
            mode_value,
            attribution_key,
            format_timestamp(segment_start),
            format_timestamp(segment_end),
        ]
    )


def _union(existing: list, incoming: list) -> list:
    """Ordered union: existing refs first, then new ones in arrival order."""
    seen = set(existing)
    merged = list(existing)
    for ref in incoming:
        if ref not in seen:
            seen.add(ref)
            merged.append(ref)
    return merged


def _min_optional(a: int | None, b: int | None) -> int | None:
    values = [v for v in (a, b) if v is not None]
    return min(values) if values else None


def _max_optional(a: int | None, b: int | None) -> int | None:
    values = [v for v in (a, b) if v is not None]
    return max(values) if values else None


class SessionAggregate(BaseModel):
    """A dev_session_logs record."""

    idempotency_key: str
    device_tag: str | None = None
    device_tag_norm: str
    project_id: str
    project_slug: str
    user_id: str | None = None
    mode: Mode
    lane: str
    window_start: datetime
    window_end: datetime
    segment_start: datetime
    segment_end: datetime
    first_ts: datetime
    last_ts: datetime
    raw_refs: list[int | str] = Field(default_factory=list)
    raw_count: int = 0
    message_count: int = 0
    context_version_min: int | None = None
    context_version_max: int | None = None
    status: str = STATUS_ACTIVE

    @field_validator("project_id", "user_id", mode="before")
    @classmethod
    def _coerce_optional_str(cls, value):
        return None if value is None else str(value)

    @classmethod
    def from_segment(
        cls,
        segment: Segment,
        window: Window,
        namespace: str,
        device_tag_norm: str,
    ) -> "SessionAggregate":
        """
        Build the record for a closed segment.

        Args:
            segment: Segment with segment_end set
            window: The window the segment was built from
            namespace: Idempotency key namespace
            device_tag_norm: Normalized device tag for the segment

        Returns:
            New aggregate with status "active"
        """
        if segment.segment_end is None:
            raise ValueError("Segment must be closed before it can be written")

        refs = _union([], segment.event_refs)
        versions = segment.context_versions
        return cls(
            idempotency_key=idempotency_key(
                namespace,
                segment.mode,
                segment.attribution_key,
                segment.segment_start,
                segment.segment_end,
            ),
            device_tag=segment.device_tag,
            device_tag_norm=device_tag_norm,
            project_id=segment.attribution_key,
            project_slug=segment.project_slug,
            user_id=segment.user_id,
            mode=segment.mode,
            lane=segment.lane,
            window_start=window.start,
            window_end=window.end,
            segment_start=segment.segment_start,
            segment_end=segment.segment_end,
            first_ts=segment.segment_start,
            last_ts=segment.segment_end,
            raw_refs=refs,
            raw_count=len(refs),
            message_count=len(refs),
            context_version_min=min(versions) if versions else None,
            context_version_max=max(versions) if versions else None,
        )

    def merge(self, incoming: "SessionAggregate") -> "SessionAggregate":
        """
        Merge a later write of the same key into this record.

        Never moves a timestamp backwards, never shrinks a count, and never
        counts a reference twice. Identity fields and status are kept.
        """
        if incoming.idempotency_key != self.idempotency_key:
            raise ValueError(
                f"Cannot merge {incoming.idempotency_key} into {self.idempotency_key}"
            )

        refs = _union(self.raw_refs, incoming.raw_refs)
        added = len(refs) - len(self.raw_refs)
        return self.model_copy(
            update={
                "first_ts": min(self.first_ts, incoming.first_ts),
                "last_ts": max(self.last_ts, incoming.last_ts),
                "segment_end": max(self.segment_end, incoming.segment_end),
                "raw_refs": refs,
                "raw_count": self.raw_count + added,
                "message_count": self.message_count + added,
                "context_version_min": _min_optional(
                    self.context_version_min, incoming.context_version_min
                ),
                "context_version_max": _max_optional(
                    self.context_version_max, incoming.context_version_max
                ),
            }
        )

    def to_db_record(self) -> dict:
        """Convert to the parameter dict used by the upsert statement."""
        record = self.model_dump()
        record["mode"] = self.mode.value
        return record
