# ==============================================================================
# Session Builder Domain Models
# ==============================================================================
"""
Pydantic models for raw events, attribution contexts, windows and segments.

These models are used for:
- Validating rows read from the raw event and context stores
- Carrying segments from the segmenter to the aggregate writer
- Type safety throughout the application

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field, field_validator

# Attribution key assigned when the resolver finds no context
UNASSIGNED_PROJECT_ID = "UNASSIGNED"
UNASSIGNED_PROJECT_SLUG = "unassigned"


def _as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC; leave aware ones untouched."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Mode(str, Enum):
    """Processing lanes, alternated every quarter hour."""

    INTERNAL = "internal"
    EXTERNAL = "external"


class RawEvent(BaseModel):
    """
    A single raw transcript event. Read-only to the builder.

    Attributes:
        id: Source row identifier, kept as the event reference
        device_tag: Raw device (pc) tag, not normalized
        source_kind: Which lane produced the event ("internal" / "external")
        content: Event payload
        occurred_at: When the event happened (original timestamp)
        project_id / project_slug / user_id: Attribution hints written by the producer
        raw_mode: Context-mode hint written by the producer
        context_version: Version marker of the context the producer saw
    """

    id: int | str = Field(..., description="Source row identifier")
    device_tag: str | None = Field(None, description="Raw device tag")
    source_kind: str = Field(..., description="Lane the event was captured on")
    content: str | None = Field(None, description="Event payload")
    occurred_at: datetime = Field(..., description="Original event timestamp")
    project_id: str | None = Field(None, description="Project hint")
    project_slug: str | None = Field(None, description="Project slug hint")
    user_id: str | None = Field(None, description="User hint")
    raw_mode: str | None = Field(None, description="Context-mode hint")
    context_version: int | None = Field(None, description="Context version marker")
    planning_slug: str | None = Field(None, description="Planning slug hint")
    forge_slug: str | None = Field(None, description="Forge slug hint")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value):
        if isinstance(value, int):
            return value
        return str(value)

    @field_validator("project_id", "user_id", mode="before")
    @classmethod
    def _coerce_optional_str(cls, value):
        return None if value is None else str(value)

    @field_validator("occurred_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return _as_utc(value)

    @classmethod
    def from_db_row(cls, row: dict) -> "RawEvent":
        """Build an event from a dev_transcripts_raw row."""
        return cls(
            id=row["id"],
            device_tag=row.get("pc_tag"),
            source_kind=row["source_type"],
            content=row.get("content"),
            occurred_at=row["original_timestamp"],
            project_id=row.get("project_id"),
            project_slug=row.get("project_slug"),
            user_id=row.get("user_id"),
            raw_mode=row.get("raw_mode"),
            context_version=row.get("context_version"),
            planning_slug=row.get("planning_slug"),
            forge_slug=row.get("forge_slug"),
        )


class AttributionContext(BaseModel):
    """The project/user/mode active for a device tag, valid over [started_at, ended_at)."""

    project_id: str | None = None
    project_slug: str | None = None
    project_name: str | None = None
    user_id: str | None = None
    context_mode: str | None = None
    started_at: datetime | None = None
    ended_at: datetime | None = None

    @field_validator("project_id", "user_id", mode="before")
    @classmethod
    def _coerce_optional_str(cls, value):
        return None if value is None else str(value)

    @field_validator("started_at", "ended_at")
    @classmethod
    def _utc(cls, value: datetime | None) -> datetime | None:
        return None if value is None else _as_utc(value)

    def covers(self, at: datetime) -> bool:
        """True if this context is active at the given instant."""
        at = _as_utc(at)
        if self.started_at is not None and self.started_at > at:
            return False
        return self.ended_at is None or self.ended_at > at


class Window(BaseModel):
    """Half-open processing window [start, end)."""

    model_config = {"frozen": True}

    start: datetime
    end: datetime

    def contains(self, at: datetime) -> bool:
        return self.start <= at < self.end


class Segment(BaseModel):
    """
    A maximal run of consecutive events sharing one attribution key.

    Identity is (mode, attribution_key, segment_start, segment_end).
    """

    attribution_key: str = Field(..., description="Resolved project id or the sentinel")
    project_slug: str
    user_id: str | None = None
    device_tag: str | None = None
    mode: Mode
    lane: str
    segment_start: datetime
    segment_end: datetime | None = None
    events: list[RawEvent] = Field(default_factory=list)
    context_versions: list[int] = Field(default_factory=list)

    @property
    def event_count(self) -> int:
        """Number of events in the segment."""
        return len(self.events)

    @property
    def event_refs(self) -> list[int | str]:
        """Event ids in time order."""
        return [e.id for e in self.events]

    @property
    def last_event_at(self) -> datetime:
        """Timestamp of the final event."""
        return self.events[-1].occurred_at
