# ==============================================================================
# Time Alignment - Pure Domain Logic
# ==============================================================================
"""
Quarter-hour alignment for windows and mode alternation.

Ticks land on :00, :15, :30 and :45 UTC. The tick time is the end of the
window being processed and its quarter index selects the mode, so the mode
strictly alternates every 15 minutes. Aware datetimes in any offset are
converted to UTC first; naive ones are taken as UTC.
"""

from datetime import datetime, timedelta, timezone

from chad.core.models import Mode, Window

QUARTER_HOUR = timedelta(minutes=15)
DEFAULT_WINDOW = timedelta(minutes=30)

_ONE_MS = timedelta(milliseconds=1)


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def align_to_window_floor(now: datetime) -> datetime:
    """Truncate to the most recent UTC quarter-hour boundary (seconds zeroed)."""
    utc = _to_utc(now)
    minute = (utc.minute // 15) * 15
    return utc.replace(minute=minute, second=0, microsecond=0)


def next_boundary(now: datetime) -> datetime:
    """The first quarter-hour boundary strictly after now."""
    return align_to_window_floor(now) + QUARTER_HOUR


def quarter_index(aligned: datetime) -> int:
    """Quarter-hour index within the UTC hour (0-3)."""
    return _to_utc(aligned).minute // 15


def mode_for(aligned: datetime) -> Mode:
    """Quarters 0 and 2 are internal, 1 and 3 are external."""
    return Mode.INTERNAL if quarter_index(aligned) % 2 == 0 else Mode.EXTERNAL


def window_ending_at(aligned: datetime, length: timedelta = DEFAULT_WINDOW) -> Window:
    """The window whose end is the given boundary."""
    return Window(start=aligned - length, end=aligned)


def ms_until(target: datetime, now: datetime) -> int:
    """Whole milliseconds from now until target, rounded up and at least 1."""
    remaining = _to_utc(target) - _to_utc(now)
    return max(1, -(-remaining // _ONE_MS))


def ms_until_next_boundary(now: datetime) -> int:
    """
    Milliseconds until the next quarter-hour tick, rounded up.

    Always positive: exactly on a boundary this is a full quarter hour.
    Rounding up means a wait of this length never ends before the boundary.
    """
    return ms_until(next_boundary(now), now)
