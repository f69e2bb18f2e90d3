# ==============================================================================
# Tests for the Session Cycle — builder/cycle.py
# ==============================================================================
"""
End-to-end cycle tests over the in-memory unit of work.

Tests cover:
- Window and mode selection from the tick time
- Filtering by window bounds and source kind
- Idempotent re-runs
- Rollback and error reporting on failure
"""

import logging
from datetime import datetime, timedelta, timezone

from chad.base.repositories import ContextResolver
from chad.builder.cycle import CycleResult, SessionCycle, _precision
from chad.core.models import Mode
from chad.infrastructure.repositories.memory import InMemoryUnitOfWork


def _at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2026, 10, 17, hour, minute, second, tzinfo=timezone.utc)


class ExplodingResolver(ContextResolver):
    def resolve(self, device_tag_norm, at):
        raise ConnectionError("context store unavailable")


def _cycle(uow) -> SessionCycle:
    return SessionCycle(lambda: uow)


# ==============================================================================
# Window selection
# ==============================================================================


class TestCycleWindow:
    """Tests for tick alignment, mode and window bounds."""

    def test_tick_at_half_past_processes_internal_window(self, uow, event_source, make_event):
        event_source.add(
            make_event(_at(10, 5)),
            make_event(_at(10, 10)),
            make_event(_at(10, 20)),
        )

        result = _cycle(uow).run(_at(10, 30))

        assert result.ok
        assert result.tick_time == _at(10, 30)
        assert result.mode is Mode.INTERNAL
        assert (result.window.start, result.window.end) == (_at(10, 0), _at(10, 30))
        assert (result.event_count, result.segment_count, result.written) == (3, 2, 2)
        assert uow.commits == 1

    def test_unaligned_now_is_floored(self, uow):
        result = _cycle(uow).run(_at(10, 44, 59))
        assert result.tick_time == _at(10, 30)

    def test_quarter_past_processes_external(self, uow, event_source, make_event):
        event_source.add(
            make_event(_at(9, 50), source_kind="external"),
            make_event(_at(10, 2), source_kind="internal"),
        )

        result = _cycle(uow).run(_at(10, 15))

        assert result.mode is Mode.EXTERNAL
        assert result.event_count == 1
        (record,) = uow.aggregates.records.values()
        assert record.mode is Mode.EXTERNAL
        assert record.idempotency_key.startswith("chad:external:")

    def test_events_outside_window_or_lane_ignored(self, uow, event_source, make_event):
        event_source.add(
            make_event(_at(9, 59, 59)),
            make_event(_at(10, 12), source_kind="external"),
            make_event(_at(10, 30)),
        )

        result = _cycle(uow).run(_at(10, 30))

        assert result.event_count == 0
        assert uow.aggregates.records == {}

    def test_custom_window_length(self, uow, event_source, make_event):
        event_source.add(make_event(_at(9, 20)))
        result = SessionCycle(lambda: uow, window_length=timedelta(hours=1)).run(_at(10, 0))
        assert result.window.start == _at(9, 0)
        assert result.event_count == 1


# ==============================================================================
# Idempotency and empty input
# ==============================================================================


class TestCycleWrites:
    """Tests for what a cycle leaves in the aggregate store."""

    def test_empty_window_writes_nothing(self, uow):
        result = _cycle(uow).run(_at(10, 30))

        assert result.ok
        assert result.written == 0
        assert uow.aggregates.records == {}
        assert uow.commits == 1

    def test_rerun_keeps_one_record_per_identity(self, uow, event_source, make_event):
        event_source.add(make_event(_at(10, 5)), make_event(_at(10, 20)))
        cycle = _cycle(uow)

        cycle.run(_at(10, 30))
        before = dict(uow.aggregates.records)
        cycle.run(_at(10, 30))

        assert uow.aggregates.records == before
        assert all(r.raw_count == 1 for r in before.values())

    def test_parallel_resolution(self, event_source, resolver, make_event):
        uow = InMemoryUnitOfWork(events=event_source, contexts=resolver)
        event_source.add(*(make_event(_at(10, m)) for m in range(0, 30, 2)))

        result = SessionCycle(lambda: uow, resolver_workers=4).run(_at(10, 30))

        assert result.segment_count == 2
        counts = sorted(r.raw_count for r in uow.aggregates.records.values())
        assert counts == [7, 8]


# ==============================================================================
# Failure handling
# ==============================================================================


class TestCycleFailure:
    """Tests for rollback on error."""

    def test_resolver_failure_rolls_back(self, event_source, make_event, caplog):
        uow = InMemoryUnitOfWork(events=event_source, contexts=ExplodingResolver())
        event_source.add(make_event(_at(10, 5)))

        with caplog.at_level(logging.ERROR, logger="chad.builder.cycle"):
            result = _cycle(uow).run(_at(10, 30))

        assert not result.ok
        assert result.error == "ConnectionError: context store unavailable"
        assert result.written == 0
        assert uow.commits == 0
        assert uow.rollbacks == 1
        assert uow.aggregates.records == {}
        assert "rolled back" in caplog.text

    def test_failure_keeps_earlier_records(self, uow, event_source, make_event):
        event_source.add(make_event(_at(10, 5)))
        _cycle(uow).run(_at(10, 30))
        before = dict(uow.aggregates.records)

        uow.contexts = ExplodingResolver()
        result = _cycle(uow).run(_at(10, 30))

        assert not result.ok
        assert uow.aggregates.records == before

    def test_factory_failure_is_reported(self):
        def factory():
            raise OSError("no route to host")

        result = SessionCycle(factory).run(_at(10, 30))

        assert result.error == "OSError: no route to host"
        assert result.duration_ms >= 0


# ==============================================================================
# Helpers
# ==============================================================================


class TestHelpers:
    def test_precision(self):
        assert _precision(125.0) == 0
        assert _precision(3.5) == 1
        assert _precision(0.25) == 2

    def test_result_ok(self):
        result = CycleResult(tick_time=_at(10, 30), mode=Mode.INTERNAL, window=None)
        assert result.ok
        result.error = "boom"
        assert not result.ok
