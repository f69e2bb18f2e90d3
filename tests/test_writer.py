# ==============================================================================
# Tests for the Aggregate Writer — builder/writer.py
# ==============================================================================
"""
Tests for idempotent writes against the in-memory aggregate store.
"""

from datetime import datetime, timezone

import pytest

from chad.builder.writer import AggregateWriter
from chad.core.aggregates import STATUS_ACTIVE
from chad.core.models import Mode, Window
from chad.core.segmenter import Segmenter
from chad.infrastructure.repositories.memory import InMemoryAggregateStore, InMemoryUnitOfWork


def _at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2026, 10, 17, hour, minute, second, tzinfo=timezone.utc)


WINDOW = Window(start=_at(10, 0), end=_at(10, 30))


@pytest.fixture()
def segments(resolver, make_event):
    events = [make_event(_at(10, 5)), make_event(_at(10, 10)), make_event(_at(10, 20))]
    return Segmenter(resolver).segment(events, Mode.INTERNAL)


class TestAggregateWriter:
    """Tests for AggregateWriter."""

    def test_writes_one_record_per_segment(self, segments):
        store = InMemoryAggregateStore()
        written = AggregateWriter().write(store, segments, WINDOW)

        assert written == 2
        assert sorted(store.records) == sorted(
            [
                "chad:internal:P1:2026-10-17T10:05:00.000Z:2026-10-17T10:20:00.000Z",
                "chad:internal:P2:2026-10-17T10:20:00.000Z:2026-10-17T10:20:00.000Z",
            ]
        )

    def test_rerun_is_idempotent(self, segments):
        store = InMemoryAggregateStore()
        writer = AggregateWriter()
        writer.write(store, segments, WINDOW)
        first = dict(store.records)

        writer.write(store, segments, WINDOW)

        assert store.records == first

    def test_rerun_with_new_events_extends_record(self, resolver, make_event):
        store = InMemoryAggregateStore()
        writer = AggregateWriter()
        e1, e2 = make_event(_at(10, 16)), make_event(_at(10, 17))
        seg = Segmenter(resolver).segment([e1, e2], Mode.INTERNAL)
        writer.write(store, seg, WINDOW)

        # Same identity, one ref already stored plus one new one
        extended = seg[0].model_copy(deep=True)
        extended.events = [e2, make_event(_at(10, 16, 30))]
        writer.write(store, [extended], WINDOW)

        (record,) = store.records.values()
        assert record.raw_refs == [e1.id, e2.id, extended.events[1].id]
        assert record.raw_count == 3
        assert record.status == STATUS_ACTIVE

    def test_namespace_and_fallback_tag(self, resolver, make_event):
        store = InMemoryAggregateStore()
        seg = Segmenter(resolver).segment([make_event(_at(10, 3), device_tag=None)], Mode.INTERNAL)

        AggregateWriter(namespace="studio", fallback_device_tag="lab").write(store, seg, WINDOW)

        (record,) = store.records.values()
        assert record.idempotency_key.startswith("studio:internal:UNASSIGNED:")
        assert record.device_tag_norm == "lab"

    def test_failure_inside_unit_of_work_leaves_nothing(self, segments):
        class FailingStore(InMemoryAggregateStore):
            def upsert(self, aggregate):
                if aggregate.project_id == "P2":
                    raise RuntimeError("disk full")
                super().upsert(aggregate)

        store = FailingStore()
        uow = InMemoryUnitOfWork(aggregates=store)

        with pytest.raises(RuntimeError):
            with uow:
                AggregateWriter().write(uow.aggregates, segments, WINDOW)
                uow.commit()

        assert store.records == {}
        assert uow.rollbacks == 1
        assert uow.commits == 0
