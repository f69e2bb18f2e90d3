# ==============================================================================
# PostgreSQL Repository Implementations
# ==============================================================================
"""
PostgreSQL implementations of the repository interfaces.

Provides:
- PostgreSQLRawEventSource: Window range query over dev_transcripts_raw (read-only)
- PostgreSQLContextResolver: Point lookup in dev_user_context
- PostgreSQLAggregateStore: Monotonic upsert into dev_session_logs
- PostgreSQLUnitOfWork: One connection and one transaction per cycle

All three repositories share the unit of work's connection, so a cycle's
reads and writes happen inside a single transaction.
"""

import logging
from datetime import datetime

import psycopg2
from psycopg2.extras import Json, RealDictCursor

from chad.base.repositories import (
    AggregateStore,
    ContextResolver,
    RawEventSource,
    UnitOfWork,
)
from chad.core.aggregates import SessionAggregate
from chad.core.models import AttributionContext, Mode, RawEvent, Window
from chad.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

RAW_EVENTS_TABLE = "dev_transcripts_raw"
CONTEXT_TABLE = "dev_user_context"
SESSION_LOGS_TABLE = "dev_session_logs"


def connect(settings: Settings):
    """Open a connection with connect and statement timeouts applied."""
    db = settings.database
    return psycopg2.connect(
        db.connection_string,
        options=f"-c statement_timeout={db.statement_timeout_ms}",
    )


class PostgreSQLRawEventSource(RawEventSource):
    """Reads raw events. Never writes to the source table."""

    def __init__(self, conn, schema: str = "public"):
        self._conn = conn
        self._schema = schema

    def fetch_window(self, window: Window, mode: Mode) -> list[RawEvent]:
        with self._conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                SELECT
                    id, pc_tag, source_type, content, original_timestamp,
                    project_slug, project_id, user_id, mode AS raw_mode,
                    context_version, planning_slug, forge_slug
                FROM {self._schema}.{RAW_EVENTS_TABLE}
                WHERE original_timestamp >= %s
                  AND original_timestamp < %s
                  AND source_type = %s
                ORDER BY original_timestamp ASC
                """,
                (window.start, window.end, mode.value),
            )
            rows = cur.fetchall()
        return [RawEvent.from_db_row(row) for row in rows]


class PostgreSQLContextResolver(ContextResolver):
    """
    Resolves the active dev_user_context row for a tag at an instant.

    Fetches up to two covering rows so overlaps can be reported; the most
    recently started one is used. Lookups go through the unit of work's one
    connection, so concurrent callers are served one query at a time.
    """

    def __init__(self, conn, schema: str = "public"):
        self._conn = conn
        self._schema = schema

    def resolve(self, device_tag_norm: str, at: datetime) -> AttributionContext | None:
        with self._conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                SELECT
                    project_id, project_slug, project_name, user_id,
                    mode AS context_mode, started_at, ended_at
                FROM {self._schema}.{CONTEXT_TABLE}
                WHERE pc_tag_norm = %s
                  AND started_at <= %s
                  AND (ended_at IS NULL OR ended_at > %s)
                ORDER BY started_at DESC
                LIMIT 2
                """,
                (device_tag_norm, at, at),
            )
            rows = cur.fetchall()

        if not rows:
            return None
        if len(rows) > 1:
            logger.info(
                "Overlapping contexts for %s at %s; using the one started at %s",
                device_tag_norm,
                at.isoformat(),
                rows[0]["started_at"],
            )
        return AttributionContext(**rows[0])


class PostgreSQLAggregateStore(AggregateStore):
    """
    Upserts session aggregates with a single INSERT ... ON CONFLICT.

    The DO UPDATE clause mirrors SessionAggregate.merge(): timestamps only
    widen, refs are unioned in order, counts grow by new refs only, and the
    status column is never touched after insert.
    """

    def __init__(self, conn, schema: str = "public"):
        self._conn = conn
        self._schema = schema

    def get(self, key: str) -> SessionAggregate | None:
        with self._conn.cursor(cursor_factory=RealDictCursor) as cur:
            cur.execute(
                f"""
                SELECT
                    idempotency_key, pc_tag AS device_tag, pc_tag_norm AS device_tag_norm,
                    project_id, project_slug, user_id, mode, lane,
                    window_start, window_end, segment_start, segment_end,
                    first_ts, last_ts, raw_refs, raw_count, message_count,
                    context_version_min, context_version_max, status
                FROM {self._schema}.{SESSION_LOGS_TABLE}
                WHERE idempotency_key = %s
                """,
                (key,),
            )
            row = cur.fetchone()
        return SessionAggregate(**row) if row else None

    def upsert(self, aggregate: SessionAggregate) -> None:
        record = aggregate.to_db_record()
        record["raw_refs"] = Json(record["raw_refs"])
        new_refs = (
            "FROM jsonb_array_elements(EXCLUDED.raw_refs) WITH ORDINALITY AS r(ref, ord) "
            "WHERE NOT s.raw_refs @> jsonb_build_array(r.ref)"
        )

        with self._conn.cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO {self._schema}.{SESSION_LOGS_TABLE} AS s (
                    idempotency_key, pc_tag, pc_tag_norm, project_id, project_slug,
                    user_id, mode, lane, window_start, window_end,
                    segment_start, segment_end, first_ts, last_ts,
                    raw_refs, raw_count, message_count,
                    context_version_min, context_version_max, status
                ) VALUES (
                    %(idempotency_key)s, %(device_tag)s, %(device_tag_norm)s,
                    %(project_id)s, %(project_slug)s, %(user_id)s, %(mode)s, %(lane)s,
                    %(window_start)s, %(window_end)s, %(segment_start)s, %(segment_end)s,
                    %(first_ts)s, %(last_ts)s, %(raw_refs)s, %(raw_count)s,
                    %(message_count)s, %(context_version_min)s, %(context_version_max)s,
                    'active'
                )
                ON CONFLICT (idempotency_key) DO UPDATE SET
                    first_ts = LEAST(s.first_ts, EXCLUDED.first_ts),
                    last_ts = GREATEST(s.last_ts, EXCLUDED.last_ts),
                    segment_end = GREATEST(s.segment_end, EXCLUDED.segment_end),
                    raw_refs = s.raw_refs || COALESCE(
                        (SELECT jsonb_agg(r.ref ORDER BY r.ord) {new_refs}), '[]'::jsonb
                    ),
                    raw_count = s.raw_count + (SELECT count(*) {new_refs}),
                    message_count = s.message_count + (SELECT count(*) {new_refs}),
                    context_version_min = LEAST(s.context_version_min, EXCLUDED.context_version_min),
                    context_version_max = GREATEST(s.context_version_max, EXCLUDED.context_version_max),
                    updated_at = NOW()
                """,
                record,
            )


class PostgreSQLUnitOfWork(UnitOfWork):
    """
    One connection, one transaction.

    begin() opens the connection (psycopg2 starts the transaction on the
    first statement); exit rolls back unless commit() succeeded, and always
    closes the connection.
    """

    def __init__(self, settings: Settings | None = None, connect_fn=connect):
        """
        Initialize the unit of work.

        Args:
            settings: Application settings. If None, uses get_settings().
            connect_fn: Connection factory taking settings (injectable for tests)
        """
        self._settings = settings or get_settings()
        self._connect = connect_fn
        self._conn = None
        self._committed = False

    @property
    def committed(self) -> bool:
        return self._committed

    def begin(self) -> None:
        self._conn = self._connect(self._settings)
        self._committed = False
        schema = self._settings.database.schema_name
        self.events = PostgreSQLRawEventSource(self._conn, schema)
        self.contexts = PostgreSQLContextResolver(self._conn, schema)
        self.aggregates = PostgreSQLAggregateStore(self._conn, schema)

    def commit(self) -> None:
        if self._conn is None:
            raise RuntimeError("PostgreSQL connection not established. Call begin() first.")
        self._conn.commit()
        self._committed = True

    def rollback(self) -> None:
        """Rollback current transaction."""
        if self._conn:
            try:
                self._conn.rollback()
            except psycopg2.Error as e:
                logger.warning("Rollback failed (connection will be closed): %s", e)

    def close(self) -> None:
        """Close connection and release resources."""
        if self._conn:
            try:
                self._conn.close()
            except psycopg2.Error as e:
                logger.warning("Error closing connection: %s", e)
            finally:
                self._conn = None


def check_postgresql_connection(settings: Settings | None = None) -> bool:
    """
    Check if PostgreSQL is reachable.

    Args:
        settings: Application settings. If None, uses get_settings().

    Returns:
        True if connection successful, False otherwise
    """
    try:
        conn = connect(settings or get_settings())
        conn.close()
        return True
    except psycopg2.Error as e:
        logger.warning("PostgreSQL connection check failed: %s", e)
        return False
