# ==============================================================================
# Tests for CLI Builder and Config Commands
# ==============================================================================
"""
Unit tests for `chad tick` and `chad config show`.

Tests cover:
- Fatal exit when DATABASE_URL is missing
- Single-cycle output (text and JSON) and exit codes
- --at parsing
- Password masking in config output

The PostgreSQL-backed cycle is replaced by a cycle over the in-memory unit
of work, so no database is needed.
"""

import json
from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from chad.app import app
from chad.base.repositories import ContextResolver
from chad.builder.cycle import SessionCycle
from chad.cli.shared import mask_dsn

runner = CliRunner()


def _at(hour: int, minute: int, second: int = 0) -> datetime:
    return datetime(2026, 10, 17, hour, minute, second, tzinfo=timezone.utc)


@pytest.fixture()
def env(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://chad:s3cret@db:5432/chad")
    return monkeypatch


@pytest.fixture()
def memory_cycle(uow):
    """Patch the production cycle with one over the in-memory unit of work."""
    cycle = SessionCycle(lambda: uow)
    with patch("chad.runner.build_cycle", return_value=cycle), patch(
        "chad.cli.builder.setup_logging"
    ):
        yield cycle


# ==============================================================================
# Missing configuration
# ==============================================================================


class TestMissingDatabaseUrl:
    """Every command that needs the database exits 1 without DATABASE_URL."""

    @pytest.mark.parametrize(
        "args", [["tick"], ["run"], ["config", "show"], ["db", "init"], ["db", "check"]]
    )
    def test_exits_1(self, monkeypatch, args):
        monkeypatch.delenv("DATABASE_URL", raising=False)
        result = runner.invoke(app, args)
        assert result.exit_code == 1


# ==============================================================================
# chad tick
# ==============================================================================


class TestTick:
    """Tests for `chad tick`."""

    def test_text_output(self, env, memory_cycle, event_source, make_event):
        event_source.add(make_event(_at(10, 5)), make_event(_at(10, 20)))

        result = runner.invoke(app, ["tick", "--at", "2026-10-17T10:30:00Z"])

        assert result.exit_code == 0
        assert "internal 10:00→10:30: 2 events, 2 segments, 2 written" in result.output

    def test_json_output(self, env, memory_cycle, event_source, make_event):
        event_source.add(make_event(_at(9, 50), source_kind="external"))

        result = runner.invoke(app, ["tick", "--at", "2026-10-17T10:15:00+00:00", "--json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["mode"] == "external"
        assert data["window_start"] == "2026-10-17T09:45:00+00:00"
        assert data["events"] == 1
        assert data["written"] == 1
        assert data["error"] is None

    def test_naive_at_is_utc(self, env, memory_cycle):
        result = runner.invoke(app, ["tick", "--at", "2026-10-17T10:44:00", "--json"])
        assert json.loads(result.output)["tick_time"] == "2026-10-17T10:30:00+00:00"

    def test_offset_at_uses_utc_quarter(self, env, memory_cycle):
        result = runner.invoke(app, ["tick", "--at", "2026-10-17T10:15:00+05:45", "--json"])
        data = json.loads(result.output)
        assert data["tick_time"] == "2026-10-17T04:30:00+00:00"
        assert data["mode"] == "internal"

    def test_invalid_at(self, env, memory_cycle):
        result = runner.invoke(app, ["tick", "--at", "half past ten"])
        assert result.exit_code == 2
        assert "Invalid --at value" in result.output

    def test_failed_cycle_exits_1(self, env, memory_cycle, uow, event_source, make_event):
        class Broken(ContextResolver):
            def resolve(self, device_tag_norm, at):
                raise ConnectionError("gone")

        uow.contexts = Broken()
        event_source.add(make_event(_at(10, 5)))

        result = runner.invoke(app, ["tick", "--at", "2026-10-17T10:30:00Z"])

        assert result.exit_code == 1
        assert "Cycle rolled back: ConnectionError: gone" in result.output


# ==============================================================================
# chad config show
# ==============================================================================


class TestConfigShow:
    """Tests for `chad config show`."""

    def test_masks_password(self, env):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "s3cret" not in result.output
        assert "postgresql://chad:****@db:5432/chad" in result.output

    def test_json(self, env):
        env.setenv("CHAD_NAMESPACE", "studio")
        result = runner.invoke(app, ["config", "show", "--json"])
        data = json.loads(result.output)
        assert data["builder"]["namespace"] == "studio"
        assert data["database"]["url"] == "postgresql://chad:****@db:5432/chad"


class TestMaskDsn:
    def test_without_password(self):
        assert mask_dsn("postgresql://chad@db/chad") == "postgresql://chad@db/chad"

    def test_not_a_url(self):
        assert mask_dsn("dbname=chad") == "dbname=chad"
