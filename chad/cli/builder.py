# ==============================================================================
# Builder Commands
# ==============================================================================
"""
Commands that run the session builder: the scheduler loop and single ticks.
"""

import json
from datetime import datetime, timezone
from typing import Annotated, Optional

import typer

from chad.base.runner import setup_logging
from chad.cli.shared import C, I, load_settings_or_exit


def builder_run(
    no_immediate: Annotated[
        bool,
        typer.Option("--no-immediate", help="Wait for the next quarter hour before the first tick"),
    ] = False,
) -> None:
    """Run the session builder, ticking every quarter hour until interrupted."""
    from chad.builder.scheduler import TickScheduler
    from chad.infrastructure.clock import SystemClock
    from chad.runner import SessionBuilderRunner, build_cycle

    settings = load_settings_or_exit()
    scheduler = TickScheduler(
        cycle=build_cycle(settings).run,
        clock=SystemClock(),
        run_on_start=settings.builder.run_on_start and not no_immediate,
    )
    SessionBuilderRunner(settings, scheduler=scheduler).run()


def builder_tick(
    at: Annotated[
        Optional[str],
        typer.Option("--at", help="Run for this ISO-8601 time instead of now (UTC if no offset)"),
    ] = None,
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output the cycle result as JSON")
    ] = False,
) -> None:
    """Run a single cycle for the window ending at the current quarter hour."""
    from chad.runner import build_cycle

    settings = load_settings_or_exit()
    setup_logging(settings.log_level)

    if at:
        try:
            now = datetime.fromisoformat(at)
        except ValueError:
            print(f"{C.BRIGHT_RED}{I.CROSS} Invalid --at value: {at}{C.RESET}")
            raise typer.Exit(2)
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
    else:
        now = datetime.now(timezone.utc)

    result = build_cycle(settings).run(now)

    if json_output:
        print(
            json.dumps(
                {
                    "tick_time": result.tick_time.isoformat(),
                    "mode": result.mode.value,
                    "window_start": result.window.start.isoformat(),
                    "window_end": result.window.end.isoformat(),
                    "events": result.event_count,
                    "segments": result.segment_count,
                    "written": result.written,
                    "error": result.error,
                    "duration_ms": round(result.duration_ms, 1),
                },
                indent=2,
            )
        )
    elif result.ok:
        print(
            f"{C.BRIGHT_GREEN}{I.CHECK} {result.mode.value} "
            f"{result.window.start:%H:%M}{I.ARROW}{result.window.end:%H:%M}: "
            f"{result.event_count} events, {result.segment_count} segments, "
            f"{result.written} written{C.RESET}"
        )
    else:
        print(f"{C.BRIGHT_RED}{I.CROSS} Cycle rolled back: {result.error}{C.RESET}")

    if not result.ok:
        raise typer.Exit(1)


def heartbeat_serve(
    port: Annotated[
        Optional[int], typer.Option("--port", "-p", help="Listen port (default CHAD_HEARTBEAT_PORT or 5401)")
    ] = None,
) -> None:
    """Serve the /health liveness endpoint."""
    from chad.heartbeat import serve
    from chad.utils.config import HeartbeatSettings

    heartbeat = HeartbeatSettings()
    setup_logging()
    serve(host=heartbeat.host, port=port or heartbeat.port)
