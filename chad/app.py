# ==============================================================================
# Chad Session Builder CLI
# ==============================================================================
"""
Command-line interface for the windowed session builder.

Usage:
    chad --help
    chad run
    chad tick --at 2026-10-17T10:30:00Z
    chad heartbeat --port 5401
    chad config show
    chad db init
    chad db check
"""

import os

import typer

if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

app = typer.Typer(
    name="chad",
    help="Chad session builder CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

from chad.cli.builder import builder_run, builder_tick, heartbeat_serve

app.command("run")(builder_run)
app.command("tick")(builder_tick)
app.command("heartbeat")(heartbeat_serve)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

from chad.cli.config import config_show

config_app.command("show")(config_show)

db_app = typer.Typer(
    help="Database operations",
    no_args_is_help=True,
)
app.add_typer(db_app, name="db")

from chad.cli.db import db_check, db_init

db_app.command("init")(db_init)
db_app.command("check")(db_check)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
