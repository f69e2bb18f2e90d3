# ==============================================================================
# Database Commands
# ==============================================================================
"""
Database commands for the session builder CLI.
"""

import psycopg2
import typer

from chad.base.runner import setup_logging
from chad.cli.shared import C, I, load_settings_or_exit


def db_init() -> None:
    """Create the raw, context and session-log tables if they do not exist."""
    from chad.utils.db import ensure_schema

    settings = load_settings_or_exit()
    setup_logging(settings.log_level)
    try:
        ensure_schema(settings)
    except (psycopg2.Error, RuntimeError) as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} Schema initialization failed: {e}{C.RESET}")
        raise typer.Exit(1)
    print(f"{C.BRIGHT_GREEN}{I.CHECK} Schema '{settings.database.schema_name}' is ready{C.RESET}")


def db_check() -> None:
    """Check that the database is reachable."""
    from chad.utils.db import wait_for_database

    settings = load_settings_or_exit()
    setup_logging(settings.log_level)
    try:
        wait_for_database(settings)
    except psycopg2.Error as e:
        print(f"{C.BRIGHT_RED}{I.CROSS} PostgreSQL unreachable: {e}{C.RESET}")
        raise typer.Exit(1)
    print(f"{C.BRIGHT_GREEN}{I.CHECK} PostgreSQL is reachable{C.RESET}")
