# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared helpers used across CLI command modules.

This module provides:
- ANSI color codes and status icons
- Settings loading that turns missing configuration into a fatal exit
"""

import sys

import typer

from chad.utils.config import ConfigurationError, Settings, get_settings


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    CYAN = "\033[36m"
    WHITE = "\033[37m"

    BRIGHT_RED = "\033[91m"
    BRIGHT_GREEN = "\033[92m"
    BRIGHT_YELLOW = "\033[93m"


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    ARROW = "→"


# Short aliases
C = Colors
I = Icons


def load_settings_or_exit() -> Settings:
    """
    Load settings, exiting with status 1 if required configuration is missing.

    Raises:
        typer.Exit: With code 1 on ConfigurationError
    """
    try:
        return get_settings()
    except ConfigurationError as e:
        print(f"{C.BRIGHT_RED}[chad] FATAL: {e}{C.RESET}", file=sys.stderr)
        raise typer.Exit(1)


def mask_dsn(dsn: str) -> str:
    """Hide the password in a postgresql:// DSN."""
    if "@" not in dsn or "://" not in dsn:
        return dsn
    scheme, rest = dsn.split("://", 1)
    credentials, host = rest.rsplit("@", 1)
    if ":" in credentials:
        user = credentials.split(":", 1)[0]
        return f"{scheme}://{user}:****@{host}"
    return dsn
