# ==============================================================================
# Session Builder Utilities
# ==============================================================================
"""
Shared utilities: configuration, retry policies, versions and paths.

Database helpers live in chad.utils.db and are imported from there directly,
since they pull in the PostgreSQL adapter.
"""

from chad.utils.config import (
    BuilderSettings,
    ConfigurationError,
    DatabaseSettings,
    HeartbeatSettings,
    Settings,
    get_settings,
)
from chad.utils.versions import get_chad_version

__all__ = [
    "BuilderSettings",
    "ConfigurationError",
    "DatabaseSettings",
    "HeartbeatSettings",
    "Settings",
    "get_chad_version",
    "get_settings",
]
