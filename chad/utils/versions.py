# ==============================================================================
# Version Utilities
# ==============================================================================
"""
Utilities for retrieving package versions.
"""

from importlib.metadata import PackageNotFoundError, version

DEFAULT_VERSION = "2.0.0"


def get_chad_version() -> str:
    """
    Get the chad-session-builder package version.

    Returns:
        Version string (e.g., "2.0.0")
    """
    try:
        return version("chad-session-builder")
    except PackageNotFoundError:
        return DEFAULT_VERSION
