# ==============================================================================
# Path Utilities
# ==============================================================================
"""
Project root and schema path lookup.
"""

from pathlib import Path


def get_project_root() -> Path:
    """
    Get the project root directory.

    Looks two levels above the package for pyproject.toml. Falls back to the
    current working directory.
    """
    current = Path(__file__).parent.parent.parent  # utils/paths.py -> chad -> project
    if (current / "pyproject.toml").exists():
        return current
    return Path.cwd()


def get_init_sql_path() -> Path:
    """Path to the schema/init.sql template."""
    return get_project_root() / "schema" / "init.sql"
