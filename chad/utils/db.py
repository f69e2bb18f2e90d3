# ==============================================================================
# Database Utilities
# ==============================================================================
"""
Development helpers for the session builder's tables.

Renders schema/init.sql (a jinja2 template) and applies it. The statements
are all IF NOT EXISTS, so applying it twice is harmless. Connection attempts
retry with exponential backoff while the database comes up.
"""

import logging
from pathlib import Path

from jinja2 import Template

from chad.infrastructure.repositories.postgresql import connect
from chad.utils.config import Settings, get_settings
from chad.utils.paths import get_init_sql_path
from chad.utils.retry import retry_light, retry_standard

logger = logging.getLogger(__name__)


def get_schema_file() -> Path | None:
    """Get the schema init.sql path, or None if not found."""
    path = get_init_sql_path()
    if path.exists():
        return path
    cwd_path = Path.cwd() / "schema" / "init.sql"
    if cwd_path.exists():
        return cwd_path
    return None


def render_schema_sql(schema_name: str) -> str:
    """Render the schema SQL template with the given schema name."""
    schema_file = get_schema_file()
    if not schema_file:
        raise RuntimeError(
            "Schema file (schema/init.sql) not found. "
            "Make sure you're running from the project root."
        )

    template = Template(schema_file.read_text())
    return template.render(schema_name=schema_name)


@retry_standard(logger)
def ensure_schema(settings: Settings | None = None) -> None:
    """
    Create the raw, context and session-log tables if they do not exist.

    Retries on connection errors (10 attempts, ~60 seconds).
    """
    settings = settings or get_settings()
    schema_name = settings.database.schema_name
    schema_sql = render_schema_sql(schema_name)

    conn = connect(settings)
    try:
        with conn.cursor() as cur:
            cur.execute(schema_sql)
        conn.commit()
        logger.info("Database schema '%s' is ready.", schema_name)
    finally:
        conn.close()


@retry_light(logger)
def wait_for_database(settings: Settings | None = None) -> None:
    """
    Open and close one connection, retrying briefly (3 attempts, ~7 seconds).

    Raises:
        psycopg2.OperationalError: If the database stays unreachable
    """
    conn = connect(settings or get_settings())
    conn.close()
