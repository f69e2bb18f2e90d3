# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache

from dotenv import load_dotenv
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised when required configuration is missing or invalid."""


class DatabaseSettings(BaseSettings):
    """Connection settings for the event and aggregate store."""

    model_config = SettingsConfigDict(env_prefix="DATABASE_")

    url: str = Field(..., description="PostgreSQL connection string (DATABASE_URL)")
    connect_timeout: int = Field(default=10, description="Connect timeout in seconds")
    schema_name: str = Field(default="public", description="Schema holding all three tables")
    statement_timeout_ms: int = Field(
        default=30_000, description="Per-statement timeout applied to every connection"
    )

    @property
    def connection_string(self) -> str:
        """Connection string with connect_timeout added if not present."""
        if "connect_timeout" in self.url:
            return self.url
        separator = "&" if "?" in self.url else "?"
        return f"{self.url}{separator}connect_timeout={self.connect_timeout}"


class BuilderSettings(BaseSettings):
    """Session builder settings."""

    model_config = SettingsConfigDict(env_prefix="CHAD_")

    window_minutes: int = Field(default=30, gt=0, description="Window length in minutes")
    namespace: str = Field(default="chad", description="Idempotency key namespace")
    fallback_device_tag: str = Field(
        default="studio-terminals", description="Device tag used when an event has none"
    )
    resolver_workers: int = Field(
        default=1,
        ge=1,
        description=(
            "Threads used to resolve attributions within a cycle. The PostgreSQL "
            "resolver shares one connection, so its lookups still run one at a time"
        ),
    )
    run_on_start: bool = Field(
        default=True, description="Run one cycle immediately before waiting for a boundary"
    )


class HeartbeatSettings(BaseSettings):
    """Liveness endpoint settings."""

    model_config = SettingsConfigDict(env_prefix="CHAD_HEARTBEAT_")

    host: str = Field(default="0.0.0.0", description="Bind address")
    port: int = Field(default=5401, description="Listen port")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    builder: BuilderSettings = Field(default_factory=BuilderSettings)
    heartbeat: HeartbeatSettings = Field(default_factory=HeartbeatSettings)

    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.

    Raises:
        ConfigurationError: If DATABASE_URL (or any other required value) is missing
    """
    try:
        return Settings()
    except ValidationError as e:
        missing = [
            "_".join(str(part) for part in err["loc"]).upper()
            for err in e.errors()
            if err["type"] == "missing"
        ]
        if any(name.endswith("URL") for name in missing):
            raise ConfigurationError("DATABASE_URL environment variable is required") from e
        raise ConfigurationError(f"Invalid configuration: {e}") from e
