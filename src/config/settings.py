# src/config/settings.py
# Centralized configuration for the tracker client and the collector service
# Every value comes from an environment variable with a sensible default,
# so the same code runs in development, tests and production

import os
from typing import Optional
from dataclasses import dataclass, field


def _optional_float(name: str) -> Optional[float]:
    """Read a float environment variable, treating an empty value as unset."""
    value = os.getenv(name, "")
    if not value.strip():
        return None
    return float(value)


@dataclass
class DatabaseConfig:
    """
    Database configuration for the collector.

    The collector stores instances, views and calls in PostgreSQL.
    All tables live inside one schema (default: "track") so the tracker
    can share a database with the application it observes.
    """
    host: str = os.getenv("DB_HOST", "localhost")
    port: int = int(os.getenv("DB_PORT", "5432"))
    name: str = os.getenv("DB_NAME", "app_db")
    user: str = os.getenv("DB_USER", "app_user")
    password: str = os.getenv("DB_PASSWORD", "super_secret_password")

    # Schema holding the tracking tables
    # It is quoted as an identifier in every statement
    schema: str = os.getenv("DB_SCHEMA", "track")

    # Connection pool settings
    min_connections: int = int(os.getenv("DB_POOL_MIN", "2"))
    max_connections: int = int(os.getenv("DB_POOL_MAX", "10"))


@dataclass
class TrackerConfig:
    """
    Settings shared by the view tracker client and the collector routes.
    """
    # Base URL of the collector; relative NewViewURL values are joined to it
    collector_url: str = os.getenv("TRACK_COLLECTOR_URL", "http://localhost:8000")

    # URL prefix under which the collector API is mounted
    api_prefix: str = os.getenv("TRACK_API_PREFIX", "/api/track")

    # Sequence value before the first view (first view = baseline + 1)
    sequence_baseline: int = int(os.getenv("TRACK_SEQUENCE_BASELINE", "0"))

    # Timeout for report POSTs in seconds
    # Empty means no timeout of our own (the transport default applies)
    report_timeout: Optional[float] = field(
        default_factory=lambda: _optional_float("TRACK_REPORT_TIMEOUT")
    )

    # Worker threads sending view reports
    # Each report is sent on its own, so a hung POST only ties up one worker
    report_workers: int = int(os.getenv("TRACK_REPORT_WORKERS", "4"))

    # Reports queued or in flight before new ones are dropped
    report_max_pending: int = int(os.getenv("TRACK_REPORT_MAX_PENDING", "100"))

    # Secret used to sign the client ID cookie
    # Empty means the cookie holds the plain base-36 client ID
    secret_key: str = os.getenv("TRACK_SECRET_KEY", "")


@dataclass
class AppConfig:
    """
    Application-level configuration for the collector process.
    """
    # Environment: development, staging, production
    environment: str = os.getenv("ENVIRONMENT", "development")

    # Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    # Host and port where the collector listens
    api_host: str = os.getenv("API_HOST", "0.0.0.0")
    api_port: int = int(os.getenv("API_PORT", "8000"))

    # Debug mode (development only)
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"


@dataclass
class Settings:
    """
    Main settings object.

    Other modules import the shared instance and read values like:
    - settings.db.schema
    - settings.tracker.api_prefix
    - settings.app.log_level
    """
    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    tracker: TrackerConfig = field(default_factory=TrackerConfig)
    app: AppConfig = field(default_factory=AppConfig)

    def validate(self):
        """
        Validate configuration values.

        Raises:
            ValueError: If any setting is missing or out of range
        """
        # Database settings
        if not self.db.host:
            raise ValueError("DB_HOST is required")
        if not (1 <= self.db.port <= 65535):
            raise ValueError(f"DB_PORT must be between 1 and 65535, got {self.db.port}")
        if not self.db.name:
            raise ValueError("DB_NAME is required")
        if not self.db.schema:
            raise ValueError("DB_SCHEMA is required")
        if self.db.min_connections > self.db.max_connections:
            raise ValueError(
                f"DB_POOL_MIN ({self.db.min_connections}) must not exceed "
                f"DB_POOL_MAX ({self.db.max_connections})"
            )

        # Tracker settings
        if not self.tracker.api_prefix.startswith("/"):
            raise ValueError(f"TRACK_API_PREFIX must start with '/', got {self.tracker.api_prefix}")
        if self.tracker.sequence_baseline < 0:
            raise ValueError(
                f"TRACK_SEQUENCE_BASELINE must be non-negative, got {self.tracker.sequence_baseline}"
            )
        if self.tracker.report_timeout is not None and self.tracker.report_timeout <= 0:
            raise ValueError(
                f"TRACK_REPORT_TIMEOUT must be positive, got {self.tracker.report_timeout}"
            )
        if self.tracker.report_workers < 1:
            raise ValueError(f"TRACK_REPORT_WORKERS must be at least 1, got {self.tracker.report_workers}")
        if self.tracker.report_max_pending < 1:
            raise ValueError(
                f"TRACK_REPORT_MAX_PENDING must be at least 1, got {self.tracker.report_max_pending}"
            )

        # App settings
        if self.app.environment not in ["development", "staging", "production"]:
            raise ValueError(f"ENVIRONMENT must be development, staging, or production, got {self.app.environment}")

        if self.app.log_level not in ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
            raise ValueError(f"LOG_LEVEL must be DEBUG, INFO, WARNING, ERROR, or CRITICAL, got {self.app.log_level}")

        if not (1 <= self.app.api_port <= 65535):
            raise ValueError(f"API_PORT must be between 1 and 65535, got {self.app.api_port}")


# Single settings instance shared by every module
settings = Settings()

# Fail fast on bad configuration, before anything starts
try:
    settings.validate()
except ValueError as e:
    raise RuntimeError(f"Invalid configuration: {e}") from e
