"""
Application configuration schema.

Frozen dataclasses the loader builds from YAML.  Secrets and endpoint
URLs are normally left empty in files and supplied by environment
variables at load time.
"""

from __future__ import annotations

from dataclasses import dataclass, field

STORAGE_BACKENDS = ("sheets", "sql")


# ---------------------------------------------------------------------------
# Sections
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CatalogConfig:
    """Where the procedure catalog comes from and how it is searched."""

    feed_url: str = ""
    search_threshold: float = 0.4
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class StorageConfig:
    """Saved-DC storage backend."""

    backend: str = "sheets"  # sheets | sql
    sheets_url: str = ""
    database_url: str = "sqlite:///challan.db"
    timeout_seconds: float = 30.0


@dataclass(frozen=True)
class LifecycleConfig:
    overdue_days: int = 7
    delete_password: str | None = None


@dataclass(frozen=True)
class LoggingConfig:
    level: str = "INFO"


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AppConfig:
    """Complete runtime configuration."""

    catalog: CatalogConfig = field(default_factory=CatalogConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    lifecycle: LifecycleConfig = field(default_factory=LifecycleConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    source: str = "defaults"
