"""Storage backend selection from configuration."""

from __future__ import annotations

from challan_config.schema import StorageConfig
from challan_kernel.db.engine import create_tables, get_session_factory, init_engine_from_url
from challan_kernel.logging_config import get_logger
from challan_kernel.services.dc_store import DcStore
from challan_storage.sheets_store import SheetsDcStore
from challan_storage.sql_store import SqlDcStore

logger = get_logger("storage.factory")


def build_store(config: StorageConfig) -> DcStore:
    """``SheetsDcStore`` or ``SqlDcStore`` per ``config.backend``.

    The SQL backend initializes the engine and creates missing tables.
    """
    if config.backend == "sql":
        init_engine_from_url(config.database_url)
        create_tables()
        store: DcStore = SqlDcStore(get_session_factory())
    elif config.backend == "sheets":
        store = SheetsDcStore(config.sheets_url, timeout=config.timeout_seconds)
    else:
        raise ValueError(f"Unknown storage backend: {config.backend!r}")
    logger.info("store_built", extra={"backend": config.backend})
    return store
