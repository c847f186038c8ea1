"""
challan_config -- single public entrypoint for runtime configuration.

Responsibility:
    ``get_active_config()`` is the only way the application obtains its
    settings.  It reads the packaged ``default.yaml``, merges an optional
    override file over it, applies ``CHALLAN_*`` environment variables and
    returns a validated, frozen ``AppConfig``.

Failure modes:
    - ``FileNotFoundError`` -- the override file does not exist.
    - ``ValueError`` -- unknown section/key or an out-of-range value.

Audit relevance:
    Every call emits a ``challan_config_loaded`` log entry naming the
    sources used and the selected storage backend.  Secrets are never
    logged; only whether they are set.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Mapping

from challan_config.loader import (
    ENV_OVERRIDES,
    apply_env_overrides,
    load_yaml_file,
    merge_config,
    parse_config,
)
from challan_config.schema import (
    AppConfig,
    CatalogConfig,
    LifecycleConfig,
    LoggingConfig,
    StorageConfig,
)
from challan_kernel.logging_config import get_logger

_logger = get_logger("config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default.yaml"


def get_active_config(
    config_path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """The public configuration entrypoint.

    Args:
        config_path: Optional YAML file layered over the packaged defaults.
        environ: Environment mapping; ``os.environ`` when omitted.
    """
    environ = os.environ if environ is None else environ
    data = load_yaml_file(DEFAULT_CONFIG_PATH)
    sources = ["default.yaml"]
    if config_path is not None:
        data = merge_config(data, load_yaml_file(Path(config_path)))
        sources.append(str(config_path))

    data = apply_env_overrides(data, environ)
    env_used = sorted(k for k in ENV_OVERRIDES if environ.get(k))
    if env_used:
        sources.append("env")

    config = parse_config(data, source="+".join(sources))
    _logger.info(
        "challan_config_loaded",
        extra={
            "source": config.source,
            "env_overrides": env_used,
            "storage_backend": config.storage.backend,
            "catalog_configured": bool(config.catalog.feed_url),
            "storage_configured": bool(config.storage.sheets_url),
            "delete_password_set": config.lifecycle.delete_password is not None,
        },
    )
    return config


__all__ = [
    "AppConfig",
    "CatalogConfig",
    "LifecycleConfig",
    "LoggingConfig",
    "StorageConfig",
    "get_active_config",
]
