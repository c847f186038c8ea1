"""
Configuration Loader (``challan_config.loader``).

Responsibility
--------------
Reads YAML files, merges them section by section, applies environment
overrides and parses the result into ``challan_config.schema`` types.
Runtime callers use ``challan_config.get_active_config()`` instead.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Unknown keys and out-of-range values raise ``ValueError``; nothing is
  silently ignored.
* Environment variables win over every file.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Bad section or value  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import fields
from pathlib import Path
from typing import Any, Mapping

import yaml

from challan_config.schema import (
    STORAGE_BACKENDS,
    AppConfig,
    CatalogConfig,
    LifecycleConfig,
    LoggingConfig,
    StorageConfig,
)

# environment variable -> (section, key)
ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "CHALLAN_CATALOG_URL": ("catalog", "feed_url"),
    "CHALLAN_STORAGE_URL": ("storage", "sheets_url"),
    "CHALLAN_DATABASE_URL": ("storage", "database_url"),
    "CHALLAN_STORAGE_BACKEND": ("storage", "backend"),
    "CHALLAN_DELETE_PASSWORD": ("lifecycle", "delete_password"),
    "CHALLAN_LOG_LEVEL": ("logging", "level"),
}

_SECTIONS = {
    "catalog": CatalogConfig,
    "storage": StorageConfig,
    "lifecycle": LifecycleConfig,
    "logging": LoggingConfig,
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def merge_config(base: Mapping[str, Any], override: Mapping[str, Any]) -> dict[str, Any]:
    """Section-wise merge; keys in ``override`` replace those in ``base``."""
    merged = {name: dict(section or {}) for name, section in base.items()}
    for name, section in override.items():
        merged.setdefault(name, {}).update(section or {})
    return merged


def apply_env_overrides(data: Mapping[str, Any], environ: Mapping[str, str]) -> dict[str, Any]:
    result = {name: dict(section or {}) for name, section in data.items()}
    for variable, (section, key) in ENV_OVERRIDES.items():
        value = environ.get(variable)
        if value is not None and value != "":
            result.setdefault(section, {})[key] = value
    return result


def _parse_section(name: str, data: Mapping[str, Any]) -> Any:
    cls = _SECTIONS[name]
    known = {f.name: f for f in fields(cls)}
    unknown = set(data) - set(known)
    if unknown:
        raise ValueError(f"Unknown key(s) in '{name}': {', '.join(sorted(unknown))}")

    values: dict[str, Any] = {}
    for key, raw in data.items():
        default = known[key].default
        if raw is None:
            values[key] = None if default is None else default
        elif isinstance(default, bool):
            values[key] = bool(raw)
        elif isinstance(default, int):
            values[key] = int(raw)
        elif isinstance(default, float):
            values[key] = float(raw)
        else:
            values[key] = str(raw)
    return cls(**values)


def _validate(config: AppConfig) -> None:
    if config.storage.backend not in STORAGE_BACKENDS:
        raise ValueError(
            f"storage.backend must be one of {STORAGE_BACKENDS}, got {config.storage.backend!r}"
        )
    if not 0.0 <= config.catalog.search_threshold <= 1.0:
        raise ValueError(
            f"catalog.search_threshold must be within [0, 1], got {config.catalog.search_threshold}"
        )
    if config.lifecycle.overdue_days < 0:
        raise ValueError(
            f"lifecycle.overdue_days must not be negative, got {config.lifecycle.overdue_days}"
        )
    if config.logging.level.upper() not in _LOG_LEVELS:
        raise ValueError(f"logging.level must be one of {_LOG_LEVELS}, got {config.logging.level!r}")


def parse_config(data: Mapping[str, Any], source: str = "defaults") -> AppConfig:
    """Build an ``AppConfig`` from a merged dict."""
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown configuration section(s): {', '.join(sorted(unknown))}")

    sections = {
        name: _parse_section(name, data.get(name) or {}) for name in _SECTIONS
    }
    config = AppConfig(source=source, **sections)
    _validate(config)
    return config
