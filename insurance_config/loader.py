"""
Configuration loader (``insurance_config.loader``).

Responsibility
--------------
Reads the YAML configuration file and parses it into the frozen
``insurance_config.schema`` dataclasses.  Runtime callers go through
``insurance_config.get_active_settings()``; this module is the parsing
step behind it.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing or ill-typed keys, capabilities outside the declared
  operation catalogue  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

from insurance_config.schema import (
    WILDCARD,
    CapabilityTable,
    DatabaseSettings,
    LoggingSettings,
    Settings,
)

ENV_DATABASE_URL = "DATABASE_URL"
ENV_LOG_LEVEL = "INSURANCE_LOG_LEVEL"

_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load one YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"{path}: top level must be a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON form of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def _as_bool(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ValueError(f"{key} must be true or false, got {value!r}")
    return value


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{key} must be a non-negative integer, got {value!r}")
    return value


def parse_log_level(value: Any) -> str:
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unknown log level {value!r}")
    return level


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    if not data.get("url"):
        raise ValueError("settings.database.url is required")
    return DatabaseSettings(
        url=str(data["url"]),
        echo=_as_bool(data.get("echo", False), "settings.database.echo"),
        pool_size=_as_int(data.get("pool_size", 10), "settings.database.pool_size"),
        max_overflow=_as_int(data.get("max_overflow", 5), "settings.database.max_overflow"),
    )


def parse_capabilities(
    operations: list[Any],
    roles: dict[str, Any],
) -> CapabilityTable:
    """
    Build the capability table and check it against the operation catalogue.

    Raises:
        ValueError: duplicate operation, empty role name, or a role granted
            an operation that is not declared.
    """
    catalogue = [str(op) for op in operations or []]
    if len(set(catalogue)) != len(catalogue):
        raise ValueError("operations contains duplicates")
    known = frozenset(catalogue)

    table: dict[str, frozenset[str]] = {}
    errors: list[str] = []
    for role, granted in (roles or {}).items():
        if not role:
            errors.append("role name must not be empty")
            continue
        granted_set = frozenset(str(op) for op in granted or [])
        unknown = sorted(granted_set - known - {WILDCARD})
        if unknown:
            errors.append(f"role {role!r} grants undeclared operations: {', '.join(unknown)}")
        table[str(role)] = granted_set
    if errors:
        raise ValueError(
            "Capability table validation failed:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )
    return CapabilityTable(operations=known, roles=table)


def parse_settings(data: dict[str, Any]) -> Settings:
    settings_data = data.get("settings") or {}
    logging_data = settings_data.get("logging") or {}
    return Settings(
        database=parse_database(settings_data.get("database") or {}),
        logging=LoggingSettings(level=parse_log_level(logging_data.get("level", "INFO"))),
        capabilities=parse_capabilities(data.get("operations", []), data.get("roles", {})),
        expose_error_details=_as_bool(
            settings_data.get("expose_error_details", False),
            "settings.expose_error_details",
        ),
        checksum=compute_checksum(data),
    )


def apply_env_overrides(
    data: dict[str, Any],
    environ: Mapping[str, str],
) -> dict[str, Any]:
    """
    Return a copy of ``data`` with DATABASE_URL / INSURANCE_LOG_LEVEL applied.

    Overrides land in the raw mapping, so the checksum reflects the
    effective configuration.
    """
    merged = json.loads(json.dumps(data, default=str))
    settings_data = merged.setdefault("settings", {})
    if environ.get(ENV_DATABASE_URL):
        settings_data.setdefault("database", {})["url"] = environ[ENV_DATABASE_URL]
    if environ.get(ENV_LOG_LEVEL):
        settings_data.setdefault("logging", {})["level"] = environ[ENV_LOG_LEVEL]
    return merged


def load_settings(
    path: Path,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    data = load_yaml_file(path)
    if environ is not None:
        data = apply_env_overrides(data, environ)
    settings = parse_settings(data)
    logging.getLogger("insurance_kernel.config").debug(
        "config_file_parsed", extra={"path": str(path)}
    )
    return settings
