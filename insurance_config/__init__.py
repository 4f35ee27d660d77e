"""
insurance_config -- single public entrypoint for back-office configuration.

Responsibility:
    ``get_active_settings()`` is the only way to obtain configuration at
    runtime.  It reads the YAML file (the packaged default unless a path
    is given), applies the DATABASE_URL / INSURANCE_LOG_LEVEL environment
    overrides and returns a frozen ``Settings`` carrying the
    ``CapabilityTable``.

Architecture position:
    Configuration.  Sits above ``insurance_kernel`` and below
    ``insurance_services``.  The kernel never imports from here; the
    bridges module hands settings to the kernel.

Failure modes:
    - ``FileNotFoundError`` -- configuration file missing.
    - ``ValueError`` -- schema or capability-table validation failure.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

from insurance_config.loader import load_settings
from insurance_config.schema import (
    CapabilityTable,
    DatabaseSettings,
    LoggingSettings,
    Settings,
)

_logger = logging.getLogger("insurance_kernel.config")

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults" / "backoffice.yaml"


def get_active_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """
    The ONLY public configuration entrypoint.

    Args:
        config_path: YAML file to read.  Defaults to the packaged
            defaults/backoffice.yaml.
        environ: Environment used for overrides.  Defaults to os.environ.

    Returns:
        Frozen Settings.  Not cached; callers hold it for the process.
    """
    path = config_path or DEFAULT_CONFIG_PATH
    settings = load_settings(path, os.environ if environ is None else environ)
    _logger.info(
        "config_loaded",
        extra={
            "path": str(path),
            "checksum": settings.checksum,
            "dialect": settings.database.url.split(":", 1)[0],
            "log_level": settings.logging.level,
            "role_count": len(settings.capabilities.roles),
            "operation_count": len(settings.capabilities.operations),
        },
    )
    return settings


__all__ = [
    "CapabilityTable",
    "DatabaseSettings",
    "DEFAULT_CONFIG_PATH",
    "LoggingSettings",
    "Settings",
    "get_active_settings",
]
