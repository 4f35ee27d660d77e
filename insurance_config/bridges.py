"""
Config -> Kernel bridges.

Turn Settings into kernel calls.  These live in insurance_config because
the kernel must never import it.

Usage:
    from insurance_config import get_active_settings
    from insurance_config.bridges import bootstrap_kernel

    settings = get_active_settings()
    bootstrap_kernel(settings)
"""

from __future__ import annotations

from sqlalchemy import Engine

from insurance_config.schema import Settings
from insurance_kernel.db.engine import create_tables, init_engine_from_url
from insurance_kernel.db.immutability import register_immutability_listeners
from insurance_kernel.logging_config import configure_logging


def init_engine_from_settings(settings: Settings) -> Engine:
    db = settings.database
    return init_engine_from_url(
        db.url,
        echo=db.echo,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
    )


def bootstrap_kernel(settings: Settings, create_schema: bool = False) -> Engine:
    """
    Configure logging, then the engine, from ``settings``, and arm the
    HistoryEvent / Archive immutability listeners.

    Logging goes first: engine initialization would otherwise install the
    default level.  The listeners are registered whether or not the
    schema is created here.
    """
    configure_logging(level=settings.logging.level)
    engine = init_engine_from_settings(settings)
    register_immutability_listeners()
    if create_schema:
        create_tables()
    return engine
