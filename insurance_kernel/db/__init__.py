"""Database layer - engine, base classes, column types, immutability."""

from insurance_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from insurance_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from insurance_kernel.db.types import Money, ReferenceNumber, Sequence

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "Money",
    "ReferenceNumber",
    "Sequence",
]
