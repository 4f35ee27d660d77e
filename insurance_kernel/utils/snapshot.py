"""
Entity snapshots and before/after diffs.

A snapshot is the JSON-safe dict of an entity's mapped columns, minus the
row timestamps.  Values are normalized so that a value read back from the
database compares equal to the value that was written:

    Decimal("1000.00") and Decimal("1000")  -> "1000"
    date(2025, 1, 1)                          -> "2025-01-01"
    ContractStatus.ACTIVE and "Actif"         -> "Actif"
    UUID(...)                                 -> its canonical string
"""

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import inspect

from insurance_kernel.db.base import ROW_METADATA_COLUMNS


def snapshot_value(value: Any) -> Any:
    """Normalize one value to its JSON-safe, comparison-stable form."""
    if isinstance(value, Enum):
        return value.value
    if value is None or isinstance(value, (bool, int, str)):
        return value
    if isinstance(value, Decimal):
        # format() avoids the exponent notation normalize() produces for 1000
        return format(value.normalize(), "f")
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, float):
        return format(Decimal(str(value)).normalize(), "f")
    if isinstance(value, dict):
        return {str(k): snapshot_value(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [snapshot_value(v) for v in value]
    raise TypeError(f"Cannot snapshot value of type {type(value).__name__}")


def entity_snapshot(entity: Any, exclude: frozenset[str] = ROW_METADATA_COLUMNS) -> dict[str, Any]:
    """Snapshot every mapped column of an ORM instance."""
    mapper = inspect(entity).mapper
    return {
        attr.key: snapshot_value(getattr(entity, attr.key))
        for attr in mapper.column_attrs
        if attr.key not in exclude
    }


def diff_snapshots(
    before: dict[str, Any],
    after: dict[str, Any],
) -> tuple[dict[str, Any], dict[str, Any]]:
    """
    Return ``(changed_before, changed_after)`` holding only differing keys.

    Both maps have the same key set; both are empty when nothing changed.
    """
    keys = [k for k in after if before.get(k) != after.get(k)]
    keys += [k for k in before if k not in after]
    return (
        {k: before.get(k) for k in keys},
        {k: after.get(k) for k in keys},
    )


def _display(value: Any) -> str:
    return "∅" if value is None else str(value)


def describe_changes(changed_before: dict[str, Any], changed_after: dict[str, Any]) -> str:
    """Human-readable summary: ``statut: Actif → Renouvelé; date_fin: ...``."""
    return "; ".join(
        f"{key}: {_display(changed_before.get(key))} → {_display(changed_after.get(key))}"
        for key in changed_after
    )
