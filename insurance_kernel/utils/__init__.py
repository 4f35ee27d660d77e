"""Utility modules for the insurance kernel."""

from insurance_kernel.utils.snapshot import (
    describe_changes,
    diff_snapshots,
    entity_snapshot,
    snapshot_value,
)

__all__ = [
    "describe_changes",
    "diff_snapshots",
    "entity_snapshot",
    "snapshot_value",
]
