"""
ORM-level immutability enforcement for the audit trail and archives.

SQLAlchemy fires mapper events before UPDATE/DELETE statements reach the
database.  Listeners registered here reject any attempt to change or
remove a HistoryEvent or an Archive:

    session.flush()
         |
         v
    [before_update] --> _reject_update() --> ImmutabilityViolationError
    [before_delete] --> _reject_delete() --> ImmutabilityViolationError
         |
         v
    SQL sent to database (only if checks pass)

The raised error aborts the flush; the request transaction rolls back.

Protected entities:

    Entity        | When immutable
    --------------|----------------------
    HistoryEvent  | ALWAYS (from creation)
    Archive       | ALWAYS (from creation)

Bulk ``session.execute(update(...))`` statements bypass mapper events;
services never issue them against these tables.
"""

from sqlalchemy import event

from insurance_kernel.exceptions import ImmutabilityViolationError
from insurance_kernel.logging_config import get_logger

logger = get_logger("db.immutability")


def _blocked(target, operation: str, reason: str) -> ImmutabilityViolationError:
    entity_type = type(target).__name__
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(target.id),
            "operation": operation,
        },
    )
    return ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(target.id),
        reason=reason,
    )


def _check_history_event_update(mapper, connection, target):
    raise _blocked(target, "UPDATE", "History events are immutable and cannot be modified")


def _check_history_event_delete(mapper, connection, target):
    raise _blocked(target, "DELETE", "History events cannot be deleted")


def _check_archive_update(mapper, connection, target):
    raise _blocked(target, "UPDATE", "Archives are immutable and cannot be modified")


def _check_archive_delete(mapper, connection, target):
    raise _blocked(target, "DELETE", "Archives cannot be deleted")


def _listeners():
    from insurance_kernel.models.folder import Archive
    from insurance_kernel.models.history_event import HistoryEvent

    return (
        (HistoryEvent, "before_update", _check_history_event_update),
        (HistoryEvent, "before_delete", _check_history_event_delete),
        (Archive, "before_update", _check_archive_update),
        (Archive, "before_delete", _check_archive_delete),
    )


def register_immutability_listeners():
    """Register all immutability listeners.  Safe to call repeatedly."""
    for target, event_name, listener_fn in _listeners():
        if not event.contains(target, event_name, listener_fn):
            event.listen(target, event_name, listener_fn)


def _safe_remove_listener(target, event_name, listener_fn):
    """Remove an event listener, ignoring it if not registered."""
    if event.contains(target, event_name, listener_fn):
        event.remove(target, event_name, listener_fn)


def unregister_immutability_listeners():
    """
    Remove immutability listeners.

    WARNING: Only use this in tests that must bypass the guard on purpose.
    """
    for target, event_name, listener_fn in _listeners():
        _safe_remove_listener(target, event_name, listener_fn)
