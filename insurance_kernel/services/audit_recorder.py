"""
AuditRecorder -- before/after history of every audited mutation.

Responsibility:
    Writes one immutable HistoryEvent per create, update or delete of an
    audited entity, linked to the acting user of the current request.

Architecture position:
    Kernel > Services -- called by AuditedRepository (and by workflows that
    need a custom event type) inside the request transaction.

Invariants enforced:
    - Create: valeurs_apres is the full snapshot, valeurs_avant is NULL.
    - Update: only changed fields appear, in both maps; a zero-change
      update writes nothing.
    - Delete: valeurs_avant is the full snapshot, valeurs_apres is NULL.
    - seq comes from SequenceService (never MAX+1).
    - Same transaction as the mutation: a failed audit write propagates
      and the request's session_scope rolls the mutation back.

Failure modes:
    - AuditWriteError wrapping any SQLAlchemyError raised while persisting
      the event.
"""

from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from insurance_kernel.db.base import ROW_METADATA_COLUMNS
from insurance_kernel.domain.clock import Clock, SystemClock
from insurance_kernel.domain.context import ActorContext
from insurance_kernel.exceptions import AuditWriteError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.history_event import HistoryAction, HistoryEvent
from insurance_kernel.services.sequence_service import SequenceService
from insurance_kernel.utils.snapshot import (
    describe_changes,
    diff_snapshots,
    entity_snapshot,
)

logger = get_logger("services.audit_recorder")


class AuditRecorder:
    """
    Records entity mutations as HistoryEvents.

    The actor is read from the request's ActorContext; it may be None for
    unattended jobs, in which case utilisateur_id is NULL.
    """

    def __init__(
        self,
        session: Session,
        context: ActorContext | None = None,
        clock: Clock | None = None,
    ):
        self._session = session
        self._context = context or ActorContext()
        self._clock = clock or SystemClock()
        self._sequence_service = SequenceService(session)

    @property
    def context(self) -> ActorContext:
        return self._context

    def record_create(
        self,
        entity: Any,
        entity_label: str,
        event_type: str | None = None,
        description: str | None = None,
        exclude: frozenset[str] = ROW_METADATA_COLUMNS,
    ) -> HistoryEvent:
        after = entity_snapshot(entity, exclude)
        return self._write(
            action=HistoryAction.CREATE,
            entity_label=entity_label,
            entity_id=entity.id,
            before=None,
            after=after,
            event_type=event_type,
            description=description or f"{entity_label} créé(e)",
        )

    def record_update(
        self,
        entity: Any,
        entity_label: str,
        before: dict[str, Any],
        event_type: str | None = None,
        description: str | None = None,
        exclude: frozenset[str] = ROW_METADATA_COLUMNS,
    ) -> HistoryEvent | None:
        """
        Diff ``before`` against the entity's current state.

        Returns None, and writes nothing, when no field changed.
        """
        changed_before, changed_after = diff_snapshots(before, entity_snapshot(entity, exclude))
        if not changed_after:
            logger.debug(
                "history_event_skipped_no_change",
                extra={"entity_type": entity_label, "entity_id": str(entity.id)},
            )
            return None

        changes = describe_changes(changed_before, changed_after)
        return self._write(
            action=HistoryAction.UPDATE,
            entity_label=entity_label,
            entity_id=entity.id,
            before=changed_before,
            after=changed_after,
            event_type=event_type,
            description=f"{description} ({changes})" if description else changes,
        )

    def record_delete(
        self,
        entity_label: str,
        entity_id: UUID,
        before: dict[str, Any],
        event_type: str | None = None,
        description: str | None = None,
    ) -> HistoryEvent:
        return self._write(
            action=HistoryAction.DELETE,
            entity_label=entity_label,
            entity_id=entity_id,
            before=before,
            after=None,
            event_type=event_type,
            description=description or f"{entity_label} supprimé(e)",
        )

    def _write(
        self,
        *,
        action: HistoryAction,
        entity_label: str,
        entity_id: UUID,
        before: dict[str, Any] | None,
        after: dict[str, Any] | None,
        event_type: str | None,
        description: str,
    ) -> HistoryEvent:
        actor_id = self._context.get_current_actor_id()
        try:
            seq = self._sequence_service.next_value(SequenceService.HISTORY_EVENT)
            event = HistoryEvent(
                seq=seq,
                type_evenement=event_type or f"{action.value} {entity_label}",
                action=action,
                description=description,
                entite_affectee=entity_label,
                id_entite_affectee=entity_id,
                valeurs_avant=before,
                valeurs_apres=after,
                utilisateur_id=actor_id,
                date_evenement=self._clock.now(),
            )
            self._session.add(event)
            self._session.flush()
        except SQLAlchemyError as exc:
            logger.error(
                "history_event_write_failed",
                extra={"entity_type": entity_label, "entity_id": str(entity_id)},
                exc_info=True,
            )
            raise AuditWriteError(entity_label, entity_id, str(exc)) from exc

        logger.info(
            "history_event_recorded",
            extra={
                "seq": seq,
                "event_type": event.type_evenement,
                "entity_type": entity_label,
                "entity_id": str(entity_id),
                "actor_id": str(actor_id) if actor_id else None,
            },
        )
        return event
