"""
HistorySelector -- read access to the HistoryEvent trail.

Responsibility:
    Chronological history of one entity, and a filtered, paged listing
    across all entities for the back-office history screen.

Architecture position:
    Kernel > Selectors.  Read-only.

Ordering:
    Always by seq.  seq is allocated from the locked sequence counter in
    the writing transaction, so it is total even when date_evenement ties.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time
from typing import Any
from uuid import UUID

from sqlalchemy import func, select

from insurance_kernel.exceptions import ValidationError
from insurance_kernel.models.history_event import HistoryAction, HistoryEvent
from insurance_kernel.selectors.base import BaseSelector

MAX_PAGE_SIZE = 500


@dataclass(frozen=True)
class HistoryEventInfo:
    """Read-only view of a HistoryEvent."""

    id: UUID
    seq: int
    type_evenement: str
    action: HistoryAction
    description: str | None
    entite_affectee: str
    id_entite_affectee: UUID
    valeurs_avant: dict[str, Any] | None
    valeurs_apres: dict[str, Any] | None
    utilisateur_id: UUID | None
    date_evenement: datetime

    @classmethod
    def from_model(cls, event: HistoryEvent) -> HistoryEventInfo:
        return cls(
            id=event.id,
            seq=event.seq,
            type_evenement=event.type_evenement,
            action=HistoryAction(event.action),
            description=event.description,
            entite_affectee=event.entite_affectee,
            id_entite_affectee=event.id_entite_affectee,
            valeurs_avant=event.valeurs_avant,
            valeurs_apres=event.valeurs_apres,
            utilisateur_id=event.utilisateur_id,
            date_evenement=event.date_evenement,
        )


def _bound(value: date | datetime | None, upper: bool) -> datetime | None:
    """Turn a date bound into an inclusive datetime bound."""
    if value is None or isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max if upper else time.min)


class HistorySelector(BaseSelector[HistoryEvent]):
    """
    Queries over the audit trail.

    Usage:
        selector = HistorySelector(session)
        events = selector.history_for_entity("Contrat", contract_id)
    """

    def history_for_entity(
        self,
        entite_affectee: str,
        entity_id: UUID,
    ) -> list[HistoryEventInfo]:
        """All events of one entity, oldest first."""
        rows = self.session.execute(
            select(HistoryEvent)
            .where(
                HistoryEvent.entite_affectee == entite_affectee,
                HistoryEvent.id_entite_affectee == entity_id,
            )
            .order_by(HistoryEvent.seq)
        ).scalars().all()
        return [HistoryEventInfo.from_model(e) for e in rows]

    def _filtered(
        self,
        stmt,
        entite_affectee: str | None,
        entity_id: UUID | None,
        utilisateur_id: UUID | None,
        type_evenement: str | None,
        date_from: date | datetime | None,
        date_to: date | datetime | None,
    ):
        if entite_affectee is not None:
            stmt = stmt.where(HistoryEvent.entite_affectee == entite_affectee)
        if entity_id is not None:
            stmt = stmt.where(HistoryEvent.id_entite_affectee == entity_id)
        if utilisateur_id is not None:
            stmt = stmt.where(HistoryEvent.utilisateur_id == utilisateur_id)
        if type_evenement is not None:
            stmt = stmt.where(HistoryEvent.type_evenement == type_evenement)
        lower = _bound(date_from, upper=False)
        upper = _bound(date_to, upper=True)
        if lower is not None and upper is not None and lower > upper:
            raise ValidationError("date_from", "must not be after date_to")
        if lower is not None:
            stmt = stmt.where(HistoryEvent.date_evenement >= lower)
        if upper is not None:
            stmt = stmt.where(HistoryEvent.date_evenement <= upper)
        return stmt

    def list_history(
        self,
        entite_affectee: str | None = None,
        entity_id: UUID | None = None,
        utilisateur_id: UUID | None = None,
        type_evenement: str | None = None,
        date_from: date | datetime | None = None,
        date_to: date | datetime | None = None,
        limit: int = 50,
        offset: int = 0,
        newest_first: bool = True,
    ) -> list[HistoryEventInfo]:
        """
        Filtered, paged listing.

        Raises:
            ValidationError: bad page bounds or an inverted date range.
        """
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError("limit", f"must be between 1 and {MAX_PAGE_SIZE}")
        if offset < 0:
            raise ValidationError("offset", "must be >= 0")

        stmt = self._filtered(
            select(HistoryEvent),
            entite_affectee,
            entity_id,
            utilisateur_id,
            type_evenement,
            date_from,
            date_to,
        )
        order = HistoryEvent.seq.desc() if newest_first else HistoryEvent.seq
        rows = self.session.execute(
            stmt.order_by(order).limit(limit).offset(offset)
        ).scalars().all()
        return [HistoryEventInfo.from_model(e) for e in rows]

    def count_history(
        self,
        entite_affectee: str | None = None,
        entity_id: UUID | None = None,
        utilisateur_id: UUID | None = None,
        type_evenement: str | None = None,
        date_from: date | datetime | None = None,
        date_to: date | datetime | None = None,
    ) -> int:
        stmt = self._filtered(
            select(func.count()).select_from(HistoryEvent),
            entite_affectee,
            entity_id,
            utilisateur_id,
            type_evenement,
            date_from,
            date_to,
        )
        return self.session.execute(stmt).scalar_one()
