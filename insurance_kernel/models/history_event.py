"""
Module: insurance_kernel.models.history_event
Responsibility: ORM persistence for the audit trail of entity mutations.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - History rows are append-only; no UPDATE or DELETE (db/immutability.py).
    - seq is monotonically increasing, allocated by SequenceService, so the
      trail has a total order even when date_evenement ties.
    - Create events carry valeurs_apres only; delete events carry
      valeurs_avant only; update events carry both, restricted to the
      changed fields.

Audit relevance:
    HistoryEvent IS the audit trail.  It is written by AuditRecorder in the
    same transaction as the mutation it describes.
"""

from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import Base, UUIDString
from insurance_kernel.db.types import Sequence


class HistoryAction(str, Enum):
    """Kind of mutation recorded."""

    CREATE = "Création"
    UPDATE = "Modification"
    DELETE = "Suppression"


class HistoryEvent(Base):
    """
    One audited mutation.

    Guarantees:
        - type_evenement defaults to "<action> <entity label>" and may be
          overridden by workflows ("Renouvellement Contrat", ...).
        - utilisateur_id is NULL when the mutation had no identified actor.
        - utilisateur_id has no foreign key so history outlives users.
    """

    __tablename__ = "history_events"

    __table_args__ = (
        Index("idx_history_entity", "entite_affectee", "id_entite_affectee"),
        Index("idx_history_user", "utilisateur_id"),
        Index("idx_history_date", "date_evenement"),
        Index("idx_history_seq", "seq"),
    )

    seq: Mapped[Sequence] = mapped_column(nullable=False, unique=True)

    type_evenement: Mapped[str] = mapped_column(String(100), nullable=False)
    action: Mapped[HistoryAction] = mapped_column(String(20), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    entite_affectee: Mapped[str] = mapped_column(String(50), nullable=False)
    id_entite_affectee: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    valeurs_avant: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)
    valeurs_apres: Mapped[dict[str, Any] | None] = mapped_column(nullable=True)

    utilisateur_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)
    date_evenement: Mapped[datetime] = mapped_column(nullable=False)

    def __repr__(self) -> str:
        return (
            f"<HistoryEvent #{self.seq} {self.type_evenement} "
            f"{self.entite_affectee}:{self.id_entite_affectee}>"
        )
