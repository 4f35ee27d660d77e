"""
Module: insurance_kernel.models.indemnification
Responsibility: ORM persistence for the compensation paid on a claim.
Architecture position: Kernel > Models.  May import from db/ and
    domain/lifecycle.py only.

Invariants enforced:
    - At most one indemnification per claim (uq_indemnification_claim).
      IndemnificationService pre-checks and raises DuplicateError; the
      constraint settles concurrent proposals.
    - statut moves strictly forward: En attente de validation -> Validée
      -> Payée.
    - date_paiement, mode_paiement and reference_paiement are only
      populated when statut becomes Payée.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase, UUIDString
from insurance_kernel.db.types import Money
from insurance_kernel.domain.lifecycle import IndemnificationStatus


class Indemnification(TrackedBase):
    """Compensation proposed, validated and paid for one claim."""

    __tablename__ = "indemnifications"

    __table_args__ = (
        UniqueConstraint("id_sinistre", name="uq_indemnification_claim"),
        Index("idx_indemnification_statut", "statut"),
        Index("idx_indemnification_date_paiement", "date_paiement"),
    )

    id_sinistre: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("claims.id"),
        nullable=False,
    )

    montant: Mapped[Money] = mapped_column(nullable=False)
    description_indemnisation: Mapped[str | None] = mapped_column(Text, nullable=True)

    statut: Mapped[IndemnificationStatus] = mapped_column(
        String(50),
        nullable=False,
        default=IndemnificationStatus.PENDING_VALIDATION,
    )

    date_paiement: Mapped[date | None] = mapped_column(nullable=True)
    mode_paiement: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_paiement: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Indemnification {self.id} statut={self.statut}>"
