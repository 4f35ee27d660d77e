"""
Module: insurance_kernel.models.claim
Responsibility: ORM persistence for claims (sinistres) declared against a
    contract.
Architecture position: Kernel > Models.  May import from db/ and
    domain/lifecycle.py only.

Invariants enforced:
    - numero_sinistre is globally unique (uq_claim_numero).
    - statut follows CLAIM_TRANSITIONS; date_incident <= date_declaration;
      date_resolution is only set once statut is Clos (ClaimService).
    - id_dossier becomes NULL when the owning folder is archived.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase, UUIDString
from insurance_kernel.db.types import Money, ReferenceNumber
from insurance_kernel.domain.lifecycle import ClaimStatus


class Claim(TrackedBase):
    """A declared incident, tracked from declaration to closure."""

    __tablename__ = "claims"

    __table_args__ = (
        UniqueConstraint("numero_sinistre", name="uq_claim_numero"),
        Index("idx_claim_contract", "id_police"),
        Index("idx_claim_folder", "id_dossier"),
        Index("idx_claim_statut", "statut"),
    )

    numero_sinistre: Mapped[ReferenceNumber] = mapped_column(nullable=False)
    date_declaration: Mapped[date] = mapped_column(nullable=False)
    date_incident: Mapped[date] = mapped_column(nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    type_sinistre: Mapped[str | None] = mapped_column(String(100), nullable=True)

    statut: Mapped[ClaimStatus] = mapped_column(
        String(50),
        nullable=False,
        default=ClaimStatus.DECLARED,
    )

    montant_estime: Mapped[Money | None] = mapped_column(nullable=True)
    montant_regle: Mapped[Money | None] = mapped_column(nullable=True)
    date_resolution: Mapped[date | None] = mapped_column(nullable=True)

    id_police: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=False,
    )

    id_dossier: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("folders.id"),
        nullable=True,
    )

    id_utilisateur_gestionnaire: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Claim {self.numero_sinistre} statut={self.statut}>"
