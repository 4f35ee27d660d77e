"""
Module: insurance_kernel.models.premium
Responsibility: ORM persistence for premium instalments due on a contract.
Architecture position: Kernel > Models.  May import from db/ and
    domain/lifecycle.py only.

Invariants enforced:
    - statut follows PREMIUM_TRANSITIONS; Payée is terminal.
    - montant >= 0.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase, UUIDString
from insurance_kernel.db.types import Money
from insurance_kernel.domain.lifecycle import PremiumStatus


class Premium(TrackedBase):
    """One premium call (avis d'échéance) on a contract."""

    __tablename__ = "premiums"

    __table_args__ = (
        Index("idx_premium_contract_due", "id_contrat", "date_echeance"),
        Index("idx_premium_statut", "statut"),
    )

    id_contrat: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=False,
    )

    montant: Mapped[Money] = mapped_column(nullable=False)
    date_echeance: Mapped[date] = mapped_column(nullable=False)

    statut: Mapped[PremiumStatus] = mapped_column(
        String(50),
        nullable=False,
        default=PremiumStatus.PENDING,
    )

    date_paiement: Mapped[date | None] = mapped_column(nullable=True)
    mode_paiement: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_paiement: Mapped[str | None] = mapped_column(String(100), nullable=True)
