"""
Module: insurance_kernel.models.bank_transaction
Responsibility: ORM persistence for imported bank statement lines and the
    premium or indemnification each one settles.
Architecture position: Kernel > Models.  May import from db/ and
    domain/lifecycle.py only.

Invariants enforced:
    - reference is unique when present (uq_bank_transaction_reference), so
      a statement imported twice is rejected.
    - type_entite_rapprochee, id_entite_rapprochee and date_rapprochement
      are set together, once, by ReconciliationService.reconcile.
    - One entity is settled by at most one transaction
      (uq_bank_transaction_target).
"""

from datetime import date
from uuid import UUID

from sqlalchemy import Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase, UUIDString
from insurance_kernel.db.types import Money
from insurance_kernel.domain.lifecycle import ReconciliationTarget, TransactionType


class BankTransaction(TrackedBase):
    """One line of a bank statement (transaction bancaire)."""

    __tablename__ = "bank_transactions"

    __table_args__ = (
        UniqueConstraint("reference", name="uq_bank_transaction_reference"),
        UniqueConstraint(
            "type_entite_rapprochee",
            "id_entite_rapprochee",
            name="uq_bank_transaction_target",
        ),
        Index("idx_bank_transaction_date", "date_transaction"),
    )

    date_transaction: Mapped[date] = mapped_column(nullable=False)
    montant: Mapped[Money] = mapped_column(nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    reference: Mapped[str | None] = mapped_column(String(255), nullable=True)

    type_transaction: Mapped[TransactionType] = mapped_column(
        String(50),
        nullable=False,
    )

    type_entite_rapprochee: Mapped[ReconciliationTarget | None] = mapped_column(
        String(50),
        nullable=True,
    )
    id_entite_rapprochee: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        nullable=True,
    )
    date_rapprochement: Mapped[date | None] = mapped_column(nullable=True)

    @property
    def is_reconciled(self) -> bool:
        return self.id_entite_rapprochee is not None

    def __repr__(self) -> str:
        return f"<BankTransaction {self.reference or self.id} {self.montant}>"
