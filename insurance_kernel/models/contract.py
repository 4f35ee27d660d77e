"""
Module: insurance_kernel.models.contract
Responsibility: ORM persistence for insurance contracts (polices).
Architecture position: Kernel > Models.  May import from db/ and
    domain/lifecycle.py only.

Invariants enforced:
    - numero_contrat is globally unique (uq_contract_numero).
    - statut follows CONTRACT_TRANSITIONS (enforced by ContractService, not
      here).
    - date_fin > date_debut and montant_prime >= 0 (enforced by
      ContractService on every write).

Audit relevance:
    Every create, update, renewal, cancellation, expiry and deletion of a
    Contract produces a HistoryEvent in the same transaction.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase, UUIDString
from insurance_kernel.db.types import Money, ReferenceNumber
from insurance_kernel.domain.lifecycle import ContractStatus


class Contract(TrackedBase):
    """
    An insurance policy held by a client.

    Guarantees:
        - numero_contrat is globally unique.
        - statut defaults to Actif.

    Non-goals:
        - Expiry is not time-triggered here; ContractService.expire_due_contracts
          is invoked by an external scheduler.
    """

    __tablename__ = "contracts"

    __table_args__ = (
        UniqueConstraint("numero_contrat", name="uq_contract_numero"),
        Index("idx_contract_client", "id_client"),
        Index("idx_contract_statut", "statut"),
        Index("idx_contract_date_fin", "date_fin"),
    )

    numero_contrat: Mapped[ReferenceNumber] = mapped_column(nullable=False)
    date_debut: Mapped[date] = mapped_column(nullable=False)
    date_fin: Mapped[date] = mapped_column(nullable=False)
    montant_prime: Mapped[Money] = mapped_column(nullable=False)

    statut: Mapped[ContractStatus] = mapped_column(
        String(50),
        nullable=False,
        default=ContractStatus.ACTIVE,
    )

    id_client: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("clients.id"),
        nullable=False,
    )

    id_type_assurance: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("insurance_types.id"),
        nullable=False,
    )

    id_compagnie: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("companies.id"),
        nullable=False,
    )

    id_utilisateur_gestionnaire: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("users.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Contract {self.numero_contrat} statut={self.statut}>"
