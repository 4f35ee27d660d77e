"""
ContractService -- insurance contract lifecycle.

Responsibility:
    Creation, partial update, renewal, cancellation, expiry and deletion of
    contracts (polices).  Every status write goes through
    CONTRACT_TRANSITIONS; every mutation is audited in the same
    transaction.

Architecture position:
    Kernel > Services -- imperative shell over AuditedRepository.

Invariants enforced:
    - numero_contrat globally unique (DuplicateError).
    - date_fin > date_debut and montant_prime >= 0 on every write.
    - Client, insurance type, company and manager references must exist.
    - Expiré and Annulé are terminal.
    - Returns frozen ContractInfo DTOs; flush-only.

Failure modes:
    - NotFoundError: contract or a referenced row is missing.
    - DuplicateError: numero_contrat already used.
    - ValidationError: missing/malformed field, bad date ordering,
      renewal date not later than the current end date, cancelling an
      already-cancelled contract.
    - InvalidStateError: the transition table forbids the move.

Audit relevance:
    Renewal, cancellation and expiry carry their own event types
    ("Renouvellement Contrat", "Annulation Contrat", "Expiration Contrat").
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select

from insurance_kernel.domain.dtos import ContractInfo
from insurance_kernel.domain.lifecycle import (
    CONTRACT_TRANSITIONS,
    TERMINAL_CONTRACT_STATUSES,
    ContractStatus,
    check_transition,
    coerce_status,
)
from insurance_kernel.domain.validation import (
    parse_amount,
    parse_date,
    reject_unknown_fields,
    require_date_order,
    require_fields,
    require_non_negative,
)
from insurance_kernel.exceptions import ValidationError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.claim import Claim
from insurance_kernel.models.client import Client
from insurance_kernel.models.contract import Contract
from insurance_kernel.models.document import Document
from insurance_kernel.models.folder import Folder
from insurance_kernel.models.premium import Premium
from insurance_kernel.models.reference import Company, InsuranceType, User
from insurance_kernel.models.vehicle import Vehicle
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.contract")

CONTRACT_LABEL = "Contrat"

# Statuses a contract may be created in.
INITIAL_CONTRACT_STATUSES = frozenset({ContractStatus.ACTIVE, ContractStatus.PENDING})

# Statuses only reachable through their dedicated workflow.
_WORKFLOW_STATUSES = {
    ContractStatus.RENEWED: "renew_contract",
    ContractStatus.CANCELLED: "cancel_contract",
    ContractStatus.EXPIRED: "expire_due_contracts",
}

_UPDATABLE_FIELDS = (
    "numero_contrat",
    "date_debut",
    "date_fin",
    "montant_prime",
    "statut",
    "id_client",
    "id_type_assurance",
    "id_compagnie",
    "id_utilisateur_gestionnaire",
)

_REFERENCES = {
    "id_client": (Client, "Client"),
    "id_type_assurance": (InsuranceType, "TypeAssurance"),
    "id_compagnie": (Company, "Compagnie"),
    "id_utilisateur_gestionnaire": (User, "Utilisateur"),
}


class ContractService(BaseService[Contract]):
    """
    Contract workflows.

    Usage:
        service = ContractService(session, context, clock)
        info = service.create_contract("POL-001", date(2024, 1, 1), ...)
        service.renew_contract(info.id, date(2026, 1, 1))
    """

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.contracts = AuditedRepository(
            session,
            Contract,
            CONTRACT_LABEL,
            self.recorder,
            unique_fields=("numero_contrat",),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_contract(self, contract_id: UUID) -> ContractInfo:
        return to_dto(self.contracts.get(contract_id), ContractInfo)

    def find_by_number(self, numero_contrat: str) -> ContractInfo | None:
        contract = self.contracts.find_one_by(numero_contrat=numero_contrat)
        return to_dto(contract, ContractInfo) if contract else None

    def list_contracts(
        self,
        client_id: UUID | None = None,
        statut: ContractStatus | str | None = None,
    ) -> list[ContractInfo]:
        conditions = []
        if client_id is not None:
            conditions.append(Contract.id_client == client_id)
        if statut is not None:
            conditions.append(
                Contract.statut == coerce_status(ContractStatus, statut).value
            )
        rows = self.contracts.list(*conditions, order_by=Contract.numero_contrat)
        return [to_dto(c, ContractInfo) for c in rows]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _check_references(self, values: dict[str, Any]) -> None:
        for field, (model, label) in _REFERENCES.items():
            if values.get(field) is not None:
                self._require(model, values[field], label)

    @staticmethod
    def _check_terms(date_debut: date, date_fin: date, montant_prime: Decimal) -> None:
        require_date_order(
            date_debut,
            date_fin,
            "date_fin",
            strict=True,
            reason="must be later than date_debut",
        )
        require_non_negative(montant_prime, "montant_prime")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_contract(
        self,
        numero_contrat: str,
        date_debut: date | str,
        date_fin: date | str,
        montant_prime: Decimal | str | int,
        id_client: UUID,
        id_type_assurance: UUID,
        id_compagnie: UUID,
        id_utilisateur_gestionnaire: UUID | None = None,
        statut: ContractStatus | str | None = None,
    ) -> ContractInfo:
        """
        Create a contract, Actif unless ``statut`` says En attente.

        Postconditions:
            - One Contract row and one "Création Contrat" HistoryEvent.
        """
        values: dict[str, Any] = {
            "numero_contrat": numero_contrat,
            "date_debut": date_debut,
            "date_fin": date_fin,
            "montant_prime": montant_prime,
            "id_client": id_client,
            "id_type_assurance": id_type_assurance,
            "id_compagnie": id_compagnie,
            "id_utilisateur_gestionnaire": id_utilisateur_gestionnaire,
        }
        require_fields(values, (
            "numero_contrat", "date_debut", "date_fin", "montant_prime",
            "id_client", "id_type_assurance", "id_compagnie",
        ))
        values["numero_contrat"] = numero_contrat.strip()
        values["date_debut"] = parse_date(date_debut, "date_debut")
        values["date_fin"] = parse_date(date_fin, "date_fin")
        values["montant_prime"] = parse_amount(montant_prime, "montant_prime")
        self._check_terms(values["date_debut"], values["date_fin"], values["montant_prime"])

        initial = (
            ContractStatus.ACTIVE if statut is None
            else coerce_status(ContractStatus, statut)
        )
        if initial not in INITIAL_CONTRACT_STATUSES:
            raise ValidationError(
                "statut", f"a contract cannot be created as '{initial.value}'"
            )
        values["statut"] = initial

        self._check_references(values)
        contract = self.contracts.create(values)

        logger.info(
            "contract_created",
            extra={"numero_contrat": contract.numero_contrat, "statut": initial.value},
        )
        return to_dto(contract, ContractInfo)

    def update_contract(self, contract_id: UUID, changes: dict[str, Any]) -> ContractInfo:
        """
        Partial update.  A status change must be an edge of
        CONTRACT_TRANSITIONS; setting the current status again is ignored.
        Renouvelé, Annulé and Expiré are only set by their workflows.
        """
        reject_unknown_fields(changes, _UPDATABLE_FIELDS)
        contract = self.contracts.get(contract_id)
        changes = dict(changes)

        for required in ("numero_contrat", "date_debut", "date_fin", "montant_prime",
                         "id_client", "id_type_assurance", "id_compagnie"):
            if required in changes and changes[required] is None:
                raise ValidationError(required, "is required")

        if "date_debut" in changes:
            changes["date_debut"] = parse_date(changes["date_debut"], "date_debut")
        if "date_fin" in changes:
            changes["date_fin"] = parse_date(changes["date_fin"], "date_fin")
        if "montant_prime" in changes:
            changes["montant_prime"] = parse_amount(changes["montant_prime"], "montant_prime")
        self._check_terms(
            changes.get("date_debut", contract.date_debut),
            changes.get("date_fin", contract.date_fin),
            changes.get("montant_prime", contract.montant_prime),
        )

        if "statut" in changes:
            target = coerce_status(ContractStatus, changes["statut"])
            if target != ContractStatus(contract.statut) and target in _WORKFLOW_STATUSES:
                raise ValidationError(
                    "statut",
                    f"'{target.value}' is set by {_WORKFLOW_STATUSES[target]}, "
                    "not by a plain update",
                )
            if check_transition(
                CONTRACT_TRANSITIONS, CONTRACT_LABEL, contract.id, contract.statut, target
            ):
                changes["statut"] = target
            else:
                del changes["statut"]

        self._check_references(changes)
        self.contracts.update(contract, changes)
        return to_dto(contract, ContractInfo)

    def renew_contract(
        self,
        contract_id: UUID,
        new_end_date: date | str,
        new_premium: Decimal | str | int | None = None,
    ) -> ContractInfo:
        """
        Extend a contract to ``new_end_date`` and mark it Renouvelé.

        Raises:
            NotFoundError: contract absent.
            ValidationError: new_end_date missing or not later than date_fin,
                or new_premium negative.
            InvalidStateError: contract is Expiré or Annulé.
        """
        contract = self.contracts.get(contract_id)
        if new_end_date is None:
            raise ValidationError("date_fin", "new end date is required")
        end = parse_date(new_end_date, "date_fin")
        if end <= contract.date_fin:
            raise ValidationError(
                "date_fin",
                f"new end date {end.isoformat()} must be later than "
                f"current end date {contract.date_fin.isoformat()}",
            )
        check_transition(
            CONTRACT_TRANSITIONS, CONTRACT_LABEL, contract.id,
            contract.statut, ContractStatus.RENEWED,
        )

        changes: dict[str, Any] = {"date_fin": end, "statut": ContractStatus.RENEWED}
        if new_premium is not None:
            premium = parse_amount(new_premium, "montant_prime")
            require_non_negative(premium, "montant_prime")
            changes["montant_prime"] = premium

        self.contracts.update(
            contract,
            changes,
            event_type="Renouvellement Contrat",
            description=f"Contrat {contract.numero_contrat} renouvelé",
        )
        logger.info(
            "contract_renewed",
            extra={"numero_contrat": contract.numero_contrat, "date_fin": end.isoformat()},
        )
        return to_dto(contract, ContractInfo)

    def cancel_contract(self, contract_id: UUID, reason: str | None = None) -> ContractInfo:
        """
        Cancel a contract.

        Raises:
            ValidationError: already Annulé.
            InvalidStateError: Expiré.
        """
        contract = self.contracts.get(contract_id)
        if ContractStatus(contract.statut) == ContractStatus.CANCELLED:
            raise ValidationError("statut", "contract is already cancelled")
        check_transition(
            CONTRACT_TRANSITIONS, CONTRACT_LABEL, contract.id,
            contract.statut, ContractStatus.CANCELLED,
        )

        description = f"Contrat {contract.numero_contrat} annulé"
        if reason:
            description = f"{description}: {reason}"
        self.contracts.update(
            contract,
            {"statut": ContractStatus.CANCELLED},
            event_type="Annulation Contrat",
            description=description,
        )
        logger.info(
            "contract_cancelled",
            extra={"numero_contrat": contract.numero_contrat},
        )
        return to_dto(contract, ContractInfo)

    def expire_due_contracts(self, as_of: date | None = None) -> list[ContractInfo]:
        """
        Move every non-terminal contract whose date_fin is before ``as_of``
        (default: today) to Expiré.  Invoked by an external scheduler.
        """
        cutoff = as_of or self.clock.today()
        due = self.contracts.list(
            Contract.date_fin < cutoff,
            Contract.statut.not_in([s.value for s in TERMINAL_CONTRACT_STATUSES]),
            order_by=Contract.date_fin,
        )
        expired = []
        for contract in due:
            check_transition(
                CONTRACT_TRANSITIONS, CONTRACT_LABEL, contract.id,
                contract.statut, ContractStatus.EXPIRED,
            )
            self.contracts.update(
                contract,
                {"statut": ContractStatus.EXPIRED},
                event_type="Expiration Contrat",
                description=f"Contrat {contract.numero_contrat} expiré",
            )
            expired.append(to_dto(contract, ContractInfo))

        logger.info(
            "contracts_expired",
            extra={"as_of": cutoff.isoformat(), "count": len(expired)},
        )
        return expired

    def delete_contract(self, contract_id: UUID) -> None:
        """
        Delete a contract that nothing references.

        Raises:
            ValidationError: claims, a folder, premiums, vehicles or
                documents still point at the contract.
        """
        contract = self.contracts.get(contract_id)
        for model, column in (
            (Claim, Claim.id_police),
            (Folder, Folder.id_police),
            (Premium, Premium.id_contrat),
            (Vehicle, Vehicle.id_police),
            (Document, Document.id_police),
        ):
            referenced = self.session.execute(
                select(model.id).where(column == contract.id).limit(1)
            ).first()
            if referenced is not None:
                raise ValidationError(
                    "id_police",
                    f"contract is still referenced by {model.__tablename__}",
                )
        self.contracts.delete(contract)
        logger.info("contract_deleted", extra={"contract_id": str(contract_id)})
