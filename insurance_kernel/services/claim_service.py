"""
ClaimService -- claim (sinistre) declaration and follow-up.

Responsibility:
    Declares claims against a contract, applies partial updates through
    CLAIM_TRANSITIONS, stamps the resolution date on closure, and removes
    claims that carry no indemnification.

Architecture position:
    Kernel > Services -- imperative shell over AuditedRepository.

Invariants enforced:
    - numero_sinistre globally unique, re-checked when it changes.
    - date_incident <= date_declaration (declaration defaults to today).
    - Status moves strictly forward: Déclaré -> En expertise ->
      Approuvé | Refusé -> Clos.  Clos is terminal.
    - Moving to Clos without a date_resolution stamps today's date;
      date_resolution is refused while the claim is not Clos.
    - montant_estime / montant_regle >= 0.

Failure modes:
    - NotFoundError: claim, contract, folder or manager missing.
    - DuplicateError: numero_sinistre taken.
    - ValidationError: missing/malformed field, date ordering, resolution
      date on an open claim, folder of another contract.
    - InvalidStateError: transition not in the table.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from sqlalchemy import select

from insurance_kernel.domain.dtos import ClaimInfo
from insurance_kernel.domain.lifecycle import (
    CLAIM_TRANSITIONS,
    ClaimStatus,
    check_transition,
    coerce_status,
)
from insurance_kernel.domain.validation import (
    is_blank,
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
from insurance_kernel.models.contract import Contract
from insurance_kernel.models.folder import Folder
from insurance_kernel.models.indemnification import Indemnification
from insurance_kernel.models.reference import User
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.claim")

CLAIM_LABEL = "Sinistre"

_UPDATABLE_FIELDS = (
    "numero_sinistre",
    "date_declaration",
    "date_incident",
    "description",
    "type_sinistre",
    "statut",
    "montant_estime",
    "montant_regle",
    "date_resolution",
    "id_police",
    "id_dossier",
    "id_utilisateur_gestionnaire",
)

_DATE_FIELDS = ("date_declaration", "date_incident", "date_resolution")
_AMOUNT_FIELDS = ("montant_estime", "montant_regle")
_REQUIRED_FIELDS = ("numero_sinistre", "date_declaration", "date_incident", "description", "id_police")


class ClaimService(BaseService[Claim]):
    """Claim workflows."""

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.claims = AuditedRepository(
            session,
            Claim,
            CLAIM_LABEL,
            self.recorder,
            unique_fields=("numero_sinistre",),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_claim(self, claim_id: UUID) -> ClaimInfo:
        return to_dto(self.claims.get(claim_id), ClaimInfo)

    def find_by_number(self, numero_sinistre: str) -> ClaimInfo | None:
        claim = self.claims.find_one_by(numero_sinistre=numero_sinistre)
        return to_dto(claim, ClaimInfo) if claim else None

    def list_claims(
        self,
        contract_id: UUID | None = None,
        folder_id: UUID | None = None,
        statut: ClaimStatus | str | None = None,
    ) -> list[ClaimInfo]:
        conditions = []
        if contract_id is not None:
            conditions.append(Claim.id_police == contract_id)
        if folder_id is not None:
            conditions.append(Claim.id_dossier == folder_id)
        if statut is not None:
            conditions.append(Claim.statut == coerce_status(ClaimStatus, statut).value)
        rows = self.claims.list(
            *conditions, order_by=(Claim.date_declaration, Claim.numero_sinistre)
        )
        return [to_dto(c, ClaimInfo) for c in rows]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _normalize(self, values: dict[str, Any]) -> dict[str, Any]:
        for field in _DATE_FIELDS:
            if field in values:
                values[field] = parse_date(values[field], field)
        for field in _AMOUNT_FIELDS:
            if field in values:
                values[field] = parse_amount(values[field], field)
                require_non_negative(values[field], field)
        if "numero_sinistre" in values and isinstance(values["numero_sinistre"], str):
            values["numero_sinistre"] = values["numero_sinistre"].strip()
        return values

    def _check_references(self, values: dict[str, Any], contract_id: UUID) -> None:
        if values.get("id_police") is not None:
            self._require(Contract, values["id_police"], "Contrat")
        if values.get("id_dossier") is not None:
            folder = self._require(Folder, values["id_dossier"], "Dossier")
            if folder.id_police != contract_id:
                raise ValidationError(
                    "id_dossier", "folder belongs to a different contract"
                )
        if values.get("id_utilisateur_gestionnaire") is not None:
            self._require(User, values["id_utilisateur_gestionnaire"], "Utilisateur")

    @staticmethod
    def _check_dates(
        date_incident: date,
        date_declaration: date,
        date_resolution: date | None,
    ) -> None:
        require_date_order(
            date_incident,
            date_declaration,
            "date_incident",
            strict=False,
            reason="incident cannot be after the declaration date",
        )
        require_date_order(
            date_incident,
            date_resolution,
            "date_resolution",
            strict=False,
            reason="resolution cannot precede the incident",
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_claim(
        self,
        numero_sinistre: str,
        date_incident: date | str,
        description: str,
        id_police: UUID,
        id_dossier: UUID | None = None,
        date_declaration: date | str | None = None,
        type_sinistre: str | None = None,
        montant_estime: Any = None,
        id_utilisateur_gestionnaire: UUID | None = None,
        statut: ClaimStatus | str | None = None,
    ) -> ClaimInfo:
        """
        Declare a claim.  It always starts Déclaré.

        Postconditions:
            - One Claim row and one "Création Sinistre" HistoryEvent.
        """
        if statut is not None and coerce_status(ClaimStatus, statut) != ClaimStatus.DECLARED:
            raise ValidationError("statut", "a claim is always declared first")

        values: dict[str, Any] = {
            "numero_sinistre": numero_sinistre,
            "date_incident": date_incident,
            "description": description,
            "id_police": id_police,
            "id_dossier": id_dossier,
            "date_declaration": date_declaration if date_declaration is not None else self.clock.today(),
            "type_sinistre": type_sinistre,
            "montant_estime": montant_estime,
            "id_utilisateur_gestionnaire": id_utilisateur_gestionnaire,
        }
        require_fields(values, _REQUIRED_FIELDS)
        self._normalize(values)
        self._check_dates(values["date_incident"], values["date_declaration"], None)
        self._check_references(values, values["id_police"])
        values["statut"] = ClaimStatus.DECLARED

        claim = self.claims.create(values)
        logger.info(
            "claim_declared",
            extra={"numero_sinistre": claim.numero_sinistre, "contract_id": str(claim.id_police)},
        )
        return to_dto(claim, ClaimInfo)

    def update_claim(self, claim_id: UUID, changes: dict[str, Any]) -> ClaimInfo:
        """
        Partial update.

        A status change must follow CLAIM_TRANSITIONS.  Closing without a
        date_resolution stamps today's date.
        """
        reject_unknown_fields(changes, _UPDATABLE_FIELDS)
        claim = self.claims.get(claim_id)
        changes = self._normalize(dict(changes))

        for required in _REQUIRED_FIELDS:
            if required in changes and is_blank(changes[required]):
                raise ValidationError(required, "is required")

        current = ClaimStatus(claim.statut)
        target = current
        if "statut" in changes:
            target = coerce_status(ClaimStatus, changes["statut"])
            if check_transition(CLAIM_TRANSITIONS, CLAIM_LABEL, claim.id, current, target):
                changes["statut"] = target
            else:
                del changes["statut"]

        if target == ClaimStatus.CLOSED:
            if current != ClaimStatus.CLOSED and changes.get("date_resolution") is None:
                changes["date_resolution"] = self.clock.today()
        elif changes.get("date_resolution") is not None:
            raise ValidationError(
                "date_resolution", "can only be set when the claim is closed"
            )

        self._check_dates(
            changes.get("date_incident", claim.date_incident),
            changes.get("date_declaration", claim.date_declaration),
            changes.get("date_resolution", claim.date_resolution),
        )
        if "id_police" in changes or "id_dossier" in changes:
            # A kept folder must still belong to the (new) contract.
            references = {"id_dossier": claim.id_dossier, **changes}
            self._check_references(references, changes.get("id_police", claim.id_police))
        elif changes.get("id_utilisateur_gestionnaire") is not None:
            self._check_references(changes, claim.id_police)

        self.claims.update(claim, changes)
        if target != current:
            logger.info(
                "claim_status_changed",
                extra={
                    "numero_sinistre": claim.numero_sinistre,
                    "from_status": current.value,
                    "to_status": target.value,
                },
            )
        return to_dto(claim, ClaimInfo)

    def close_claim(
        self,
        claim_id: UUID,
        date_resolution: date | str | None = None,
        montant_regle: Any = None,
    ) -> ClaimInfo:
        changes: dict[str, Any] = {"statut": ClaimStatus.CLOSED}
        if date_resolution is not None:
            changes["date_resolution"] = date_resolution
        if montant_regle is not None:
            changes["montant_regle"] = montant_regle
        return self.update_claim(claim_id, changes)

    def delete_claim(self, claim_id: UUID) -> None:
        claim = self.claims.get(claim_id)
        has_indemnification = self.session.execute(
            select(Indemnification.id).where(Indemnification.id_sinistre == claim.id).limit(1)
        ).first()
        if has_indemnification is not None:
            raise ValidationError("id_sinistre", "claim has an indemnification")
        self.claims.delete(claim)
        logger.info("claim_deleted", extra={"claim_id": str(claim_id)})
