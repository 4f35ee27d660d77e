"""
IndemnificationService -- propose, validate and pay claim compensation.

Responsibility:
    The three-step indemnification workflow on top of a claim:

        propose_indemnification   -> En attente de validation
        validate_indemnification  -> Validée
        record_payment            -> Payée

    Each step is a single guarded transition, audited with its own event
    type, inside the request transaction.

Architecture position:
    Kernel > Services -- imperative shell over AuditedRepository.

Invariants enforced:
    - At most one indemnification per claim, whatever its status
      (pre-check + uq_indemnification_claim).
    - montant > 0.
    - Strictly forward: validate requires exactly En attente de
      validation, payment requires exactly Validée.
    - Payment fields are written only by record_payment.

Failure modes:
    - NotFoundError: claim or indemnification missing.
    - DuplicateError: the claim already has an indemnification.
    - ValidationError: bad amount, bad payment date.
    - InvalidStateError: wrong status for the step; status left unchanged.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import UUID

from sqlalchemy import select

from insurance_kernel.domain.dtos import IndemnificationInfo, PaymentDetails
from insurance_kernel.domain.lifecycle import (
    BLOCKING_INDEMNIFICATION_STATUSES,
    INDEMNIFICATION_TRANSITIONS,
    IndemnificationStatus,
    check_transition,
    coerce_status,
)
from insurance_kernel.domain.validation import parse_amount, parse_date, require_positive
from insurance_kernel.exceptions import DuplicateError, InvalidStateError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.claim import Claim
from insurance_kernel.models.indemnification import Indemnification
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.indemnification")

INDEMNIFICATION_LABEL = "Indemnisation"


class IndemnificationService(BaseService[Indemnification]):
    """
    Indemnification workflow.

    Usage:
        service = IndemnificationService(session, context, clock)
        info = service.propose_indemnification(claim_id, Decimal("5000"), "Dégâts")
        service.validate_indemnification(info.id)
        service.record_payment(info.id, PaymentDetails(reference_paiement="PAY-42"))
    """

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.indemnifications = AuditedRepository(
            session,
            Indemnification,
            INDEMNIFICATION_LABEL,
            self.recorder,
            unique_fields=("id_sinistre",),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_indemnification(self, indemnification_id: UUID) -> IndemnificationInfo:
        return to_dto(self.indemnifications.get(indemnification_id), IndemnificationInfo)

    def find_for_claim(self, claim_id: UUID) -> IndemnificationInfo | None:
        row = self.indemnifications.find_one_by(id_sinistre=claim_id)
        return to_dto(row, IndemnificationInfo) if row else None

    def list_indemnifications(
        self,
        statut: IndemnificationStatus | str | None = None,
        claim_id: UUID | None = None,
        paid_from: date | str | None = None,
        paid_to: date | str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[IndemnificationInfo]:
        """Filter by status, claim and payment date range, paged."""
        conditions = []
        if statut is not None:
            conditions.append(
                Indemnification.statut
                == coerce_status(IndemnificationStatus, statut).value
            )
        if claim_id is not None:
            conditions.append(Indemnification.id_sinistre == claim_id)
        if paid_from is not None:
            conditions.append(Indemnification.date_paiement >= parse_date(paid_from, "paid_from"))
        if paid_to is not None:
            conditions.append(Indemnification.date_paiement <= parse_date(paid_to, "paid_to"))
        rows = self.indemnifications.list(
            *conditions,
            order_by=(Indemnification.created_at.desc(), Indemnification.id),
            limit=limit,
            offset=offset,
        )
        return [to_dto(r, IndemnificationInfo) for r in rows]

    # ------------------------------------------------------------------
    # Workflow
    # ------------------------------------------------------------------

    def propose_indemnification(
        self,
        claim_id: UUID,
        montant: Decimal | str | int,
        description: str | None = None,
    ) -> IndemnificationInfo:
        """
        Open an indemnification on a claim.

        Raises:
            NotFoundError: the claim does not exist.
            DuplicateError: the claim already has an indemnification.
            ValidationError: montant missing or not > 0.
        """
        claim = self._require(Claim, claim_id, "Sinistre")
        amount = parse_amount(montant, "montant")
        require_positive(amount, "montant")

        existing = self.session.execute(
            select(Indemnification.id).where(
                Indemnification.id_sinistre == claim.id,
                Indemnification.statut.in_(
                    [s.value for s in BLOCKING_INDEMNIFICATION_STATUSES]
                ),
            ).limit(1)
        ).first()
        if existing is not None:
            logger.warning(
                "indemnification_duplicate_rejected",
                extra={"claim_id": str(claim.id)},
            )
            raise DuplicateError(INDEMNIFICATION_LABEL, "id_sinistre", claim.id)

        indemnification = self.indemnifications.create(
            {
                "id_sinistre": claim.id,
                "montant": amount,
                "description_indemnisation": description,
                "statut": IndemnificationStatus.PENDING_VALIDATION,
            },
            event_type="Proposition Indemnisation",
            description=f"Indemnisation proposée pour le sinistre {claim.numero_sinistre}",
        )
        logger.info(
            "indemnification_proposed",
            extra={"claim_id": str(claim.id), "montant": amount},
        )
        return to_dto(indemnification, IndemnificationInfo)

    def _require_status(
        self,
        indemnification: Indemnification,
        required: IndemnificationStatus,
        target: IndemnificationStatus,
        operation: str,
    ) -> None:
        current = coerce_status(IndemnificationStatus, indemnification.statut)
        if current != required:
            logger.warning(
                "indemnification_transition_rejected",
                extra={
                    "indemnification_id": str(indemnification.id),
                    "current_status": current.value,
                    "operation": operation,
                },
            )
            raise InvalidStateError(
                INDEMNIFICATION_LABEL,
                indemnification.id,
                current.value,
                target.value,
                operation=operation,
            )
        check_transition(
            INDEMNIFICATION_TRANSITIONS,
            INDEMNIFICATION_LABEL,
            indemnification.id,
            current,
            target,
        )

    def validate_indemnification(self, indemnification_id: UUID) -> IndemnificationInfo:
        """En attente de validation -> Validée."""
        indemnification = self.indemnifications.get(indemnification_id)
        self._require_status(
            indemnification,
            IndemnificationStatus.PENDING_VALIDATION,
            IndemnificationStatus.VALIDATED,
            "validation",
        )
        self.indemnifications.update(
            indemnification,
            {"statut": IndemnificationStatus.VALIDATED},
            event_type="Validation Indemnisation",
            description="Indemnisation validée",
        )
        logger.info(
            "indemnification_validated",
            extra={"indemnification_id": str(indemnification.id)},
        )
        return to_dto(indemnification, IndemnificationInfo)

    def record_payment(
        self,
        indemnification_id: UUID,
        payment: PaymentDetails | None = None,
    ) -> IndemnificationInfo:
        """Validée -> Payée.  The payment date defaults to today."""
        payment = payment or PaymentDetails()
        indemnification = self.indemnifications.get(indemnification_id)
        self._require_status(
            indemnification,
            IndemnificationStatus.VALIDATED,
            IndemnificationStatus.PAID,
            "payment",
        )

        paid_on = parse_date(payment.date_paiement, "date_paiement") or self.clock.today()
        changes: dict[str, Any] = {
            "statut": IndemnificationStatus.PAID,
            "date_paiement": paid_on,
            "mode_paiement": payment.mode_paiement,
            "reference_paiement": payment.reference_paiement,
        }
        self.indemnifications.update(
            indemnification,
            changes,
            event_type="Paiement Indemnisation Enregistré",
            description="Paiement de l'indemnisation enregistré",
        )
        logger.info(
            "indemnification_paid",
            extra={
                "indemnification_id": str(indemnification.id),
                "reference_paiement": payment.reference_paiement,
            },
        )
        return to_dto(indemnification, IndemnificationInfo)
