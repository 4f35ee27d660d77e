"""
PremiumService -- premium calls (avis d'échéance) and their settlement.

Responsibility:
    Issues a due notice on a live contract, then moves it through
    PREMIUM_TRANSITIONS: En attente -> Payée | Impayée, Impayée -> Payée.

Invariants enforced:
    - Notices are only issued on a contract that is not Expiré/Annulé.
    - montant >= 0; defaults to the contract's montant_prime.
    - Payée is terminal.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Any
from uuid import UUID

from insurance_kernel.domain.dtos import PaymentDetails, PremiumInfo
from insurance_kernel.domain.lifecycle import (
    PREMIUM_TRANSITIONS,
    TERMINAL_CONTRACT_STATUSES,
    ContractStatus,
    PremiumStatus,
    check_transition,
    coerce_status,
)
from insurance_kernel.domain.validation import parse_amount, parse_date, require_non_negative
from insurance_kernel.exceptions import InvalidStateError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.contract import Contract
from insurance_kernel.models.premium import Premium
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.premium")

PREMIUM_LABEL = "Prime"


def one_month_after(day: date) -> date:
    """Same day next month, clamped to the month's last day."""
    year, month = (day.year + 1, 1) if day.month == 12 else (day.year, day.month + 1)
    last = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last))


class PremiumService(BaseService[Premium]):
    """Premium calls on contracts."""

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.premiums = AuditedRepository(session, Premium, PREMIUM_LABEL, self.recorder)

    def get_premium(self, premium_id: UUID) -> PremiumInfo:
        return to_dto(self.premiums.get(premium_id), PremiumInfo)

    def list_for_contract(
        self,
        contract_id: UUID,
        statut: PremiumStatus | str | None = None,
    ) -> list[PremiumInfo]:
        conditions = [Premium.id_contrat == contract_id]
        if statut is not None:
            conditions.append(Premium.statut == coerce_status(PremiumStatus, statut).value)
        rows = self.premiums.list(*conditions, order_by=(Premium.date_echeance, Premium.id))
        return [to_dto(p, PremiumInfo) for p in rows]

    def issue_due_notice(
        self,
        contract_id: UUID,
        due_date: date | str | None = None,
        montant: Any = None,
    ) -> PremiumInfo:
        """
        Create an En attente premium on the contract.

        Defaults: due one month from today, amount = contract premium.
        """
        contract = self._require(Contract, contract_id, "Contrat")
        contract_status = ContractStatus(contract.statut)
        if contract_status in TERMINAL_CONTRACT_STATUSES:
            raise InvalidStateError(
                "Contrat",
                contract.id,
                contract_status.value,
                operation="issue_due_notice",
            )

        due = parse_date(due_date, "date_echeance") or one_month_after(self.clock.today())
        amount = contract.montant_prime if montant is None else parse_amount(montant, "montant")
        require_non_negative(amount, "montant")

        premium = self.premiums.create(
            {
                "id_contrat": contract.id,
                "montant": amount,
                "date_echeance": due,
                "statut": PremiumStatus.PENDING,
            },
            event_type="Avis Echéance Prime",
            description=f"Avis d'échéance du {due.isoformat()} pour le contrat {contract.numero_contrat}",
        )
        logger.info(
            "premium_due_notice_issued",
            extra={"contract_id": str(contract.id), "date_echeance": due.isoformat()},
        )
        return to_dto(premium, PremiumInfo)

    def mark_paid(
        self,
        premium_id: UUID,
        payment: PaymentDetails | None = None,
    ) -> PremiumInfo:
        payment = payment or PaymentDetails()
        premium = self.premiums.get(premium_id)
        current = coerce_status(PremiumStatus, premium.statut)
        if current == PremiumStatus.PAID:
            raise InvalidStateError(
                PREMIUM_LABEL, premium.id, current.value, operation="payment"
            )
        check_transition(
            PREMIUM_TRANSITIONS, PREMIUM_LABEL, premium.id, current, PremiumStatus.PAID
        )
        self.premiums.update(
            premium,
            {
                "statut": PremiumStatus.PAID,
                "date_paiement": parse_date(payment.date_paiement, "date_paiement")
                or self.clock.today(),
                "mode_paiement": payment.mode_paiement,
                "reference_paiement": payment.reference_paiement,
            },
            event_type="Paiement Prime",
        )
        logger.info("premium_paid", extra={"premium_id": str(premium.id)})
        return to_dto(premium, PremiumInfo)

    def mark_unpaid(self, premium_id: UUID) -> PremiumInfo:
        premium = self.premiums.get(premium_id)
        changed = check_transition(
            PREMIUM_TRANSITIONS,
            PREMIUM_LABEL,
            premium.id,
            coerce_status(PremiumStatus, premium.statut),
            PremiumStatus.UNPAID,
        )
        if changed:
            self.premiums.update(
                premium,
                {"statut": PremiumStatus.UNPAID},
                event_type="Impayé Prime",
            )
            logger.warning("premium_unpaid", extra={"premium_id": str(premium.id)})
        return to_dto(premium, PremiumInfo)
