"""
ReconciliationService -- bank statement import and matching (rapprochement).

Responsibility:
    Imports bank statement lines, then settles a premium or an
    indemnification from one of them:

        import_transactions  -> BankTransaction rows (unreconciled)
        reconcile            -> premium Payée / indemnification Payée,
                                transaction linked to it

    Settlement is delegated to PremiumService.mark_paid and
    IndemnificationService.record_payment, so PREMIUM_TRANSITIONS and
    INDEMNIFICATION_TRANSITIONS apply unchanged and the payment is
    audited with its usual event type.

Invariants enforced:
    - A statement line is imported once (unique reference).
    - montant > 0; direction is Crédit or Débit.
    - A transaction settles at most one entity, an entity is settled by at
      most one transaction.
    - Premiums are settled by credits, indemnifications by debits, for
      exactly their amount.

Failure modes:
    - NotFoundError: transaction, premium or indemnification missing.
    - DuplicateError: reference already imported.
    - ValidationError: malformed line, wrong direction, amount mismatch.
    - InvalidStateError: transaction already reconciled, or the target is
      not in a payable status (premium Payée, indemnification not Validée).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import date
from typing import Any
from uuid import UUID

from insurance_kernel.domain.dtos import BankTransactionInfo, PaymentDetails
from insurance_kernel.domain.lifecycle import (
    EXPECTED_TRANSACTION_TYPE,
    ReconciliationTarget,
    TransactionType,
    coerce_status,
)
from insurance_kernel.domain.validation import (
    parse_amount,
    parse_date,
    reject_unknown_fields,
    require_fields,
    require_positive,
)
from insurance_kernel.exceptions import InvalidStateError, ValidationError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.bank_transaction import BankTransaction
from insurance_kernel.models.indemnification import Indemnification
from insurance_kernel.models.premium import Premium
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.indemnification_service import IndemnificationService
from insurance_kernel.services.premium_service import PremiumService
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.reconciliation")

BANK_TRANSACTION_LABEL = "TransactionBancaire"

DEFAULT_PAYMENT_MODE = "Virement"

_IMPORT_FIELDS = ("date_transaction", "montant", "description", "reference", "type_transaction")


class ReconciliationService(BaseService[BankTransaction]):
    """
    Bank reconciliation.

    Usage:
        service = ReconciliationService(session, context, clock)
        [line] = service.import_transactions([{
            "date_transaction": "2025-06-14", "montant": "1200.00",
            "reference": "VIR-0001", "type_transaction": "Crédit",
        }])
        service.reconcile(line.id, ReconciliationTarget.PREMIUM, premium_id)
    """

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.transactions = AuditedRepository(
            session,
            BankTransaction,
            BANK_TRANSACTION_LABEL,
            self.recorder,
            unique_fields=("reference",),
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_transaction(self, transaction_id: UUID) -> BankTransactionInfo:
        return to_dto(self.transactions.get(transaction_id), BankTransactionInfo)

    def list_transactions(
        self,
        reconciled: bool | None = None,
        date_from: date | str | None = None,
        date_to: date | str | None = None,
    ) -> list[BankTransactionInfo]:
        conditions = []
        if reconciled is True:
            conditions.append(BankTransaction.id_entite_rapprochee.is_not(None))
        elif reconciled is False:
            conditions.append(BankTransaction.id_entite_rapprochee.is_(None))
        if date_from is not None:
            conditions.append(
                BankTransaction.date_transaction >= parse_date(date_from, "date_from")
            )
        if date_to is not None:
            conditions.append(
                BankTransaction.date_transaction <= parse_date(date_to, "date_to")
            )
        rows = self.transactions.list(
            *conditions,
            order_by=(BankTransaction.date_transaction, BankTransaction.id),
        )
        return [to_dto(t, BankTransactionInfo) for t in rows]

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    @staticmethod
    def _parse_line(line: Mapping[str, Any]) -> dict[str, Any]:
        reject_unknown_fields(line, _IMPORT_FIELDS)
        require_fields(line, ("date_transaction", "montant", "type_transaction"))
        montant = parse_amount(line["montant"], "montant")
        require_positive(montant, "montant")
        reference = line.get("reference")
        return {
            "date_transaction": parse_date(line["date_transaction"], "date_transaction"),
            "montant": montant,
            "description": line.get("description"),
            "reference": reference.strip() if isinstance(reference, str) else reference,
            "type_transaction": coerce_status(
                TransactionType, line["type_transaction"], "type_transaction"
            ),
        }

    def import_transactions(
        self,
        lines: Iterable[Mapping[str, Any]],
    ) -> list[BankTransactionInfo]:
        """
        Import statement lines, all or nothing.

        Any bad line raises and the request transaction discards the
        lines imported before it.
        """
        imported = []
        for line in lines:
            transaction = self.transactions.create(
                self._parse_line(line),
                event_type="Import Transaction Bancaire",
            )
            imported.append(to_dto(transaction, BankTransactionInfo))
        logger.info("bank_transactions_imported", extra={"count": len(imported)})
        return imported

    # ------------------------------------------------------------------
    # Reconciliation
    # ------------------------------------------------------------------

    def reconcile(
        self,
        transaction_id: UUID,
        target: ReconciliationTarget | str,
        entity_id: UUID,
        mode_paiement: str = DEFAULT_PAYMENT_MODE,
    ) -> BankTransactionInfo:
        """
        Settle a premium or an indemnification from a bank transaction.

        The payment date is the transaction date and the payment reference
        is the transaction reference.
        """
        transaction = self.transactions.get(transaction_id)
        target = coerce_status(ReconciliationTarget, target, "type_entite_rapprochee")
        if transaction.is_reconciled:
            raise InvalidStateError(
                BANK_TRANSACTION_LABEL,
                transaction.id,
                "Rapprochée",
                operation="reconcile",
            )

        expected = EXPECTED_TRANSACTION_TYPE[target]
        if TransactionType(transaction.type_transaction) != expected:
            raise ValidationError(
                "type_transaction",
                f"a {target.value.lower()} is settled by a '{expected.value}' transaction",
            )

        if target == ReconciliationTarget.PREMIUM:
            entity = self._require(Premium, entity_id, "Prime")
        else:
            entity = self._require(Indemnification, entity_id, "Indemnisation")
        if entity.montant != transaction.montant:
            raise ValidationError(
                "montant",
                f"transaction amount {transaction.montant} does not match "
                f"{target.value.lower()} amount {entity.montant}",
            )

        payment = PaymentDetails(
            reference_paiement=transaction.reference,
            mode_paiement=mode_paiement,
            date_paiement=transaction.date_transaction,
        )
        if target == ReconciliationTarget.PREMIUM:
            PremiumService(self.session, self.context, self.clock).mark_paid(entity.id, payment)
        else:
            IndemnificationService(self.session, self.context, self.clock).record_payment(
                entity.id, payment
            )

        self.transactions.update(
            transaction,
            {
                "type_entite_rapprochee": target,
                "id_entite_rapprochee": entity.id,
                "date_rapprochement": self.clock.today(),
            },
            event_type="Rapprochement Transaction Bancaire",
            description=f"Transaction rapprochée avec {target.value} {entity.id}",
        )
        logger.info(
            "bank_transaction_reconciled",
            extra={
                "transaction_id": str(transaction.id),
                "target": target.value,
                "entity_id": str(entity.id),
            },
        )
        return to_dto(transaction, BankTransactionInfo)
