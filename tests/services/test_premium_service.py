"""PremiumService tests."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import select

from insurance_kernel.domain.dtos import PaymentDetails
from insurance_kernel.domain.lifecycle import PremiumStatus
from insurance_kernel.exceptions import InvalidStateError, ValidationError
from insurance_kernel.models.history_event import HistoryEvent
from insurance_kernel.services.premium_service import one_month_after


class TestOneMonthAfter:
    @pytest.mark.parametrize(
        "day, expected",
        [
            (date(2025, 6, 15), date(2025, 7, 15)),
            (date(2025, 1, 31), date(2025, 2, 28)),
            (date(2024, 1, 31), date(2024, 2, 29)),
            (date(2025, 12, 20), date(2026, 1, 20)),
        ],
    )
    def test_one_month_after(self, day, expected):
        assert one_month_after(day) == expected


class TestIssueDueNotice:
    def test_defaults_from_contract_and_clock(self, premium_service, make_contract):
        contract = make_contract(montant_prime="980.00")
        info = premium_service.issue_due_notice(contract.id)

        assert info.statut == PremiumStatus.PENDING
        assert info.montant == Decimal("980.00")
        assert info.date_echeance == date(2025, 7, 15)

    def test_explicit_due_date_and_amount(self, premium_service, make_contract):
        info = premium_service.issue_due_notice(
            make_contract().id, due_date="2025-09-01", montant="100.00"
        )
        assert info.date_echeance == date(2025, 9, 1)
        assert info.montant == Decimal("100.00")

    def test_negative_amount(self, premium_service, make_contract):
        with pytest.raises(ValidationError):
            premium_service.issue_due_notice(make_contract().id, montant="-5")

    def test_no_notice_on_a_cancelled_contract(self, premium_service, contract_service, make_contract):
        contract = make_contract()
        contract_service.cancel_contract(contract.id)
        with pytest.raises(InvalidStateError) as exc_info:
            premium_service.issue_due_notice(contract.id)
        assert exc_info.value.operation == "issue_due_notice"

    def test_history_event_type(self, session, premium_service, make_contract):
        info = premium_service.issue_due_notice(make_contract().id)
        event = session.execute(
            select(HistoryEvent).where(HistoryEvent.id_entite_affectee == info.id)
        ).scalar_one()
        assert event.type_evenement == "Avis Echéance Prime"
        assert event.entite_affectee == "Prime"


class TestSettlement:
    def test_mark_paid(self, premium_service, make_contract):
        info = premium_service.issue_due_notice(make_contract().id)
        paid = premium_service.mark_paid(
            info.id, PaymentDetails(reference_paiement="CHQ-7", mode_paiement="Chèque")
        )
        assert paid.statut == PremiumStatus.PAID
        assert paid.date_paiement == date(2025, 6, 15)
        assert paid.reference_paiement == "CHQ-7"

    def test_unpaid_premium_can_still_be_paid(self, premium_service, make_contract):
        info = premium_service.issue_due_notice(make_contract().id)
        premium_service.mark_unpaid(info.id)
        assert premium_service.mark_paid(info.id).statut == PremiumStatus.PAID

    def test_paid_is_terminal(self, premium_service, make_contract):
        info = premium_service.issue_due_notice(make_contract().id)
        premium_service.mark_paid(info.id, PaymentDetails(reference_paiement="VIR-1"))

        with pytest.raises(InvalidStateError):
            premium_service.mark_paid(info.id, PaymentDetails(reference_paiement="VIR-2"))
        with pytest.raises(InvalidStateError):
            premium_service.mark_unpaid(info.id)
        assert premium_service.get_premium(info.id).reference_paiement == "VIR-1"

    def test_mark_unpaid_twice_writes_one_event(self, session, premium_service, make_contract):
        info = premium_service.issue_due_notice(make_contract().id)
        premium_service.mark_unpaid(info.id)
        premium_service.mark_unpaid(info.id)

        types = session.execute(
            select(HistoryEvent.type_evenement)
            .where(HistoryEvent.id_entite_affectee == info.id)
            .order_by(HistoryEvent.seq)
        ).scalars().all()
        assert types == ["Avis Echéance Prime", "Impayé Prime"]

    def test_list_for_contract(self, premium_service, make_contract):
        contract = make_contract()
        later = premium_service.issue_due_notice(contract.id, due_date=date(2025, 9, 1))
        sooner = premium_service.issue_due_notice(contract.id, due_date=date(2025, 8, 1))
        premium_service.mark_paid(sooner.id)

        assert [p.id for p in premium_service.list_for_contract(contract.id)] == [sooner.id, later.id]
        pending = premium_service.list_for_contract(contract.id, statut="En attente")
        assert [p.id for p in pending] == [later.id]
