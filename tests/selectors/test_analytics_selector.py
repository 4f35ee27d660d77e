"""
AnalyticsSelector: status overviews, money moved over a period and
monthly series.
"""

from datetime import date
from decimal import Decimal

import pytest

from insurance_kernel.domain.dtos import PaymentDetails
from insurance_kernel.exceptions import ValidationError
from insurance_kernel.selectors.analytics_selector import MonthlyAmount


def _paid_premium(premium_service, contract_id, montant, paid_on):
    info = premium_service.issue_due_notice(contract_id, montant=montant)
    return premium_service.mark_paid(info.id, PaymentDetails(date_paiement=paid_on))


class TestOverviews:
    def test_contract_status_overview(self, analytics, contract_service, make_contract):
        make_contract()
        make_contract()
        cancelled = make_contract()
        contract_service.cancel_contract(cancelled.id)
        make_contract(statut="En attente")

        assert analytics.contract_status_overview() == {
            "Actif": 2,
            "Annulé": 1,
            "En attente": 1,
        }

    def test_claim_status_overview(self, analytics, claim_service, make_claim):
        make_claim()
        in_review = make_claim()
        claim_service.update_claim(in_review.id, {"statut": "En expertise"})

        assert analytics.claim_status_overview() == {"Déclaré": 1, "En expertise": 1}

    def test_empty_portfolio(self, analytics):
        assert analytics.contract_status_overview() == {}
        assert analytics.claim_status_overview() == {}

    def test_contract_type_distribution(
        self, analytics, reference_service, make_contract, reference_data
    ):
        habitation = reference_service.create_insurance_type("Habitation")
        make_contract()
        make_contract()
        make_contract(id_type_assurance=habitation.id)

        assert analytics.contract_type_distribution() == {"Automobile": 2, "Habitation": 1}


class TestMoneyOverPeriod:
    def test_premiums_collected_counts_paid_in_range_only(
        self, analytics, premium_service, make_contract
    ):
        contract = make_contract()
        _paid_premium(premium_service, contract.id, "100.00", date(2025, 1, 31))
        _paid_premium(premium_service, contract.id, "250.50", date(2025, 2, 1))
        _paid_premium(premium_service, contract.id, "999.00", date(2025, 3, 1))
        premium_service.issue_due_notice(contract.id, montant="400.00")

        assert analytics.total_premiums_collected(date(2025, 1, 31), date(2025, 2, 28)) == Decimal("350.50")

    def test_nothing_collected(self, analytics):
        assert analytics.total_premiums_collected("2025-01-01", "2025-12-31") == Decimal("0")

    def test_indemnifications_paid(self, analytics, indemnification_service, make_claim):
        paid = indemnification_service.propose_indemnification(make_claim().id, "5000")
        indemnification_service.validate_indemnification(paid.id)
        indemnification_service.record_payment(paid.id, PaymentDetails(date_paiement=date(2025, 6, 1)))
        validated = indemnification_service.propose_indemnification(make_claim().id, "700")
        indemnification_service.validate_indemnification(validated.id)

        assert analytics.total_indemnifications_paid("2025-06-01", "2025-06-30") == Decimal("5000")

    def test_inverted_range(self, analytics):
        with pytest.raises(ValidationError) as exc_info:
            analytics.total_premiums_collected(date(2025, 6, 1), date(2025, 5, 1))
        assert exc_info.value.field == "date_from"

    def test_premiums_by_month(self, analytics, premium_service, make_contract):
        contract = make_contract()
        _paid_premium(premium_service, contract.id, "100.00", date(2025, 2, 3))
        _paid_premium(premium_service, contract.id, "100.00", date(2025, 2, 27))
        _paid_premium(premium_service, contract.id, "80.00", date(2025, 4, 1))

        assert analytics.premiums_by_month("2025-01-01", "2025-12-31") == [
            MonthlyAmount("2025-02", Decimal("200.00")),
            MonthlyAmount("2025-04", Decimal("80.00")),
        ]


class TestSeries:
    def test_new_clients_by_month_counts_every_client(self, analytics, make_client):
        make_client()
        make_client()
        series = analytics.new_clients_by_month()
        assert sum(point.count for point in series) == 2
        assert all(len(point.month) == 7 for point in series)

    def test_top_costly_claims(self, analytics, indemnification_service, make_claim):
        small = make_claim(numero_sinistre="SIN-A")
        large = make_claim(numero_sinistre="SIN-B")
        make_claim(numero_sinistre="SIN-C")
        indemnification_service.propose_indemnification(small.id, "300")
        indemnification_service.propose_indemnification(large.id, "4200")

        ranked = analytics.top_costly_claims(limit=3)

        assert [c.numero_sinistre for c in ranked] == ["SIN-B", "SIN-A", "SIN-C"]
        assert [c.total_indemnisation for c in ranked] == [
            Decimal("4200"),
            Decimal("300"),
            Decimal("0"),
        ]

    def test_top_costly_claims_limit(self, analytics):
        with pytest.raises(ValidationError):
            analytics.top_costly_claims(limit=0)
