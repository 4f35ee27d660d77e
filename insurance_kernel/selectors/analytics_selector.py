"""
AnalyticsSelector -- portfolio figures for the back-office dashboard.

Responsibility:
    Status overviews for contracts and claims, contract distribution by
    insurance type, premiums collected and indemnifications paid over a
    date range, monthly series and the costliest claims.

Architecture position:
    Kernel > Selectors.  Read-only.

Conventions:
    - Date ranges are inclusive on both ends and apply to date_paiement.
    - Only Payée premiums and indemnifications count as money moved.
    - Months are "YYYY-MM" strings.  Monthly buckets are built in Python so
      the queries stay portable between PostgreSQL and SQLite.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import func, select

from insurance_kernel.domain.lifecycle import IndemnificationStatus, PremiumStatus
from insurance_kernel.domain.validation import parse_date
from insurance_kernel.exceptions import ValidationError
from insurance_kernel.models.claim import Claim
from insurance_kernel.models.client import Client
from insurance_kernel.models.contract import Contract
from insurance_kernel.models.indemnification import Indemnification
from insurance_kernel.models.premium import Premium
from insurance_kernel.models.reference import InsuranceType
from insurance_kernel.selectors.base import BaseSelector

ZERO = Decimal("0")


@dataclass(frozen=True)
class MonthlyAmount:
    month: str
    amount: Decimal


@dataclass(frozen=True)
class MonthlyCount:
    month: str
    count: int


@dataclass(frozen=True)
class ClaimCost:
    """A claim with the sum of its indemnifications, whatever their status."""

    id: UUID
    numero_sinistre: str
    date_declaration: date
    description: str
    total_indemnisation: Decimal


def _month(value: date | datetime) -> str:
    return f"{value.year:04d}-{value.month:02d}"


def _date_range(start: date | str, end: date | str) -> tuple[date, date]:
    lower = parse_date(start, "date_from")
    upper = parse_date(end, "date_to")
    if lower is None or upper is None:
        raise ValidationError("date_from" if lower is None else "date_to", "is required")
    if lower > upper:
        raise ValidationError("date_from", "must not be after date_to")
    return lower, upper


class AnalyticsSelector(BaseSelector[Contract]):
    """
    Aggregates over the portfolio.

    Usage:
        analytics = AnalyticsSelector(session)
        analytics.contract_status_overview()   # {"Actif": 12, "Expiré": 3}
        analytics.total_premiums_collected(date(2025, 1, 1), date(2025, 6, 30))
    """

    # ------------------------------------------------------------------
    # Overviews
    # ------------------------------------------------------------------

    def _count_by(self, column, id_column) -> dict[str, int]:
        rows = self.session.execute(
            select(column, func.count(id_column)).group_by(column)
        ).all()
        return {str(getattr(key, "value", key)): count for key, count in rows}

    def contract_status_overview(self) -> dict[str, int]:
        """Number of contracts per status label."""
        return self._count_by(Contract.statut, Contract.id)

    def claim_status_overview(self) -> dict[str, int]:
        """Number of claims per status label."""
        return self._count_by(Claim.statut, Claim.id)

    def contract_type_distribution(self) -> dict[str, int]:
        """Number of contracts per insurance type name."""
        rows = self.session.execute(
            select(InsuranceType.nom, func.count(Contract.id))
            .join(Contract, Contract.id_type_assurance == InsuranceType.id)
            .group_by(InsuranceType.nom)
        ).all()
        return {nom: count for nom, count in rows}

    # ------------------------------------------------------------------
    # Money over a period
    # ------------------------------------------------------------------

    def _paid_total(self, model, paid_status, start: date | str, end: date | str) -> Decimal:
        lower, upper = _date_range(start, end)
        total = self.session.execute(
            select(func.sum(model.montant)).where(
                model.statut == paid_status.value,
                model.date_paiement >= lower,
                model.date_paiement <= upper,
            )
        ).scalar_one()
        return Decimal(total) if total is not None else ZERO

    def total_premiums_collected(self, start: date | str, end: date | str) -> Decimal:
        return self._paid_total(Premium, PremiumStatus.PAID, start, end)

    def total_indemnifications_paid(self, start: date | str, end: date | str) -> Decimal:
        return self._paid_total(Indemnification, IndemnificationStatus.PAID, start, end)

    def premiums_by_month(self, start: date | str, end: date | str) -> list[MonthlyAmount]:
        """Collected premiums bucketed by payment month, oldest first."""
        lower, upper = _date_range(start, end)
        rows = self.session.execute(
            select(Premium.date_paiement, Premium.montant).where(
                Premium.statut == PremiumStatus.PAID.value,
                Premium.date_paiement >= lower,
                Premium.date_paiement <= upper,
            )
        ).all()
        buckets: dict[str, Decimal] = defaultdict(lambda: ZERO)
        for paid_on, montant in rows:
            buckets[_month(paid_on)] += montant
        return [MonthlyAmount(month, buckets[month]) for month in sorted(buckets)]

    # ------------------------------------------------------------------
    # Other series
    # ------------------------------------------------------------------

    def new_clients_by_month(self) -> list[MonthlyCount]:
        """Client sign-ups per month of their created_at timestamp."""
        created = self.session.execute(select(Client.created_at)).scalars().all()
        buckets: dict[str, int] = defaultdict(int)
        for created_at in created:
            buckets[_month(created_at)] += 1
        return [MonthlyCount(month, buckets[month]) for month in sorted(buckets)]

    def top_costly_claims(self, limit: int = 5) -> list[ClaimCost]:
        """Claims ranked by total indemnification, claims without one count as 0."""
        if limit < 1:
            raise ValidationError("limit", "must be >= 1")
        total = func.coalesce(func.sum(Indemnification.montant), 0)
        rows = self.session.execute(
            select(
                Claim.id,
                Claim.numero_sinistre,
                Claim.date_declaration,
                Claim.description,
                total.label("total_indemnisation"),
            )
            .outerjoin(Indemnification, Indemnification.id_sinistre == Claim.id)
            .group_by(Claim.id, Claim.numero_sinistre, Claim.date_declaration, Claim.description)
            .order_by(total.desc(), Claim.numero_sinistre)
            .limit(limit)
        ).all()
        return [
            ClaimCost(
                id=row.id,
                numero_sinistre=row.numero_sinistre,
                date_declaration=row.date_declaration,
                description=row.description,
                total_indemnisation=Decimal(row.total_indemnisation),
            )
            for row in rows
        ]
