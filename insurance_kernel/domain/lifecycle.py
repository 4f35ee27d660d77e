"""
Lifecycle state machines (``insurance_kernel.domain.lifecycle``).

Responsibility
--------------
Status enumerations and transition tables for every entity with a
lifecycle: Contract, Claim, Indemnification and Premium.  Each table maps
a status to the frozenset of statuses it may move to.  Terminal statuses
map to the empty set.

Architecture position
---------------------
**Kernel domain layer** -- pure values.  ZERO I/O.  Services consult
``check_transition`` before writing any status; models import the enums
for column typing.

Status values are the labels stored in the database and shown to users.

Rules
-----
* Writing the current status again is a no-op, never a transition.
* A status not present in the table is rejected like any other illegal
  move (guards rows written before the table existed).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Mapping

from insurance_kernel.exceptions import InvalidStateError, ValidationError


# =========================================================================
# Contract (police)
# =========================================================================


class ContractStatus(str, Enum):
    """Contract lifecycle states."""

    PENDING = "En attente"
    ACTIVE = "Actif"
    RENEWED = "Renouvelé"
    EXPIRED = "Expiré"
    CANCELLED = "Annulé"


CONTRACT_TRANSITIONS: dict[ContractStatus, frozenset[ContractStatus]] = {
    ContractStatus.PENDING: frozenset({
        ContractStatus.ACTIVE,
        ContractStatus.RENEWED,
        ContractStatus.CANCELLED,
        ContractStatus.EXPIRED,
    }),
    ContractStatus.ACTIVE: frozenset({
        ContractStatus.RENEWED,
        ContractStatus.CANCELLED,
        ContractStatus.EXPIRED,
    }),
    # A renewed contract may be renewed again.
    ContractStatus.RENEWED: frozenset({
        ContractStatus.RENEWED,
        ContractStatus.CANCELLED,
        ContractStatus.EXPIRED,
    }),
    ContractStatus.EXPIRED: frozenset(),
    ContractStatus.CANCELLED: frozenset(),
}

TERMINAL_CONTRACT_STATUSES: frozenset[ContractStatus] = frozenset({
    ContractStatus.EXPIRED,
    ContractStatus.CANCELLED,
})


# =========================================================================
# Claim (sinistre)
# =========================================================================


class ClaimStatus(str, Enum):
    """Claim lifecycle states."""

    DECLARED = "Déclaré"
    UNDER_REVIEW = "En expertise"
    APPROVED = "Approuvé"
    REJECTED = "Refusé"
    CLOSED = "Clos"


CLAIM_TRANSITIONS: dict[ClaimStatus, frozenset[ClaimStatus]] = {
    ClaimStatus.DECLARED: frozenset({ClaimStatus.UNDER_REVIEW}),
    ClaimStatus.UNDER_REVIEW: frozenset({
        ClaimStatus.APPROVED,
        ClaimStatus.REJECTED,
    }),
    ClaimStatus.APPROVED: frozenset({ClaimStatus.CLOSED}),
    ClaimStatus.REJECTED: frozenset({ClaimStatus.CLOSED}),
    ClaimStatus.CLOSED: frozenset(),
}

TERMINAL_CLAIM_STATUSES: frozenset[ClaimStatus] = frozenset({
    ClaimStatus.CLOSED,
})


# =========================================================================
# Indemnification
# =========================================================================


class IndemnificationStatus(str, Enum):
    """Indemnification lifecycle states.  Strictly forward."""

    PENDING_VALIDATION = "En attente de validation"
    VALIDATED = "Validée"
    PAID = "Payée"


INDEMNIFICATION_TRANSITIONS: dict[
    IndemnificationStatus, frozenset[IndemnificationStatus]
] = {
    IndemnificationStatus.PENDING_VALIDATION: frozenset({
        IndemnificationStatus.VALIDATED,
    }),
    IndemnificationStatus.VALIDATED: frozenset({IndemnificationStatus.PAID}),
    IndemnificationStatus.PAID: frozenset(),
}

# Every status blocks a second proposal on the same claim.
BLOCKING_INDEMNIFICATION_STATUSES: frozenset[IndemnificationStatus] = frozenset(
    IndemnificationStatus
)


# =========================================================================
# Premium (prime)
# =========================================================================


class PremiumStatus(str, Enum):
    """Premium instalment states."""

    PENDING = "En attente"
    PAID = "Payée"
    UNPAID = "Impayée"


PREMIUM_TRANSITIONS: dict[PremiumStatus, frozenset[PremiumStatus]] = {
    PremiumStatus.PENDING: frozenset({PremiumStatus.PAID, PremiumStatus.UNPAID}),
    PremiumStatus.UNPAID: frozenset({PremiumStatus.PAID}),
    PremiumStatus.PAID: frozenset(),
}


# =========================================================================
# Bank transactions (rapprochement bancaire)
# =========================================================================


class TransactionType(str, Enum):
    """Direction of a bank statement line."""

    CREDIT = "Crédit"
    DEBIT = "Débit"


class ReconciliationTarget(str, Enum):
    """Entities a bank transaction can settle."""

    PREMIUM = "Prime"
    INDEMNIFICATION = "Indemnisation"


# Premiums come in, indemnifications go out.
EXPECTED_TRANSACTION_TYPE: dict[ReconciliationTarget, TransactionType] = {
    ReconciliationTarget.PREMIUM: TransactionType.CREDIT,
    ReconciliationTarget.INDEMNIFICATION: TransactionType.DEBIT,
}


# =========================================================================
# Helpers
# =========================================================================


def coerce_status(enum_cls: type[Enum], value: Any, field: str = "statut") -> Enum:
    """Turn a stored label or an enum member into a member of ``enum_cls``."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(
            field, f"'{value}' is not one of: {allowed}"
        ) from None


def is_allowed(
    table: Mapping[Enum, frozenset],
    current: Enum,
    target: Enum,
) -> bool:
    """True if ``current -> target`` is an edge of ``table``."""
    return target in table.get(current, frozenset())


def check_transition(
    table: Mapping[Enum, frozenset],
    entity_type: str,
    entity_id: Any,
    current: Any,
    target: Any,
) -> bool:
    """
    Validate a status write against a transition table.

    Returns False when ``target`` equals ``current`` and the table has no
    self-edge (nothing to do), True when the move is allowed.

    Raises:
        ValidationError: target is not a known status.
        InvalidStateError: the move is not in the table.
    """
    enum_cls = type(next(iter(table)))
    target_status = coerce_status(enum_cls, target)
    try:
        current_status = enum_cls(current)
    except ValueError:
        raise InvalidStateError(
            entity_type, entity_id, str(current), target_status.value
        ) from None

    if is_allowed(table, current_status, target_status):
        return True
    if current_status == target_status:
        return False
    raise InvalidStateError(
        entity_type, entity_id, current_status.value, target_status.value
    )
