"""
Pure domain layer.

Lifecycle tables, field validation, the actor context, the clock and the
DTOs returned by services.  No ORM, no database, no I/O.
"""

from insurance_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from insurance_kernel.domain.context import ActorContext
from insurance_kernel.domain.lifecycle import (
    CLAIM_TRANSITIONS,
    CONTRACT_TRANSITIONS,
    INDEMNIFICATION_TRANSITIONS,
    PREMIUM_TRANSITIONS,
    ClaimStatus,
    ContractStatus,
    IndemnificationStatus,
    PremiumStatus,
    check_transition,
)

__all__ = [
    "ActorContext",
    "CLAIM_TRANSITIONS",
    "CONTRACT_TRANSITIONS",
    "INDEMNIFICATION_TRANSITIONS",
    "PREMIUM_TRANSITIONS",
    "ClaimStatus",
    "Clock",
    "ContractStatus",
    "DeterministicClock",
    "IndemnificationStatus",
    "PremiumStatus",
    "SystemClock",
    "check_transition",
]
