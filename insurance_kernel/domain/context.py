"""
Request-scoped actor context.

One ActorContext is built per request by the request runner after the
acting user has been resolved, then handed to every service constructed
for that request.  The audit recorder reads the actor from it; nothing is
stored in module or thread globals.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import UUID, uuid4


@dataclass(frozen=True)
class ActorContext:
    """Who is acting, in which role, under which correlation id."""

    actor_id: UUID | None = None
    role: str | None = None
    correlation_id: str = field(default_factory=lambda: str(uuid4()))

    def get_current_actor_id(self) -> UUID | None:
        return self.actor_id

    @property
    def is_anonymous(self) -> bool:
        return self.actor_id is None

    @classmethod
    def system(cls, correlation_id: str | None = None) -> "ActorContext":
        """Context for unattended jobs (contract expiry runs, imports)."""
        if correlation_id is None:
            return cls(role="system")
        return cls(role="system", correlation_id=correlation_id)
