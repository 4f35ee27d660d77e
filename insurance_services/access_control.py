"""
insurance_services.access_control -- actor resolution and capability gate.

Responsibility:
    ActorResolver turns the actor id supplied by the (external) token
    verifier into an ActorContext, checking the user exists and is active.
    AccessGate checks that the actor's role grants the requested operation
    according to the configured CapabilityTable.

Architecture position:
    Services layer.  Consumes CapabilityTable from insurance_config and
    User/Role rows from the kernel.  Called by RequestRunner before any
    workflow service is built.

Invariants:
    - Deny by default: unknown roles and undeclared operations are refused.
    - An inactive user is refused whatever their role.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from insurance_config.schema import CapabilityTable
from insurance_kernel.domain.context import ActorContext
from insurance_kernel.exceptions import (
    AccessDeniedError,
    AuthenticationError,
    InactiveUserError,
)
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.reference import Role, User

logger = get_logger("services.access_control")


class ActorResolver:
    """Load the acting user and role for one request."""

    def __init__(self, session: Session):
        self.session = session

    def resolve(
        self,
        actor_id: UUID | str | None,
        correlation_id: str | None = None,
    ) -> ActorContext:
        """
        Raises:
            AuthenticationError: no actor id, malformed id, or no such user.
            InactiveUserError: the user exists but is_actif is false.
        """
        if actor_id is None:
            raise AuthenticationError(None, "no actor supplied")
        if isinstance(actor_id, str):
            try:
                actor_id = UUID(actor_id)
            except ValueError:
                raise AuthenticationError(actor_id, "malformed actor id") from None

        row = self.session.execute(
            select(User, Role.nom_role)
            .join(Role, Role.id == User.id_role)
            .where(User.id == actor_id)
        ).first()
        if row is None:
            logger.warning("actor_unknown", extra={"actor_id": str(actor_id)})
            raise AuthenticationError(actor_id)

        user, role_name = row
        if not user.is_actif:
            logger.warning("actor_inactive", extra={"actor_id": str(actor_id)})
            raise InactiveUserError(actor_id)

        if correlation_id is None:
            return ActorContext(actor_id=user.id, role=role_name)
        return ActorContext(actor_id=user.id, role=role_name, correlation_id=correlation_id)


class AccessGate:
    """Capability check at the workflow boundary."""

    def __init__(self, capabilities: CapabilityTable):
        self.capabilities = capabilities

    def is_allowed(self, context: ActorContext, operation: str) -> bool:
        return self.capabilities.allows(context.role, operation)

    def check(self, context: ActorContext, operation: str) -> None:
        if not self.is_allowed(context, operation):
            logger.warning(
                "access_denied",
                extra={
                    "actor_id": str(context.actor_id) if context.actor_id else None,
                    "role": context.role,
                    "denied_operation": operation,
                },
            )
            raise AccessDeniedError(context.role, operation)
