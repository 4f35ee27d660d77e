"""
insurance_services.request_runner -- one request, one transaction.

Responsibility:
    Runs one back-office operation end to end:

        bind log context -> open session_scope -> resolve actor ->
        check capability -> build BackOffice -> run work -> commit

    Any exception rolls the whole request back (session_scope) and is
    re-raised unchanged for the boundary to map (error_mapping).

Architecture position:
    Services layer, top of the stack.  The HTTP layer (external) calls
    RequestRunner.run with the actor id its token verifier produced.

Invariants enforced:
    - Authorization happens before any workflow service is constructed.
    - Log context fields (correlation_id, operation, actor) are bound for
      the request and restored afterwards, also on failure.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar
from uuid import UUID, uuid4

from sqlalchemy.orm import Session, sessionmaker

from insurance_config.schema import CapabilityTable, Settings
from insurance_kernel.db.engine import session_scope
from insurance_kernel.domain.clock import Clock, SystemClock
from insurance_kernel.domain.context import ActorContext
from insurance_kernel.exceptions import InsuranceKernelError
from insurance_kernel.logging_config import LogContext, get_logger
from insurance_services.access_control import AccessGate, ActorResolver
from insurance_services.backoffice import BackOffice
from insurance_services.error_mapping import INTERNAL_ERROR_CODE

logger = get_logger("services.request_runner")

T = TypeVar("T")


@contextmanager
def _request_log(correlation_id: str, operation: str) -> Iterator[None]:
    """Bind request log fields and log request_failed for any error."""
    with LogContext.bind(correlation_id=correlation_id, operation=operation):
        try:
            yield
        except InsuranceKernelError as exc:
            logger.warning("request_failed", extra={"error_code": exc.code})
            raise
        except Exception:
            logger.error(
                "request_failed",
                extra={"error_code": INTERNAL_ERROR_CODE},
                exc_info=True,
            )
            raise


class RequestRunner:
    """
    Per-request orchestration.

    Usage:
        runner = RequestRunner.from_settings(get_active_settings())
        info = runner.run(
            "contract.renew",
            actor_id,
            lambda office: office.contracts.renew_contract(contract_id, new_end),
        )
    """

    def __init__(
        self,
        capabilities: CapabilityTable,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ):
        self.gate = AccessGate(capabilities)
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        session_factory: sessionmaker[Session] | None = None,
        clock: Clock | None = None,
    ) -> RequestRunner:
        return cls(settings.capabilities, session_factory, clock)

    def run(
        self,
        operation: str,
        actor_id: UUID | str | None,
        work: Callable[[BackOffice], T],
        correlation_id: str | None = None,
    ) -> T:
        """
        Run ``work`` for the user ``actor_id``.

        Raises:
            AuthenticationError / InactiveUserError: actor resolution failed.
            AccessDeniedError: the role does not grant ``operation``.
            InsuranceKernelError: whatever the workflow raised.
        """
        correlation_id = correlation_id or str(uuid4())
        with _request_log(correlation_id, operation):
            with session_scope(self._session_factory) as session:
                context = ActorResolver(session).resolve(actor_id, correlation_id)
                return self._execute(session, context, operation, work)

    def run_as_system(
        self,
        operation: str,
        work: Callable[[BackOffice], T],
        correlation_id: str | None = None,
    ) -> T:
        """Run an unattended job (no user account; role "system")."""
        context = ActorContext.system(correlation_id)
        with _request_log(context.correlation_id, operation):
            with session_scope(self._session_factory) as session:
                return self._execute(session, context, operation, work)

    def _execute(
        self,
        session: Session,
        context: ActorContext,
        operation: str,
        work: Callable[[BackOffice], T],
    ) -> T:
        self.gate.check(context, operation)
        with LogContext.bind(actor_id=context.actor_id, actor_role=context.role):
            office = BackOffice(session, context, self._clock)
            result = work(office)
            logger.info("request_completed")
            return result
