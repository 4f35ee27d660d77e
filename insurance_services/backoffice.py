"""
insurance_services.backoffice -- per-request container for kernel services.

Responsibility:
    Builds every workflow service exactly once for one request, sharing the
    request's Session, ActorContext and Clock, so that every mutation made
    during the request lands in the same transaction with the same actor.

Non-goals:
    - Does NOT manage the transaction (RequestRunner / session_scope do).
"""

from __future__ import annotations

from sqlalchemy.orm import Session

from insurance_kernel.domain.clock import Clock, SystemClock
from insurance_kernel.domain.context import ActorContext
from insurance_kernel.selectors.analytics_selector import AnalyticsSelector
from insurance_kernel.selectors.history_selector import HistorySelector
from insurance_kernel.services.claim_service import ClaimService
from insurance_kernel.services.client_service import ClientService
from insurance_kernel.services.contract_service import ContractService
from insurance_kernel.services.document_service import DocumentService
from insurance_kernel.services.folder_service import FolderService
from insurance_kernel.services.indemnification_service import IndemnificationService
from insurance_kernel.services.premium_service import PremiumService
from insurance_kernel.services.reconciliation_service import ReconciliationService
from insurance_kernel.services.reference_service import ReferenceDataService
from insurance_kernel.services.user_service import UserService
from insurance_kernel.services.vehicle_service import VehicleService


class BackOffice:
    """
    Service container handed to request work functions.

    Usage:
        office = BackOffice(session, context, clock)
        office.contracts.renew_contract(contract_id, date(2026, 12, 31))
        office.history.history_for_entity("Contrat", contract_id)
    """

    def __init__(
        self,
        session: Session,
        context: ActorContext,
        clock: Clock | None = None,
    ):
        self.session = session
        self.context = context
        self.clock = clock or SystemClock()

        args = (session, context, self.clock)
        self.clients = ClientService(*args)
        self.contracts = ContractService(*args)
        self.claims = ClaimService(*args)
        self.indemnifications = IndemnificationService(*args)
        self.premiums = PremiumService(*args)
        self.folders = FolderService(*args)
        self.vehicles = VehicleService(*args)
        self.documents = DocumentService(*args)
        self.users = UserService(*args)
        self.reference = ReferenceDataService(*args)
        self.reconciliation = ReconciliationService(*args)
        self.history = HistorySelector(session)
        self.analytics = AnalyticsSelector(session)
