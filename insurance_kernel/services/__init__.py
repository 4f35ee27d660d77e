"""Services for the insurance kernel (write side)."""

from insurance_kernel.services.audit_recorder import AuditRecorder
from insurance_kernel.services.claim_service import ClaimService
from insurance_kernel.services.client_service import ClientService
from insurance_kernel.services.contract_service import ContractService
from insurance_kernel.services.document_service import DocumentService
from insurance_kernel.services.folder_service import FolderService
from insurance_kernel.services.indemnification_service import IndemnificationService
from insurance_kernel.services.premium_service import PremiumService
from insurance_kernel.services.reconciliation_service import ReconciliationService
from insurance_kernel.services.reference_service import ReferenceDataService
from insurance_kernel.services.repository import AuditedRepository, Repository
from insurance_kernel.services.sequence_service import SequenceService
from insurance_kernel.services.user_service import UserService
from insurance_kernel.services.vehicle_service import VehicleService

__all__ = [
    "AuditRecorder",
    "AuditedRepository",
    "ClaimService",
    "ClientService",
    "ContractService",
    "DocumentService",
    "FolderService",
    "IndemnificationService",
    "PremiumService",
    "ReconciliationService",
    "ReferenceDataService",
    "Repository",
    "SequenceService",
    "UserService",
    "VehicleService",
]
