"""Domain models for the insurance kernel."""

from insurance_kernel.models.bank_transaction import BankTransaction
from insurance_kernel.models.claim import Claim
from insurance_kernel.models.client import Client
from insurance_kernel.models.contract import Contract
from insurance_kernel.models.document import Document
from insurance_kernel.models.folder import Archive, Folder
from insurance_kernel.models.history_event import HistoryAction, HistoryEvent
from insurance_kernel.models.indemnification import Indemnification
from insurance_kernel.models.premium import Premium
from insurance_kernel.models.reference import (
    Company,
    FolderState,
    InsuranceType,
    Role,
    User,
)
from insurance_kernel.models.vehicle import Vehicle
from insurance_kernel.models.sequence import SequenceCounter

__all__ = [
    "Archive",
    "BankTransaction",
    "Claim",
    "Client",
    "Company",
    "Contract",
    "Document",
    "Folder",
    "FolderState",
    "HistoryAction",
    "HistoryEvent",
    "Indemnification",
    "InsuranceType",
    "Premium",
    "Role",
    "SequenceCounter",
    "User",
    "Vehicle",
]
