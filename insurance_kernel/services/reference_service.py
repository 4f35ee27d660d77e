"""
ReferenceDataService -- insurers, product types, folder states and roles.

Reference rows are configuration rather than business events: they are
written through a plain Repository and produce no HistoryEvent.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from insurance_kernel.domain.validation import require_fields
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.reference import Company, FolderState, InsuranceType, Role
from insurance_kernel.services.base import BaseService
from insurance_kernel.services.repository import Repository

logger = get_logger("services.reference")


def _clean(values: dict[str, Any], required: tuple[str, ...]) -> dict[str, Any]:
    require_fields(values, required)
    return {k: v.strip() if isinstance(v, str) else v for k, v in values.items()}


class ReferenceDataService(BaseService[Company]):
    """Create and look up reference data."""

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.companies = Repository(session, Company, "Compagnie")
        self.insurance_types = Repository(
            session, InsuranceType, "TypeAssurance", unique_fields=("nom",)
        )
        self.folder_states = Repository(
            session, FolderState, "EtatDossier", unique_fields=("nom_etat",)
        )
        self.roles = Repository(session, Role, "Role", unique_fields=("nom_role",))

    def create_company(self, nom_compagnie: str) -> Company:
        company = self.companies.add(_clean({"nom_compagnie": nom_compagnie}, ("nom_compagnie",)))
        logger.info("company_created", extra={"company_id": str(company.id)})
        return company

    def create_insurance_type(self, nom: str) -> InsuranceType:
        insurance_type = self.insurance_types.add(_clean({"nom": nom}, ("nom",)))
        logger.info("insurance_type_created", extra={"nom": insurance_type.nom})
        return insurance_type

    def create_folder_state(self, nom_etat: str, description: str | None = None) -> FolderState:
        state = self.folder_states.add(
            _clean({"nom_etat": nom_etat, "description": description}, ("nom_etat",))
        )
        logger.info("folder_state_created", extra={"nom_etat": state.nom_etat})
        return state

    def create_role(self, nom_role: str, description: str | None = None) -> Role:
        role = self.roles.add(
            _clean({"nom_role": nom_role, "description": description}, ("nom_role",))
        )
        logger.info("role_created", extra={"nom_role": role.nom_role})
        return role

    def get_role(self, role_id: UUID) -> Role:
        return self.roles.get(role_id)

    def find_role(self, nom_role: str) -> Role | None:
        return self.roles.find_one_by(nom_role=nom_role)

    def list_companies(self) -> list[Company]:
        return list(self.companies.list(order_by=Company.nom_compagnie))

    def list_insurance_types(self) -> list[InsuranceType]:
        return list(self.insurance_types.list(order_by=InsuranceType.nom))

    def list_folder_states(self) -> list[FolderState]:
        return list(self.folder_states.list(order_by=FolderState.nom_etat))
