"""
Service layer for policyholders.

Returns ClientInfo DTOs.  Every write is audited.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import select

from insurance_kernel.domain.dtos import ClientInfo
from insurance_kernel.domain.validation import (
    is_blank,
    reject_unknown_fields,
    require_fields,
    validate_email,
)
from insurance_kernel.exceptions import ValidationError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.client import Client
from insurance_kernel.models.contract import Contract
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.client")

CLIENT_LABEL = "Client"

_UPDATABLE_FIELDS = ("nom", "prenom", "email", "telephone", "carte_identite", "adresse")


class ClientService(BaseService[Client]):
    """Create, update and remove policyholders."""

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.clients = AuditedRepository(
            session,
            Client,
            CLIENT_LABEL,
            self.recorder,
            unique_fields=("email", "carte_identite"),
        )

    def get_client(self, client_id: UUID) -> ClientInfo:
        return to_dto(self.clients.get(client_id), ClientInfo)

    def find_by_email(self, email: str) -> ClientInfo | None:
        client = self.clients.find_one_by(email=email.strip().lower())
        return to_dto(client, ClientInfo) if client else None

    def create_client(
        self,
        nom: str,
        prenom: str,
        email: str,
        telephone: str | None = None,
        carte_identite: str | None = None,
        adresse: str | None = None,
    ) -> ClientInfo:
        values = {
            "nom": nom,
            "prenom": prenom,
            "email": email,
            "telephone": telephone,
            "carte_identite": carte_identite,
            "adresse": adresse,
        }
        require_fields(values, ("nom", "prenom", "email"))
        values["email"] = validate_email(email)
        if is_blank(carte_identite):
            values["carte_identite"] = None

        client = self.clients.create(values)
        logger.info("client_created", extra={"client_id": str(client.id)})
        return to_dto(client, ClientInfo)

    def update_client(self, client_id: UUID, changes: dict[str, Any]) -> ClientInfo:
        reject_unknown_fields(changes, _UPDATABLE_FIELDS)
        client = self.clients.get(client_id)
        changes = dict(changes)
        for required in ("nom", "prenom"):
            if required in changes and is_blank(changes[required]):
                raise ValidationError(required, "is required")
        if "email" in changes:
            changes["email"] = validate_email(changes["email"])
        if "carte_identite" in changes and is_blank(changes["carte_identite"]):
            changes["carte_identite"] = None

        self.clients.update(client, changes)
        return to_dto(client, ClientInfo)

    def delete_client(self, client_id: UUID) -> None:
        client = self.clients.get(client_id)
        holds_contracts = self.session.execute(
            select(Contract.id).where(Contract.id_client == client.id).limit(1)
        ).first()
        if holds_contracts is not None:
            raise ValidationError("id_client", "client still holds contracts")
        self.clients.delete(client)
        logger.info("client_deleted", extra={"client_id": str(client_id)})
