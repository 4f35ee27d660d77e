"""Document metadata: registration and lookup by owner."""

from __future__ import annotations

from uuid import UUID

from insurance_kernel.domain.dtos import DocumentInfo
from insurance_kernel.domain.validation import require_fields
from insurance_kernel.exceptions import ValidationError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.claim import Claim
from insurance_kernel.models.client import Client
from insurance_kernel.models.contract import Contract
from insurance_kernel.models.document import Document
from insurance_kernel.models.folder import Folder
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.document")

DOCUMENT_LABEL = "Document"

# owner column -> (model, label)
_OWNERS = {
    "id_client": (Client, "Client"),
    "id_police": (Contract, "Contrat"),
    "id_sinistre": (Claim, "Sinistre"),
    "id_dossier": (Folder, "Dossier"),
}


class DocumentService(BaseService[Document]):

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.documents = AuditedRepository(session, Document, DOCUMENT_LABEL, self.recorder)

    def get_document(self, document_id: UUID) -> DocumentInfo:
        return to_dto(self.documents.get(document_id), DocumentInfo)

    def register_document(
        self,
        nom_fichier: str,
        chemin_fichier: str,
        type_fichier: str | None = None,
        id_client: UUID | None = None,
        id_police: UUID | None = None,
        id_sinistre: UUID | None = None,
        id_dossier: UUID | None = None,
    ) -> DocumentInfo:
        """Record where a file lives and what it belongs to (at least one owner)."""
        values = {
            "nom_fichier": nom_fichier,
            "chemin_fichier": chemin_fichier,
            "type_fichier": type_fichier,
            "id_client": id_client,
            "id_police": id_police,
            "id_sinistre": id_sinistre,
            "id_dossier": id_dossier,
        }
        require_fields(values, ("nom_fichier", "chemin_fichier"))
        owners = [column for column in _OWNERS if values[column] is not None]
        if not owners:
            raise ValidationError("owner", "a document needs a client, contract, claim or folder")
        for column in owners:
            model, label = _OWNERS[column]
            values[column] = self._require(model, values[column], label).id

        document = self.documents.create(values)
        logger.info(
            "document_registered",
            extra={"document_id": str(document.id), "owners": owners},
        )
        return to_dto(document, DocumentInfo)

    def list_for_owner(self, owner: str, owner_id: UUID) -> list[DocumentInfo]:
        """``owner`` is one of id_client, id_police, id_sinistre, id_dossier."""
        if owner not in _OWNERS:
            raise ValidationError("owner", f"unknown owner column: {owner}")
        rows = self.documents.list(
            getattr(Document, owner) == owner_id,
            order_by=(Document.nom_fichier, Document.id),
        )
        return [to_dto(d, DocumentInfo) for d in rows]

    def delete_document(self, document_id: UUID) -> None:
        self.documents.delete(self.documents.get(document_id))
