"""
FolderService -- folder (dossier) maintenance and archiving.

Responsibility:
    Opens one folder per contract, keeps its title/state current and, at
    the end of its life, replaces it with an immutable Archive row.

Architecture position:
    Kernel > Services -- imperative shell over AuditedRepository.

Invariants enforced:
    - numero_dossier globally unique; at most one folder per contract.
    - archive_folder is all-or-nothing: snapshot, Archive row, claim and
      document detachment and folder deletion share the request
      transaction.  Any failure leaves the folder untouched.
    - The Archive row is never updated or deleted afterwards
      (db/immutability.py).

Failure modes:
    - NotFoundError: folder, contract or folder state missing.
    - DuplicateError: numero_dossier taken, or the contract already has a
      folder (field id_police).
    - ValidationError: missing title/number, blank archive reason.
"""

from __future__ import annotations

from datetime import date
from typing import Any
from uuid import UUID

from insurance_kernel.domain.dtos import ArchiveInfo, FolderInfo
from insurance_kernel.domain.validation import (
    is_blank,
    parse_date,
    reject_unknown_fields,
    require_fields,
)
from insurance_kernel.exceptions import ValidationError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.claim import Claim
from insurance_kernel.models.contract import Contract
from insurance_kernel.models.document import Document
from insurance_kernel.models.folder import Archive, Folder
from insurance_kernel.models.reference import FolderState
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.claim_service import CLAIM_LABEL
from insurance_kernel.services.repository import AuditedRepository, Repository
from insurance_kernel.utils.snapshot import entity_snapshot

logger = get_logger("services.folder")

FOLDER_LABEL = "Dossier"
ARCHIVE_LABEL = "Archive"

_UPDATABLE_FIELDS = ("numero_dossier", "titre", "date_creation", "id_etat_dossier")


class FolderService(BaseService[Folder]):
    """Folder workflows, including archiving."""

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.folders = AuditedRepository(
            session,
            Folder,
            FOLDER_LABEL,
            self.recorder,
            unique_fields=("numero_dossier", "id_police"),
        )
        self.claims = AuditedRepository(session, Claim, CLAIM_LABEL, self.recorder)
        self.documents = Repository(session, Document, "Document")
        self.archives = Repository(session, Archive, ARCHIVE_LABEL)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_folder(self, folder_id: UUID) -> FolderInfo:
        return to_dto(self.folders.get(folder_id), FolderInfo)

    def find_for_contract(self, contract_id: UUID) -> FolderInfo | None:
        folder = self.folders.find_one_by(id_police=contract_id)
        return to_dto(folder, FolderInfo) if folder else None

    def get_archive(self, archive_id: UUID) -> ArchiveInfo:
        return to_dto(self.archives.get(archive_id), ArchiveInfo)

    def list_archives(
        self,
        numero_dossier: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[ArchiveInfo]:
        conditions = []
        if numero_dossier is not None:
            conditions.append(Archive.numero_dossier == numero_dossier)
        rows = self.archives.list(
            *conditions,
            order_by=(Archive.date_archivage.desc(), Archive.id),
            limit=limit,
            offset=offset,
        )
        return [to_dto(a, ArchiveInfo) for a in rows]

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_folder(
        self,
        numero_dossier: str,
        id_police: UUID,
        titre: str | None = None,
        date_creation: date | str | None = None,
        id_etat_dossier: UUID | None = None,
    ) -> FolderInfo:
        values: dict[str, Any] = {
            "numero_dossier": numero_dossier.strip() if isinstance(numero_dossier, str) else numero_dossier,
            "id_police": id_police,
            "titre": titre,
            "date_creation": parse_date(date_creation, "date_creation") or self.clock.today(),
            "id_etat_dossier": id_etat_dossier,
        }
        require_fields(values, ("numero_dossier", "id_police"))
        contract = self._require(Contract, id_police, "Contrat")
        values["id_police"] = contract.id
        if id_etat_dossier is not None:
            self._require(FolderState, id_etat_dossier, "EtatDossier")

        folder = self.folders.create(values)
        logger.info(
            "folder_created",
            extra={"numero_dossier": folder.numero_dossier, "contract_id": str(contract.id)},
        )
        return to_dto(folder, FolderInfo)

    def update_folder(self, folder_id: UUID, changes: dict[str, Any]) -> FolderInfo:
        reject_unknown_fields(changes, _UPDATABLE_FIELDS)
        folder = self.folders.get(folder_id)
        changes = dict(changes)
        if "numero_dossier" in changes:
            if is_blank(changes["numero_dossier"]):
                raise ValidationError("numero_dossier", "is required")
            changes["numero_dossier"] = changes["numero_dossier"].strip()
        if "date_creation" in changes:
            changes["date_creation"] = parse_date(changes["date_creation"], "date_creation")
            if changes["date_creation"] is None:
                raise ValidationError("date_creation", "is required")
        if changes.get("id_etat_dossier") is not None:
            self._require(FolderState, changes["id_etat_dossier"], "EtatDossier")

        self.folders.update(folder, changes)
        return to_dto(folder, FolderInfo)

    def archive_folder(self, folder_id: UUID, reason: str) -> ArchiveInfo:
        """
        Replace a folder by its immutable archive.

        Steps, all in the caller's transaction:
            1. Snapshot the folder and its claims and documents.
            2. Insert the Archive row.
            3. Detach the claims (audited) and the documents.
            4. Delete the folder ("Archivage Dossier" event).

        Raises:
            NotFoundError: the folder does not exist.
            ValidationError: blank reason.
        """
        folder = self.folders.get(folder_id)
        if is_blank(reason):
            raise ValidationError("raison_archivage", "is required")

        claims = self.claims.list(Claim.id_dossier == folder.id, order_by=Claim.numero_sinistre)
        documents = self.documents.list(Document.id_dossier == folder.id, order_by=Document.nom_fichier)
        content = {
            "dossier": entity_snapshot(folder),
            "sinistres": [entity_snapshot(c) for c in claims],
            "documents": [entity_snapshot(d) for d in documents],
        }

        archive = self.archives.add(
            {
                "id_dossier": folder.id,
                "numero_dossier": folder.numero_dossier,
                "raison_archivage": reason.strip(),
                "contenu_dossier": content,
                "date_archivage": self.clock.now(),
                "archive_par_id": self.context.get_current_actor_id(),
            }
        )

        for claim in claims:
            self.claims.update(
                claim,
                {"id_dossier": None},
                description=f"Détaché du dossier archivé {folder.numero_dossier}",
            )
        for document in documents:
            self.documents.apply(document, {"id_dossier": None})

        numero = folder.numero_dossier
        self.folders.delete(
            folder,
            event_type="Archivage Dossier",
            description=f"Dossier {numero} archivé : {reason.strip()}",
        )
        logger.info(
            "folder_archived",
            extra={
                "numero_dossier": numero,
                "archive_id": str(archive.id),
                "claims_detached": len(claims),
                "documents_detached": len(documents),
            },
        )
        return to_dto(archive, ArchiveInfo)
