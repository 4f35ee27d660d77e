"""
Module: insurance_kernel.models.document
Responsibility: Metadata of documents whose bytes live outside the database
    (scans, reports, photos).  Only the storage path is kept here.
Architecture position: Kernel > Models.  May import from db/ only.

A document is attached to at least one owner: client, contract, claim or
folder.  Archiving a folder detaches its documents (id_dossier -> NULL).
"""

from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase, UUIDString


class Document(TrackedBase):
    __tablename__ = "documents"

    __table_args__ = (
        Index("idx_document_claim", "id_sinistre"),
        Index("idx_document_folder", "id_dossier"),
    )

    nom_fichier: Mapped[str] = mapped_column(String(255), nullable=False)
    chemin_fichier: Mapped[str] = mapped_column(String(1024), nullable=False)
    type_fichier: Mapped[str | None] = mapped_column(String(100), nullable=True)

    id_client: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("clients.id"), nullable=True
    )
    id_police: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("contracts.id"), nullable=True
    )
    id_sinistre: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("claims.id"), nullable=True
    )
    id_dossier: Mapped[UUID | None] = mapped_column(
        UUIDString(), ForeignKey("folders.id"), nullable=True
    )
