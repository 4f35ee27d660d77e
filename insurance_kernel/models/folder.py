"""
Module: insurance_kernel.models.folder
Responsibility: ORM persistence for folders (dossiers), the administrative
    case wrapper around a contract, and for their archives.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - numero_dossier is globally unique (uq_folder_numero).
    - Folder <-> Contract is one-to-one (uq_folder_contract).
    - Archive rows are append-only: no UPDATE or DELETE
      (db/immutability.py).

Audit relevance:
    Archiving a folder writes the Archive row, detaches its claims and
    documents, and deletes the folder, all in one transaction, with a
    HistoryEvent for the folder deletion and for each detached claim.
"""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import Base, TrackedBase, UUIDString
from insurance_kernel.db.types import ReferenceNumber


class Folder(TrackedBase):
    """Administrative case around a single contract."""

    __tablename__ = "folders"

    __table_args__ = (
        UniqueConstraint("numero_dossier", name="uq_folder_numero"),
        UniqueConstraint("id_police", name="uq_folder_contract"),
    )

    numero_dossier: Mapped[ReferenceNumber] = mapped_column(nullable=False)
    titre: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_creation: Mapped[date] = mapped_column(nullable=False)

    id_police: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=False,
    )

    id_etat_dossier: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("folder_states.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Folder {self.numero_dossier}>"


class Archive(Base):
    """
    Immutable terminal snapshot of a folder that has been closed out.

    contenu_dossier holds the folder snapshot together with the snapshots
    of the claims and documents that were attached to it at archive time.
    id_dossier deliberately has no foreign key: the folder row is gone.
    """

    __tablename__ = "archives"

    __table_args__ = (
        Index("idx_archive_folder", "id_dossier"),
        Index("idx_archive_date", "date_archivage"),
    )

    id_dossier: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)
    numero_dossier: Mapped[ReferenceNumber] = mapped_column(nullable=False)
    raison_archivage: Mapped[str] = mapped_column(Text, nullable=False)
    contenu_dossier: Mapped[dict[str, Any]] = mapped_column(nullable=False)
    date_archivage: Mapped[datetime] = mapped_column(nullable=False)
    archive_par_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    def __repr__(self) -> str:
        return f"<Archive {self.numero_dossier} at {self.date_archivage}>"
