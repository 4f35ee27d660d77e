"""
Module: insurance_kernel.models.reference
Responsibility: ORM persistence for reference data and back-office staff:
    insurers (Company), insurance product types (InsuranceType), folder
    states (FolderState), roles (Role) and users (User).
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - InsuranceType.nom, FolderState.nom_etat, Role.nom_role and User.email
      are globally unique (DB constraints; services pre-check and raise
      DuplicateError).
    - A new User is inactive until explicitly activated.

Audit relevance:
    User.id is the actor id written on every HistoryEvent.  Role.nom_role
    is the key of the capability table consulted by the access gate.
"""

from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase, UUIDString


class Company(TrackedBase):
    """Insurer issuing contracts."""

    __tablename__ = "companies"

    nom_compagnie: Mapped[str] = mapped_column(String(255), nullable=False)


class InsuranceType(TrackedBase):
    """Insurance product line (auto, home, health...)."""

    __tablename__ = "insurance_types"

    __table_args__ = (
        UniqueConstraint("nom", name="uq_insurance_type_nom"),
    )

    nom: Mapped[str] = mapped_column(String(100), nullable=False)


class FolderState(TrackedBase):
    """Administrative state of a folder (open, pending documents, closed...)."""

    __tablename__ = "folder_states"

    __table_args__ = (
        UniqueConstraint("nom_etat", name="uq_folder_state_nom"),
    )

    nom_etat: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class Role(TrackedBase):
    """Staff role; the key into the capability table."""

    __tablename__ = "roles"

    __table_args__ = (
        UniqueConstraint("nom_role", name="uq_role_nom"),
    )

    nom_role: Mapped[str] = mapped_column(String(50), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)


class User(TrackedBase):
    """
    Back-office staff member.

    Contract:
        password_hash is produced by an external credential service and
        stored opaquely.  is_actif gates every request made by the user.
    """

    __tablename__ = "users"

    __table_args__ = (
        UniqueConstraint("email", name="uq_user_email"),
    )

    nom: Mapped[str] = mapped_column(String(100), nullable=False)
    prenom: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    password_hash: Mapped[str | None] = mapped_column(String(255), nullable=True)
    fonction: Mapped[str | None] = mapped_column(String(100), nullable=True)
    direction: Mapped[str | None] = mapped_column(String(100), nullable=True)
    is_actif: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    id_role: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("roles.id"),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<User {self.email} actif={self.is_actif}>"
