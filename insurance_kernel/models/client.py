"""
Module: insurance_kernel.models.client
Responsibility: ORM persistence for policyholders.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - email is globally unique (uq_client_email).
    - carte_identite (national ID) is unique when present.
"""

from sqlalchemy import Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase


class Client(TrackedBase):
    """A policyholder.  Owns zero or more contracts."""

    __tablename__ = "clients"

    __table_args__ = (
        UniqueConstraint("email", name="uq_client_email"),
        UniqueConstraint("carte_identite", name="uq_client_carte_identite"),
        Index("idx_client_nom", "nom", "prenom"),
    )

    nom: Mapped[str] = mapped_column(String(100), nullable=False)
    prenom: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    telephone: Mapped[str | None] = mapped_column(String(30), nullable=True)
    carte_identite: Mapped[str | None] = mapped_column(String(50), nullable=True)
    adresse: Mapped[str | None] = mapped_column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Client {self.prenom} {self.nom}>"
