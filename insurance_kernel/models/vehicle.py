"""
Module: insurance_kernel.models.vehicle
Responsibility: ORM persistence for insured vehicles, keyed by plate number.
Architecture position: Kernel > Models.  May import from db/ only.

Invariants enforced:
    - immatriculation is globally unique (uq_vehicle_immatriculation).
"""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from insurance_kernel.db.base import TrackedBase, UUIDString


class Vehicle(TrackedBase):
    __tablename__ = "vehicles"

    __table_args__ = (
        UniqueConstraint("immatriculation", name="uq_vehicle_immatriculation"),
    )

    immatriculation: Mapped[str] = mapped_column(String(20), nullable=False)
    marque: Mapped[str | None] = mapped_column(String(100), nullable=True)
    modele: Mapped[str | None] = mapped_column(String(100), nullable=True)
    annee: Mapped[int | None] = mapped_column(nullable=True)

    id_police: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("contracts.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Vehicle {self.immatriculation}>"
