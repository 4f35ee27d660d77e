"""Insured vehicles, keyed by plate number and optionally attached to a contract."""

from __future__ import annotations

from typing import Any
from uuid import UUID

from insurance_kernel.domain.dtos import VehicleInfo
from insurance_kernel.domain.validation import is_blank, reject_unknown_fields, require_fields
from insurance_kernel.exceptions import ValidationError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.contract import Contract
from insurance_kernel.models.vehicle import Vehicle
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.vehicle")

VEHICLE_LABEL = "Vehicule"

_UPDATABLE_FIELDS = ("immatriculation", "marque", "modele", "annee", "id_police")

# First production year accepted for annee.
_MIN_YEAR = 1886


def normalize_plate(value: str) -> str:
    return "".join(value.split()).upper()


class VehicleService(BaseService[Vehicle]):

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.vehicles = AuditedRepository(
            session,
            Vehicle,
            VEHICLE_LABEL,
            self.recorder,
            unique_fields=("immatriculation",),
        )

    def get_vehicle(self, vehicle_id: UUID) -> VehicleInfo:
        return to_dto(self.vehicles.get(vehicle_id), VehicleInfo)

    def list_for_contract(self, contract_id: UUID) -> list[VehicleInfo]:
        rows = self.vehicles.list(Vehicle.id_police == contract_id, order_by=Vehicle.immatriculation)
        return [to_dto(v, VehicleInfo) for v in rows]

    def _check_year(self, annee: Any) -> int | None:
        if annee is None:
            return None
        if isinstance(annee, bool) or not isinstance(annee, int):
            raise ValidationError("annee", "must be an integer year")
        if not _MIN_YEAR <= annee <= self.clock.today().year + 1:
            raise ValidationError("annee", f"out of range: {annee}")
        return annee

    def create_vehicle(
        self,
        immatriculation: str,
        marque: str | None = None,
        modele: str | None = None,
        annee: int | None = None,
        id_police: UUID | None = None,
    ) -> VehicleInfo:
        values: dict[str, Any] = {
            "immatriculation": immatriculation,
            "marque": marque,
            "modele": modele,
            "annee": self._check_year(annee),
            "id_police": id_police,
        }
        require_fields(values, ("immatriculation",))
        values["immatriculation"] = normalize_plate(immatriculation)
        if id_police is not None:
            values["id_police"] = self._require(Contract, id_police, "Contrat").id

        vehicle = self.vehicles.create(values)
        logger.info("vehicle_created", extra={"immatriculation": vehicle.immatriculation})
        return to_dto(vehicle, VehicleInfo)

    def update_vehicle(self, vehicle_id: UUID, changes: dict[str, Any]) -> VehicleInfo:
        reject_unknown_fields(changes, _UPDATABLE_FIELDS)
        vehicle = self.vehicles.get(vehicle_id)
        changes = dict(changes)
        if "immatriculation" in changes:
            if is_blank(changes["immatriculation"]):
                raise ValidationError("immatriculation", "is required")
            changes["immatriculation"] = normalize_plate(changes["immatriculation"])
        if "annee" in changes:
            changes["annee"] = self._check_year(changes["annee"])
        if changes.get("id_police") is not None:
            changes["id_police"] = self._require(Contract, changes["id_police"], "Contrat").id

        self.vehicles.update(vehicle, changes)
        return to_dto(vehicle, VehicleInfo)

    def attach_to_contract(self, vehicle_id: UUID, contract_id: UUID | None) -> VehicleInfo:
        """Attach to ``contract_id``, or detach when it is None."""
        return self.update_vehicle(vehicle_id, {"id_police": contract_id})

    def delete_vehicle(self, vehicle_id: UUID) -> None:
        vehicle = self.vehicles.get(vehicle_id)
        self.vehicles.delete(vehicle)
        logger.info("vehicle_deleted", extra={"vehicle_id": str(vehicle_id)})
