"""
UserService -- back-office staff accounts.

New accounts are inactive; an administrator activates them.  The password
hash is supplied by the external credential service and is kept out of
history snapshots.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from insurance_kernel.db.base import ROW_METADATA_COLUMNS
from insurance_kernel.domain.dtos import UserInfo
from insurance_kernel.domain.validation import (
    is_blank,
    reject_unknown_fields,
    require_fields,
    validate_email,
)
from insurance_kernel.exceptions import ValidationError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.models.reference import Role, User
from insurance_kernel.services.base import BaseService, to_dto
from insurance_kernel.services.repository import AuditedRepository

logger = get_logger("services.user")

USER_LABEL = "Utilisateur"

_UPDATABLE_FIELDS = ("nom", "prenom", "email", "fonction", "direction", "id_role", "password_hash")


class UserService(BaseService[User]):

    def __init__(self, session, context=None, clock=None):
        super().__init__(session, context, clock)
        self.users = AuditedRepository(
            session,
            User,
            USER_LABEL,
            self.recorder,
            unique_fields=("email",),
            snapshot_exclude=ROW_METADATA_COLUMNS | {"password_hash"},
        )

    def get_user(self, user_id: UUID) -> UserInfo:
        return to_dto(self.users.get(user_id), UserInfo)

    def find_by_email(self, email: str) -> UserInfo | None:
        user = self.users.find_one_by(email=email.strip().lower())
        return to_dto(user, UserInfo) if user else None

    def create_user(
        self,
        nom: str,
        prenom: str,
        email: str,
        id_role: UUID,
        password_hash: str | None = None,
        fonction: str | None = None,
        direction: str | None = None,
    ) -> UserInfo:
        values: dict[str, Any] = {
            "nom": nom,
            "prenom": prenom,
            "email": email,
            "id_role": id_role,
            "password_hash": password_hash,
            "fonction": fonction,
            "direction": direction,
            "is_actif": False,
        }
        require_fields(values, ("nom", "prenom", "email", "id_role"))
        values["email"] = validate_email(email)
        values["id_role"] = self._require(Role, id_role, "Role").id

        user = self.users.create(values)
        logger.info("user_created", extra={"user_id": str(user.id)})
        return to_dto(user, UserInfo)

    def update_user(self, user_id: UUID, changes: dict[str, Any]) -> UserInfo:
        reject_unknown_fields(changes, _UPDATABLE_FIELDS)
        user = self.users.get(user_id)
        changes = dict(changes)
        for required in ("nom", "prenom"):
            if required in changes and is_blank(changes[required]):
                raise ValidationError(required, "is required")
        if "email" in changes:
            changes["email"] = validate_email(changes["email"])
        if "id_role" in changes:
            changes["id_role"] = self._require(Role, changes["id_role"], "Role").id

        self.users.update(user, changes)
        return to_dto(user, UserInfo)

    def set_active(self, user_id: UUID, active: bool) -> UserInfo:
        user = self.users.get(user_id)
        self.users.update(
            user,
            {"is_actif": active},
            event_type="Activation Utilisateur" if active else "Désactivation Utilisateur",
        )
        logger.info(
            "user_activation_changed",
            extra={"user_id": str(user.id), "is_actif": active},
        )
        return to_dto(user, UserInfo)

    def activate_user(self, user_id: UUID) -> UserInfo:
        return self.set_active(user_id, True)

    def deactivate_user(self, user_id: UUID) -> UserInfo:
        return self.set_active(user_id, False)
