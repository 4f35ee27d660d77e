"""
BaseService -- abstract base for all workflow services.

Responsibility:
    Common constructor for every service: the request session, the
    request's ActorContext, an injectable Clock and the AuditRecorder
    bound to all three.

Architecture position:
    Kernel > Services.  Every service that writes extends this class.

Invariants enforced:
    - Transaction boundaries: services flush within the caller's
      transaction and never commit or roll back.  session_scope() (or the
      request runner) owns commit/rollback, which is what makes a
      mutation and its HistoryEvent atomic.
"""

from abc import ABC
from dataclasses import fields, is_dataclass
from typing import Any, Generic, TypeVar

from sqlalchemy.orm import Session

from insurance_kernel.db.base import Base
from insurance_kernel.domain.clock import Clock, SystemClock
from insurance_kernel.domain.context import ActorContext
from insurance_kernel.exceptions import NotFoundError
from insurance_kernel.services.audit_recorder import AuditRecorder
from insurance_kernel.services.repository import Repository

ModelType = TypeVar("ModelType", bound=Base)
DTOType = TypeVar("DTOType")


class BaseService(ABC, Generic[ModelType]):
    """
    Abstract base class for workflow services.

    Does NOT manage the transaction lifecycle and does NOT hold state
    across requests: build one instance per request.
    """

    def __init__(
        self,
        session: Session,
        context: ActorContext | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.context = context or ActorContext()
        self.clock = clock or SystemClock()
        self.recorder = AuditRecorder(session, self.context, self.clock)

    def _require(self, model: type[Base], entity_id: Any, label: str) -> Any:
        """Load a referenced row or raise NotFoundError naming ``label``."""
        entity = Repository(self.session, model, label).find(entity_id)
        if entity is None:
            raise NotFoundError(label, entity_id)
        return entity


def to_dto(entity: Any, dto_cls: type[DTOType]) -> DTOType:
    """Copy the dataclass fields of ``dto_cls`` from an ORM instance."""
    if not is_dataclass(dto_cls):
        raise TypeError(f"{dto_cls!r} is not a dataclass")
    return dto_cls(**{f.name: getattr(entity, f.name) for f in fields(dto_cls)})
