"""
Generic entity repository with uniqueness enforcement and audited writes.

Responsibility:
    Transactional CRUD for one mapped entity type.  Repository covers the
    reads plus unaudited writes (reference data); AuditedRepository pairs
    every create/update/delete with an AuditRecorder call in the same
    session so that mutation and history commit or roll back together.

Architecture position:
    Kernel > Services.  Workflow services own one repository per entity
    they touch and never call ``session.commit()``.

Invariants enforced:
    - Unique fields are pre-checked and reported as DuplicateError naming
      the field.  A concurrent insert that slips past the pre-check is
      rejected by the database; the IntegrityError is translated to
      DuplicateError (unique) or ValidationError (foreign key) here, so
      raw SQLAlchemy errors never leave the kernel.
    - Mutate-then-audit is explicit: snapshot, write, flush, record.
"""

from __future__ import annotations

from typing import Any, Generic, Iterable, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from insurance_kernel.db.base import ROW_METADATA_COLUMNS, Base
from insurance_kernel.exceptions import DuplicateError, NotFoundError, ValidationError
from insurance_kernel.logging_config import get_logger
from insurance_kernel.services.audit_recorder import AuditRecorder
from insurance_kernel.utils.snapshot import entity_snapshot

logger = get_logger("services.repository")

ModelType = TypeVar("ModelType", bound=Base)


class Repository(Generic[ModelType]):
    """
    Reads and plain writes for ``model``.

    Args:
        session: Request session.
        model: Mapped class.
        entity_label: Name used in errors and history rows ("Contrat").
        unique_fields: Columns that must be globally unique.
    """

    def __init__(
        self,
        session: Session,
        model: type[ModelType],
        entity_label: str,
        unique_fields: Iterable[str] = (),
    ):
        self.session = session
        self.model = model
        self.entity_label = entity_label
        self.unique_fields = tuple(unique_fields)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entity_id: UUID | str | None, label: str | None = None) -> ModelType:
        """Load by primary key or raise NotFoundError."""
        entity = self.find(entity_id)
        if entity is None:
            raise NotFoundError(label or self.entity_label, entity_id)
        return entity

    def find(self, entity_id: UUID | str | None) -> ModelType | None:
        if entity_id is None:
            return None
        if isinstance(entity_id, str):
            try:
                entity_id = UUID(entity_id)
            except ValueError:
                return None
        return self.session.get(self.model, entity_id)

    def find_one_by(self, **criteria: Any) -> ModelType | None:
        return self.session.execute(
            select(self.model).filter_by(**criteria).limit(1)
        ).scalar_one_or_none()

    def exists(self, *conditions: Any, **criteria: Any) -> bool:
        stmt = select(self.model.id).filter_by(**criteria)
        if conditions:
            stmt = stmt.where(*conditions)
        return self.session.execute(stmt.limit(1)).first() is not None

    def list(
        self,
        *conditions: Any,
        order_by: Any = None,
        limit: int | None = None,
        offset: int | None = None,
    ) -> Sequence[ModelType]:
        stmt = select(self.model)
        if conditions:
            stmt = stmt.where(*conditions)
        if order_by is not None:
            stmt = stmt.order_by(*order_by) if isinstance(order_by, (list, tuple)) else stmt.order_by(order_by)
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        return self.session.execute(stmt).scalars().all()

    def count(self, *conditions: Any) -> int:
        stmt = select(func.count()).select_from(self.model)
        if conditions:
            stmt = stmt.where(*conditions)
        return self.session.execute(stmt).scalar_one()

    # ------------------------------------------------------------------
    # Uniqueness
    # ------------------------------------------------------------------

    def ensure_unique(
        self,
        values: dict[str, Any],
        exclude_id: UUID | None = None,
    ) -> None:
        """Raise DuplicateError for the first unique field already taken."""
        for field in self.unique_fields:
            value = values.get(field)
            if value is None:
                continue
            stmt = select(self.model.id).where(getattr(self.model, field) == value)
            if exclude_id is not None:
                stmt = stmt.where(self.model.id != exclude_id)
            if self.session.execute(stmt.limit(1)).first() is not None:
                logger.info(
                    "duplicate_rejected",
                    extra={"entity_type": self.entity_label, "field": field},
                )
                raise DuplicateError(self.entity_label, field, value)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def flush(self) -> None:
        """Flush, translating constraint violations into kernel errors."""
        try:
            self.session.flush()
        except IntegrityError as exc:
            raise self._translate(exc) from exc

    def add(self, values: dict[str, Any]) -> ModelType:
        self.ensure_unique(values)
        entity = self.model(**values)
        self.session.add(entity)
        self.flush()
        return entity

    def apply(self, entity: ModelType, changes: dict[str, Any]) -> ModelType:
        self.ensure_unique(changes, exclude_id=entity.id)
        for key, value in changes.items():
            setattr(entity, key, value)
        self.flush()
        return entity

    def remove(self, entity: ModelType) -> None:
        self.session.delete(entity)
        self.flush()

    def _translate(self, exc: IntegrityError) -> Exception:
        message = str(exc.orig).lower()
        if "unique" in message or "duplicate" in message:
            field = next(
                (f for f in self.unique_fields if f.lower() in message),
                "unique_key",
            )
            logger.warning(
                "unique_violation_translated",
                extra={"entity_type": self.entity_label, "field": field},
            )
            return DuplicateError(self.entity_label, field)
        logger.warning(
            "integrity_violation_translated",
            extra={"entity_type": self.entity_label},
        )
        return ValidationError(
            "reference", f"{self.entity_label} violates a referential constraint"
        )


class AuditedRepository(Repository[ModelType]):
    """
    Repository whose writes each produce exactly one HistoryEvent.

    ``event_type`` / ``description`` override the recorder defaults
    ("Création Contrat", ...) for workflow-specific events such as
    "Renouvellement Contrat".  ``snapshot_exclude`` keeps columns such as
    password hashes out of the history maps.
    """

    def __init__(
        self,
        session: Session,
        model: type[ModelType],
        entity_label: str,
        recorder: AuditRecorder,
        unique_fields: Iterable[str] = (),
        snapshot_exclude: frozenset[str] = ROW_METADATA_COLUMNS,
    ):
        super().__init__(session, model, entity_label, unique_fields)
        self.recorder = recorder
        self.snapshot_exclude = snapshot_exclude

    def create(
        self,
        values: dict[str, Any],
        event_type: str | None = None,
        description: str | None = None,
    ) -> ModelType:
        entity = self.add(values)
        self.recorder.record_create(
            entity,
            self.entity_label,
            event_type=event_type,
            description=description,
            exclude=self.snapshot_exclude,
        )
        return entity

    def update(
        self,
        entity: ModelType,
        changes: dict[str, Any],
        event_type: str | None = None,
        description: str | None = None,
    ) -> ModelType:
        before = entity_snapshot(entity, self.snapshot_exclude)
        self.apply(entity, changes)
        self.recorder.record_update(
            entity,
            self.entity_label,
            before,
            event_type=event_type,
            description=description,
            exclude=self.snapshot_exclude,
        )
        return entity

    def delete(
        self,
        entity: ModelType,
        event_type: str | None = None,
        description: str | None = None,
    ) -> None:
        before = entity_snapshot(entity, self.snapshot_exclude)
        entity_id = entity.id
        self.remove(entity)
        self.recorder.record_delete(
            self.entity_label,
            entity_id,
            before,
            event_type=event_type,
            description=description,
        )
