"""
Typed Exception Hierarchy for the Insurance Kernel.

Every error raised by a workflow service is a subclass of
InsuranceKernelError.  Callers catch by type, never by message, and the
request boundary maps each type to a status code without parsing text.

Each exception:
  1. Has a class-level CODE (machine-readable, API-safe).
  2. Carries structured attributes (entity, field, status) so callers and
     log lines do not need to parse the message.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    InsuranceKernelError (base)
    |
    +-- NotFoundError
    +-- DuplicateError
    +-- ValidationError
    +-- InvalidStateError
    |
    +-- AccessError
    |   +-- AuthenticationError
    |   +-- InactiveUserError
    |   +-- AccessDeniedError
    |
    +-- AuditError
    |   +-- AuditWriteError
    |
    +-- ImmutabilityViolationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Code                  | Boundary status | When Raised
----------------------|-----------------|-------------------------------------
NOT_FOUND             | 404             | Referenced entity does not exist
DUPLICATE             | 409             | Unique key already taken
VALIDATION_ERROR      | 400             | Missing / malformed field
INVALID_STATE         | 409             | Lifecycle forbids the operation
AUTHENTICATION_FAILED | 401             | Actor unknown
INACTIVE_USER         | 403             | Actor exists but is deactivated
ACCESS_DENIED         | 403             | Role lacks the capability
AUDIT_WRITE_FAILED    | 500             | HistoryEvent could not be written
IMMUTABILITY_VIOLATION| 500             | Attempt to alter history or archive
"""

from typing import Any


class InsuranceKernelError(Exception):
    """Base exception for all insurance kernel errors."""

    code: str = "INSURANCE_KERNEL_ERROR"


# =============================================================================
# Entity errors
# =============================================================================


class NotFoundError(InsuranceKernelError):
    """Referenced entity does not exist."""

    code: str = "NOT_FOUND"

    def __init__(self, entity_type: str, entity_id: Any):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        super().__init__(f"{entity_type} not found: {entity_id}")


class DuplicateError(InsuranceKernelError):
    """A uniqueness constraint would be violated."""

    code: str = "DUPLICATE"

    def __init__(self, entity_type: str, field: str, value: Any = None):
        self.entity_type = entity_type
        self.field = field
        self.value = None if value is None else str(value)
        detail = f" = {value}" if value is not None else ""
        super().__init__(f"{entity_type}.{field}{detail} already exists")


class ValidationError(InsuranceKernelError):
    """A field is missing, malformed, or violates a business rule."""

    code: str = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        self.field = field
        self.reason = reason
        super().__init__(f"Invalid {field}: {reason}")


class InvalidStateError(InsuranceKernelError):
    """The entity's lifecycle status forbids the requested operation."""

    code: str = "INVALID_STATE"

    def __init__(
        self,
        entity_type: str,
        entity_id: Any,
        current_status: str,
        target_status: str | None = None,
        operation: str | None = None,
    ):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.current_status = current_status
        self.target_status = target_status
        self.operation = operation
        if target_status is not None:
            msg = (
                f"{entity_type} {entity_id} cannot move from "
                f"'{current_status}' to '{target_status}'"
            )
        else:
            msg = (
                f"{entity_type} {entity_id} in status '{current_status}' "
                f"does not allow {operation or 'this operation'}"
            )
        super().__init__(msg)


# =============================================================================
# Access errors
# =============================================================================


class AccessError(InsuranceKernelError):
    """Base class for actor resolution and authorization errors."""

    code: str = "ACCESS_ERROR"


class AuthenticationError(AccessError):
    """The acting user could not be resolved."""

    code: str = "AUTHENTICATION_FAILED"

    def __init__(self, actor_id: Any, reason: str = "unknown actor"):
        self.actor_id = None if actor_id is None else str(actor_id)
        self.reason = reason
        super().__init__(f"Authentication failed for {actor_id}: {reason}")


class InactiveUserError(AccessError):
    """The acting user exists but is not active."""

    code: str = "INACTIVE_USER"

    def __init__(self, actor_id: Any):
        self.actor_id = str(actor_id)
        super().__init__(f"User {actor_id} is inactive")


class AccessDeniedError(AccessError):
    """The actor's role does not grant the requested operation."""

    code: str = "ACCESS_DENIED"

    def __init__(self, role: str | None, operation: str):
        self.role = role
        self.operation = operation
        super().__init__(f"Role '{role}' may not perform '{operation}'")


# =============================================================================
# Audit errors
# =============================================================================


class AuditError(InsuranceKernelError):
    """Base class for audit trail errors."""

    code: str = "AUDIT_ERROR"


class AuditWriteError(AuditError):
    """A HistoryEvent could not be written; the transaction must roll back."""

    code: str = "AUDIT_WRITE_FAILED"

    def __init__(self, entity_type: str, entity_id: Any, reason: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.reason = reason
        super().__init__(
            f"Audit write failed for {entity_type} {entity_id}: {reason}"
        )


class ImmutabilityViolationError(InsuranceKernelError):
    """Attempt to modify or delete an immutable record."""

    code: str = "IMMUTABILITY_VIOLATION"

    def __init__(self, entity_type: str, entity_id: Any, reason: str):
        self.entity_type = entity_type
        self.entity_id = str(entity_id)
        self.reason = reason
        super().__init__(
            f"Cannot modify immutable {entity_type} {entity_id}: {reason}"
        )
