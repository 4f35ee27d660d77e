"""
insurance_services.error_mapping -- kernel exceptions to boundary responses.

The HTTP layer is external; this module gives it the (status, body)
translation to use.  Bodies carry the machine-readable code and the
structured attributes of the error, never snapshots or tracebacks unless
``expose_details`` is set.
"""

from __future__ import annotations

import traceback
from typing import Any

from insurance_kernel.exceptions import (
    AccessDeniedError,
    AuditError,
    AuthenticationError,
    DuplicateError,
    ImmutabilityViolationError,
    InactiveUserError,
    InsuranceKernelError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from insurance_kernel.logging_config import get_logger

logger = get_logger("services.error_mapping")

# Most specific first.
STATUS_BY_ERROR: tuple[tuple[type[InsuranceKernelError], int], ...] = (
    (NotFoundError, 404),
    (DuplicateError, 409),
    (ValidationError, 400),
    (InvalidStateError, 409),
    (AuthenticationError, 401),
    (InactiveUserError, 403),
    (AccessDeniedError, 403),
    (AuditError, 500),
    (ImmutabilityViolationError, 500),
)

INTERNAL_ERROR_CODE = "INTERNAL_ERROR"
INTERNAL_ERROR_MESSAGE = "An internal error occurred"

# Public attributes per error type; anything else stays server-side.
_PUBLIC_FIELDS: dict[type[InsuranceKernelError], tuple[str, ...]] = {
    NotFoundError: ("entity_type", "entity_id"),
    DuplicateError: ("entity_type", "field"),
    ValidationError: ("field", "reason"),
    InvalidStateError: ("entity_type", "entity_id", "current_status", "target_status", "operation"),
    AccessDeniedError: ("operation",),
}


def status_for(exc: BaseException) -> int:
    for error_type, status in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status
    return 500


def error_response(
    exc: BaseException,
    expose_details: bool = False,
) -> tuple[int, dict[str, Any]]:
    """
    Map an exception to ``(status, body)``.

    Server errors (500) get a generic message unless ``expose_details``;
    client errors always carry their message and public attributes.
    """
    status = status_for(exc)
    if isinstance(exc, InsuranceKernelError):
        body: dict[str, Any] = {"code": exc.code}
        if status < 500 or expose_details:
            body["message"] = str(exc)
            for error_type, names in _PUBLIC_FIELDS.items():
                if isinstance(exc, error_type):
                    body.update({n: getattr(exc, n) for n in names if getattr(exc, n) is not None})
        else:
            body["message"] = INTERNAL_ERROR_MESSAGE
    else:
        body = {"code": INTERNAL_ERROR_CODE, "message": INTERNAL_ERROR_MESSAGE}

    if status >= 500:
        logger.error(
            "request_error_mapped",
            extra={"status": status, "error_code": body["code"]},
            exc_info=exc,
        )
        if expose_details:
            body["detail"] = "".join(traceback.format_exception(exc))
    return status, body
