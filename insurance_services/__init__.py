"""
insurance_services -- request-level orchestration for the back office.

Responsibility:
    Actor resolution, the capability gate, the per-request transaction
    runner and the mapping of kernel errors to boundary responses.

Architecture position:
    Dependency direction:
        insurance_services/ -> insurance_config/  (allowed)
        insurance_services/ -> insurance_kernel/  (allowed)
        insurance_kernel/   -> insurance_services/ (FORBIDDEN)
"""

from insurance_services.access_control import AccessGate, ActorResolver
from insurance_services.backoffice import BackOffice
from insurance_services.error_mapping import error_response, status_for
from insurance_services.request_runner import RequestRunner

__all__ = [
    "AccessGate",
    "ActorResolver",
    "BackOffice",
    "RequestRunner",
    "error_response",
    "status_for",
]
