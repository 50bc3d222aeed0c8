"""Workload types and the families they belong to.

Every workload type belongs to exactly one family. The family decides which
deploy command handles the workload.
"""

from enum import Enum

from ..errors import UnrecognizedWorkloadTypeError

LOAD_BALANCED_WEB_SERVICE = "Load Balanced Web Service"
BACKEND_SERVICE = "Backend Service"
WORKER_SERVICE = "Worker Service"
REQUEST_DRIVEN_WEB_SERVICE = "Request-Driven Web Service"
STATIC_SITE = "Static Site"
SCHEDULED_JOB = "Scheduled Job"

SERVICE_TYPES: tuple[str, ...] = (
    LOAD_BALANCED_WEB_SERVICE,
    BACKEND_SERVICE,
    WORKER_SERVICE,
    REQUEST_DRIVEN_WEB_SERVICE,
    STATIC_SITE,
)
JOB_TYPES: tuple[str, ...] = (SCHEDULED_JOB,)


class WorkloadFamily(str, Enum):
    """Deploy-command family of a workload type."""

    SERVICE = "svc"
    JOB = "job"


def is_service(workload_type: str) -> bool:
    return workload_type in SERVICE_TYPES


def is_job(workload_type: str) -> bool:
    return workload_type in JOB_TYPES


def family_of(workload_type: str) -> WorkloadFamily:
    """Return the family of a workload type.

    Raises:
        UnrecognizedWorkloadTypeError: If the type belongs to no family
    """
    if is_job(workload_type):
        return WorkloadFamily.JOB
    if is_service(workload_type):
        return WorkloadFamily.SERVICE
    raise UnrecognizedWorkloadTypeError(workload_type)


__all__ = [
    "LOAD_BALANCED_WEB_SERVICE",
    "BACKEND_SERVICE",
    "WORKER_SERVICE",
    "REQUEST_DRIVEN_WEB_SERVICE",
    "STATIC_SITE",
    "SCHEDULED_JOB",
    "SERVICE_TYPES",
    "JOB_TYPES",
    "WorkloadFamily",
    "is_service",
    "is_job",
    "family_of",
]
