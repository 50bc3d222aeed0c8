"""Workload records, manifests and the collaborators that store and deploy them."""

from .deployer import Deployer, FileDeployer
from .models import (
    DeploymentRecord,
    DeployRequest,
    Environment,
    EnvironmentManifest,
    Workload,
    WorkloadManifest,
)
from .store import FileStore, Store
from .types import JOB_TYPES, SERVICE_TYPES, WorkloadFamily, family_of
from .workspace import Workspace

__all__ = [
    "Deployer",
    "FileDeployer",
    "DeploymentRecord",
    "DeployRequest",
    "Environment",
    "EnvironmentManifest",
    "Workload",
    "WorkloadManifest",
    "FileStore",
    "Store",
    "JOB_TYPES",
    "SERVICE_TYPES",
    "WorkloadFamily",
    "family_of",
    "Workspace",
]
