"""Multi-workload deployment: ordering, commands and orchestration."""

from .commands import DeployWorkloadOptions, JobDeployCommand, ServiceDeployCommand, WorkloadCommand
from .env import DeployEnvCommand, InitEnvCommand
from .factory import build_workload_command
from .orchestrator import DeployOrchestrator, DeployVars
from .order import DeploymentGroup, DeploymentPlan, WorkloadReference, resolve_deployment_plan

__all__ = [
    "DeployWorkloadOptions",
    "WorkloadCommand",
    "ServiceDeployCommand",
    "JobDeployCommand",
    "InitEnvCommand",
    "DeployEnvCommand",
    "build_workload_command",
    "DeployOrchestrator",
    "DeployVars",
    "DeploymentGroup",
    "DeploymentPlan",
    "WorkloadReference",
    "resolve_deployment_plan",
]
