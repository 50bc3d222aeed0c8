"""Factory function for creating workload deploy commands.

Public API (the "studs"):
    build_workload_command: Create the deploy command for a workload type
"""

import logging

from ..workloads.deployer import Deployer
from ..workloads.store import Store
from ..workloads.types import STATIC_SITE, WorkloadFamily, family_of
from ..workloads.workspace import Workspace
from .commands import DeployWorkloadOptions, JobDeployCommand, ServiceDeployCommand, WorkloadCommand

_logger = logging.getLogger(__name__)


def build_workload_command(
    name: str,
    workload_type: str,
    options: DeployWorkloadOptions,
    *,
    store: Store,
    workspace: Workspace,
    deployer: Deployer,
) -> WorkloadCommand:
    """Create the deploy command for a workload.

    Static sites ignore ``force``: a forced redeploy has no meaning for them.

    Args:
        name: Workload name
        workload_type: Declared workload type
        options: Options shared by every workload in the run
        store: Config store
        workspace: Workspace reader
        deployer: Deployer the command hands its request to

    Returns:
        WorkloadCommand: Service or job deploy command

    Raises:
        UnrecognizedWorkloadTypeError: If the type belongs to no family
    """
    family = family_of(workload_type)

    if workload_type == STATIC_SITE and options.force:
        _logger.debug("Ignoring --force for static site %s", name)
        options = options.model_copy(update={"force": False})

    if family is WorkloadFamily.JOB:
        return JobDeployCommand(name, options, store, workspace, deployer)
    elif family is WorkloadFamily.SERVICE:
        return ServiceDeployCommand(name, options, store, workspace, deployer)
    else:
        raise ValueError(f"Unknown workload family: {family}")


__all__ = ["build_workload_command"]
