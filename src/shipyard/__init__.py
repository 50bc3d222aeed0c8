"""Shipyard - deploy services and jobs into application environments.

Shipyard deploys the workloads described by a local workspace into an
environment of an application, in the order the user asks for.

Key components:
    - resolve_deployment_plan: Orders workloads into priority groups
    - DeployOrchestrator: Initializes, validates and deploys a batch of workloads
    - CLI: ``shipyard deploy``, ``shipyard env``, ``shipyard workload``, ``shipyard status``

Quick start:
    # Deploy the front end first, then the back end, then everything else
    shipyard deploy -n fe/1 -n be/2 --all --env test

    # See what is deployed
    shipyard status --env test
"""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("shipyard-deploy")
except PackageNotFoundError:
    __version__ = "0.0.0"

from .deploy import DeployOrchestrator, DeployVars, resolve_deployment_plan  # noqa: E402
from .errors import ShipyardError  # noqa: E402

__all__ = [
    "DeployOrchestrator",
    "DeployVars",
    "resolve_deployment_plan",
    "ShipyardError",
    "__version__",
]
