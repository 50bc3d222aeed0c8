"""Workload deploy commands.

Every workload in a deployment is driven by one command object through the
same lifecycle:

    ask()                -> gather what the deployment needs (manifest, record)
    validate()           -> reject bad configuration before anything changes
    execute()            -> deploy
    recommend_actions()  -> tell the user what to do next

The orchestrator calls ask/validate for every workload before it calls
execute on any of them.
"""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod

import click
from pydantic import BaseModel, Field

from ..config import SessionConfig
from ..errors import (
    CannotDowngradeError,
    NoSuchEnvironmentError,
    ShipyardError,
)
from ..workloads.deployer import Deployer, is_newer_version
from ..workloads.models import DeploymentRecord, DeployRequest, Workload, WorkloadManifest
from ..workloads.store import Store
from ..workloads.types import STATIC_SITE, WorkloadFamily
from ..workloads.workspace import Workspace

_logger = logging.getLogger(__name__)

# Docker image tag grammar
_IMAGE_TAG_PATTERN = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_.-]{0,127}$")


class DeployWorkloadOptions(BaseModel):
    """Configuration shared by every workload deployed in one run."""

    app: str = Field(..., description="Application name")
    env: str = Field(..., description="Target environment")
    image_tag: str | None = Field(default=None, description="Image tag to deploy")
    resource_tags: dict[str, str] = Field(default_factory=dict, description="Resource tags")
    force: bool = Field(default=False, description="Force a new deployment with no changes")
    rollback: bool = Field(default=True, description="Roll back on failure")
    detach: bool = Field(default=False, description="Don't wait for the deployment to finish")
    allow_downgrade: bool = Field(default=False, description="Allow deploying over a newer version")
    session: SessionConfig = Field(default_factory=SessionConfig)


class WorkloadCommand(ABC):
    """Base class for workload deploy commands.

    Subclasses set ``family`` and may extend ``validate``. Commands are
    stateful: ``ask`` loads the manifest and store record that ``validate``
    and ``execute`` use.
    """

    family: WorkloadFamily

    def __init__(
        self,
        name: str,
        options: DeployWorkloadOptions,
        store: Store,
        workspace: Workspace,
        deployer: Deployer,
    ) -> None:
        self.name = name
        self.options = options
        self._store = store
        self._workspace = workspace
        self._deployer = deployer

        self._workload: Workload | None = None
        self._manifest: WorkloadManifest | None = None
        self._previous: DeploymentRecord | None = None
        self._record: DeploymentRecord | None = None

    @property
    def noun(self) -> str:
        """Short name used in error messages, e.g. ``svc`` or ``job``."""
        return self.family.value

    @property
    def manifest(self) -> WorkloadManifest:
        if self._manifest is None:
            raise RuntimeError(f"ask() has not been called for {self.name}")
        return self._manifest

    @property
    def workload(self) -> Workload:
        if self._workload is None:
            raise RuntimeError(f"ask() has not been called for {self.name}")
        return self._workload

    def ask(self) -> None:
        """Load the workload's store record, manifest and last deployment."""
        self._workload = self._store.get_workload(self.options.app, self.name)
        self._manifest = self._workspace.read_workload_manifest(self.name)
        self._previous = self._deployer.get_deployment(self.options.app, self.options.env, self.name)

    def validate(self) -> None:
        """Validate the deployment configuration.

        Raises:
            ShipyardError: If the configuration cannot be deployed
        """
        try:
            self._store.get_environment(self.options.app, self.options.env)
        except NoSuchEnvironmentError:
            raise ShipyardError(
                f"environment {self.options.env} is not registered in application {self.options.app}"
            ) from None

        if self.manifest.workload_type != self.workload.workload_type:
            raise ShipyardError(
                f'manifest type "{self.manifest.workload_type}" does not match registered type '
                f'"{self.workload.workload_type}" for workload {self.name}'
            )

        tag = self.options.image_tag
        if tag is not None and not _IMAGE_TAG_PATTERN.match(tag):
            raise ShipyardError(f"invalid image tag {tag!r}")

        for key in self.options.resource_tags:
            if not key.strip():
                raise ShipyardError("resource tag keys must not be empty")

        if (
            self._previous is not None
            and not self.options.allow_downgrade
            and is_newer_version(self._previous.tool_version, self._tool_version())
        ):
            raise CannotDowngradeError(
                "workload", self.name, self._previous.tool_version, self._tool_version()
            )

        self._validate_family()

    @abstractmethod
    def _validate_family(self) -> None:
        """Family-specific validation."""
        ...

    @staticmethod
    def _tool_version() -> str:
        from .. import __version__

        return __version__

    def _request(self) -> DeployRequest:
        return DeployRequest(
            app=self.options.app,
            environment=self.options.env,
            name=self.name,
            workload_type=self.workload.workload_type,
            manifest=self.manifest.raw,
            image_tag=self.options.image_tag,
            resource_tags=self.options.resource_tags,
            force=self.options.force,
            rollback=self.options.rollback,
            detach=self.options.detach,
            session=self.options.session,
        )

    def execute(self) -> None:
        """Deploy the workload.

        Raises:
            NoInfrastructureChangesError: If there was nothing to deploy
        """
        _logger.debug("Deploying %s %s to %s", self.noun, self.name, self.options.env)
        self._record = self._deployer.deploy_workload(self._request())
        if self.options.detach:
            click.echo(f"Started deployment of {self.name} to {self.options.env} (detached).")
        else:
            click.echo(f"Deployed {self.name} to {self.options.env}.")

    def recommend_actions(self) -> None:
        """Print follow-up actions after a deployment."""
        click.echo("Recommended follow-up actions:")
        click.echo(f"  - Run `shipyard status --env {self.options.env}` to see deployed workloads.")


class ServiceDeployCommand(WorkloadCommand):
    """Deploys a long-running service."""

    family = WorkloadFamily.SERVICE

    def _validate_family(self) -> None:
        if self.workload.workload_type == STATIC_SITE:
            return
        image = self.manifest.image
        if "build" not in image and "location" not in image:
            raise ShipyardError(
                f"manifest for service {self.name} must specify image.build or image.location"
            )


class JobDeployCommand(WorkloadCommand):
    """Deploys a run-to-completion job."""

    family = WorkloadFamily.JOB

    def _validate_family(self) -> None:
        if not self.manifest.schedule:
            raise ShipyardError(f"manifest for job {self.name} must specify a schedule")
        image = self.manifest.image
        if "build" not in image and "location" not in image:
            raise ShipyardError(
                f"manifest for job {self.name} must specify image.build or image.location"
            )

    def recommend_actions(self) -> None:
        super().recommend_actions()
        click.echo(f"  - The job {self.name} runs on the schedule {self.manifest.schedule!r}.")


__all__ = [
    "DeployWorkloadOptions",
    "WorkloadCommand",
    "ServiceDeployCommand",
    "JobDeployCommand",
]
