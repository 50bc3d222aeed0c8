"""Environment commands used before workloads are deployed.

InitEnvCommand registers a workspace environment in the config store;
DeployEnvCommand deploys the environment's own infrastructure. Both follow
validate -> ask -> execute.
"""

from __future__ import annotations

import logging

import click

from ..config import SessionConfig
from ..errors import NoSuchEnvironmentError, ShipyardError
from ..workloads.deployer import Deployer
from ..workloads.models import DeployRequest, Environment, EnvironmentManifest
from ..workloads.store import Store, validate_name
from ..workloads.workspace import Workspace

_logger = logging.getLogger(__name__)


class InitEnvCommand:
    """Register an environment from the workspace in the config store."""

    def __init__(
        self,
        app: str,
        name: str,
        store: Store,
        workspace: Workspace,
        session: SessionConfig | None = None,
        default_region: str | None = None,
    ) -> None:
        self.app = app
        self.name = name
        self._store = store
        self._workspace = workspace
        self._session = session or SessionConfig()
        self._default_region = default_region
        self._manifest: EnvironmentManifest | None = None

    def validate(self) -> None:
        try:
            validate_name(self.name, "environment name")
        except ValueError as e:
            raise ShipyardError(str(e)) from None
        if self.name not in self._workspace.list_environments():
            raise ShipyardError(f"environment {self.name} has no manifest in the workspace")

    def ask(self) -> None:
        self._manifest = self._workspace.read_environment_manifest(self.name)

    def execute(self) -> None:
        env = Environment(
            app=self.app,
            name=self.name,
            region=self._session.region or self._default_region,
            profile=self._session.profile,
        )
        self._store.create_environment(env)
        _logger.debug("Initialized environment %s in %s", self.name, self.app)
        click.echo(f"Initialized environment {self.name} in application {self.app}.")


class DeployEnvCommand:
    """Deploy an environment's infrastructure."""

    def __init__(
        self,
        app: str,
        name: str,
        store: Store,
        workspace: Workspace,
        deployer: Deployer,
        session: SessionConfig | None = None,
        force: bool = False,
    ) -> None:
        self.app = app
        self.name = name
        self._store = store
        self._workspace = workspace
        self._deployer = deployer
        self._session = session or SessionConfig()
        self._force = force
        self._manifest: EnvironmentManifest | None = None

    def validate(self) -> None:
        try:
            self._store.get_environment(self.app, self.name)
        except NoSuchEnvironmentError:
            raise ShipyardError(
                f"environment {self.name} must be initialized before it is deployed"
            ) from None

    def ask(self) -> None:
        self._manifest = self._workspace.read_environment_manifest(self.name)

    def execute(self) -> None:
        """Deploy the environment.

        Raises:
            NoInfrastructureChangesError: If the environment is up to date
        """
        if self._manifest is None:
            raise RuntimeError(f"ask() has not been called for environment {self.name}")
        request = DeployRequest(
            app=self.app,
            environment=self.name,
            name=self.name,
            manifest=self._manifest.raw,
            force=self._force,
            session=self._session,
        )
        self._deployer.deploy_environment(request)
        click.echo(f"Deployed environment {self.name}.")


__all__ = ["InitEnvCommand", "DeployEnvCommand"]
