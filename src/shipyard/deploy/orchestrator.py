"""Multi-workload deployment orchestrator.

Drives one ``shipyard deploy`` invocation:

    collect names -> resolve environment -> verify the environment exists
    -> maybe initialize the environment -> resolve the deployment plan
    -> for every workload: maybe initialize, build command, ask, validate
    -> maybe deploy the environment
    -> for every group, for every workload: execute, recommend actions

Nothing is deployed until every workload has passed ask and validate. During
execution, a workload with no infrastructure changes is skipped; any other
failure stops the run and later workloads and groups are not attempted.
Workloads inside a group run sequentially.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Protocol

import click
from pydantic import BaseModel, Field

from ..config import SessionConfig
from ..errors import (
    ContradictionError,
    DeployError,
    EnvironmentNotFoundError,
    EnvironmentNotInitializedError,
    NoInfrastructureChangesError,
    NoSuchEnvironmentError,
    ShipyardError,
    UnrecognizedWorkloadTypeError,
    WorkloadNotInitializedError,
)
from ..prompt import Option, Prompter
from ..workloads.deployer import Deployer
from ..workloads.models import Workload
from ..workloads.store import Store
from ..workloads.types import family_of
from ..workloads.workspace import Workspace
from .commands import DeployWorkloadOptions, WorkloadCommand
from .env import DeployEnvCommand, InitEnvCommand
from .factory import build_workload_command
from .order import DeploymentPlan, parse_workload_references, resolve_deployment_plan

_logger = logging.getLogger(__name__)

SELECT_WORKLOADS_PROMPT = "Select one or more services or jobs in your workspace"
SELECT_ENVIRONMENT_PROMPT = "Select an environment to deploy to"
UNINITIALIZED_HINT = "uninitialized"


class EnvCommand(Protocol):
    """Environment sub-command run to completion by the orchestrator."""

    def validate(self) -> None: ...

    def ask(self) -> None: ...

    def execute(self) -> None: ...


WorkloadCommandFactory = Callable[[str, str, DeployWorkloadOptions], WorkloadCommand]
EnvCommandFactory = Callable[["DeployOrchestrator"], EnvCommand]


class DeployVars(BaseModel):
    """Flags of a deploy invocation.

    The tri-state flags (``init_wkld``, ``init_env``, ``deploy_env``) are None
    when the user gave no preference.
    """

    app: str = Field(..., description="Application name")
    names: list[str] = Field(default_factory=list, description="name or name/priority tokens")
    env: str | None = Field(default=None, description="Target environment")
    deploy_all: bool = Field(default=False, description="Deploy every workload in the workspace")
    init_wkld: bool | None = Field(default=None, description="Initialize unregistered workloads")
    init_env: bool | None = Field(default=None, description="Initialize the environment")
    deploy_env: bool | None = Field(default=None, description="Deploy the environment first")
    image_tag: str | None = None
    resource_tags: dict[str, str] = Field(default_factory=dict)
    force: bool = False
    rollback: bool = True
    detach: bool = False
    allow_downgrade: bool = False
    session: SessionConfig = Field(default_factory=SessionConfig)


@contextmanager
def _annotate(prefix: str) -> Iterator[None]:
    """Re-raise any failure as a DeployError prefixed with ``prefix``."""
    try:
        yield
    except click.Abort:
        raise
    except Exception as e:
        raise DeployError(f"{prefix}: {e}", cause=e) from e


def init_workload(store: Store, workspace: Workspace, app: str, name: str) -> Workload:
    """Register a workload from its workspace manifest.

    Raises:
        DeployError: If the manifest can't be read or registration fails
        UnrecognizedWorkloadTypeError: If the manifest declares an unknown type
    """
    with _annotate(f"read manifest for workload {name}"):
        manifest = workspace.read_workload_manifest(name)

    workload_type = manifest.workload_type
    try:
        family_of(workload_type)
    except UnrecognizedWorkloadTypeError:
        raise UnrecognizedWorkloadTypeError(workload_type, name) from None

    workload = Workload(app=app, name=name, workload_type=workload_type)
    with _annotate("add workload to app"):
        store.create_workload(workload)
    return workload


class DeployOrchestrator:
    """Deploys one or more workloads into an environment.

    Workload and environment listings are fetched at most once per
    orchestrator and kept on the instance. Create a new orchestrator for each
    invocation.
    """

    def __init__(
        self,
        deploy_vars: DeployVars,
        *,
        store: Store,
        workspace: Workspace,
        deployer: Deployer,
        prompter: Prompter,
        new_workload_command: WorkloadCommandFactory | None = None,
        new_init_env_cmd: EnvCommandFactory | None = None,
        new_deploy_env_cmd: EnvCommandFactory | None = None,
        default_region: str | None = None,
    ) -> None:
        self.vars = deploy_vars
        self._store = store
        self._workspace = workspace
        self._deployer = deployer
        self._prompter = prompter
        self._default_region = default_region

        self._new_workload_command = new_workload_command or self._build_workload_command
        self._new_init_env_cmd = new_init_env_cmd or _default_init_env_cmd
        self._new_deploy_env_cmd = new_deploy_env_cmd or _default_deploy_env_cmd

        self.names: list[str] = list(deploy_vars.names)
        self.env_name: str | None = deploy_vars.env
        self.deploy_env: bool | None = deploy_vars.deploy_env
        self.env_exists_in_app = False
        self.env_exists_in_ws = False

        self.plan: DeploymentPlan | None = None
        self.commands: dict[str, WorkloadCommand] = {}
        self.deployed: list[str] = []
        self.unchanged: list[str] = []

        # Per-invocation caches
        self._store_workloads: list[Workload] | None = None
        self._ws_workloads: list[str] | None = None
        self._ws_environments: list[str] | None = None
        self._initialized_ws_workloads: list[str] | None = None

    # =========================================================================
    # Cached lookups
    # =========================================================================

    def store_workloads(self) -> list[Workload]:
        if self._store_workloads is None:
            self._store_workloads = self._store.list_workloads(self.vars.app)
        return self._store_workloads

    def ws_workloads(self) -> list[str]:
        if self._ws_workloads is None:
            self._ws_workloads = self._workspace.list_workloads()
        return self._ws_workloads

    def ws_environments(self) -> list[str]:
        if self._ws_environments is None:
            self._ws_environments = self._workspace.list_environments()
        return self._ws_environments

    def initialized_ws_workloads(self) -> list[str]:
        if self._initialized_ws_workloads is None:
            registered = {wl.name for wl in self.store_workloads()}
            self._initialized_ws_workloads = [
                name for name in self.ws_workloads() if name in registered
            ]
        return self._initialized_ws_workloads

    # =========================================================================
    # Run
    # =========================================================================

    def run(self) -> None:
        """Run the deployment.

        Raises:
            ShipyardError: On the first fatal error. Nothing after the failing
                step is attempted.
        """
        # Reject malformed name/priority tokens before any I/O.
        parse_workload_references(self.names)

        self.ask_names()
        self.ask_env()
        self.check_env_exists()
        self.maybe_init_env()
        self.plan = self.resolve_plan()
        self.prepare_workloads()
        self.maybe_deploy_env()
        self.log_plan()
        self.execute_plan()

    def ask_names(self) -> None:
        """Prompt for workloads when none were named and --all is off."""
        if self.names or self.vars.deploy_all:
            return

        with _annotate("select service or job"):
            ws_workloads = self.ws_workloads()
            if not ws_workloads:
                raise ShipyardError("no services or jobs found in the workspace")
            registered = {wl.name for wl in self.store_workloads()}
            options = [
                Option(value=name, hint="" if name in registered else UNINITIALIZED_HINT)
                for name in ws_workloads
            ]
            self.names = self._prompter.select_many(SELECT_WORKLOADS_PROMPT, options)

    def ask_env(self) -> None:
        """Prompt for the environment when --env was not given."""
        if self.env_name:
            return

        with _annotate("get initialized environments"):
            initialized = [env.name for env in self._store.list_environments(self.vars.app)]
        with _annotate("list environments in workspace"):
            ws_envs = self.ws_environments()

        options = [Option(value=name) for name in initialized]
        options += [
            Option(value=name, hint=UNINITIALIZED_HINT)
            for name in ws_envs
            if name not in initialized
        ]
        if not options:
            raise ShipyardError(
                f"no environments found in application {self.vars.app} or the workspace"
            )
        if len(options) == 1:
            self.env_name = options[0].value
            click.echo(f"Only found one environment, defaulting to: {self.env_name}")
            return

        with _annotate("get environment name"):
            self.env_name = self._prompter.select_one(SELECT_ENVIRONMENT_PROMPT, options)

    def check_env_exists(self) -> None:
        """Record whether the environment is registered and/or in the workspace.

        Raises:
            EnvironmentNotFoundError: If it is in neither
        """
        env = self._require_env()
        try:
            self._store.get_environment(self.vars.app, env)
            self.env_exists_in_app = True
        except NoSuchEnvironmentError:
            self.env_exists_in_app = False
        except Exception as e:
            raise DeployError(f"get environment from config store: {e}", cause=e) from e

        with _annotate("list environments in workspace"):
            self.env_exists_in_ws = env in self.ws_environments()

        if not self.env_exists_in_app and not self.env_exists_in_ws:
            raise EnvironmentNotFoundError(env)

    def maybe_init_env(self) -> None:
        """Initialize the environment if it is only in the workspace."""
        env = self._require_env()
        if self.env_exists_in_app:
            return
        if not self.env_exists_in_ws:
            raise EnvironmentNotFoundError(env)

        init_env = self.vars.init_env
        if init_env is None:
            with _annotate("confirm env init"):
                init_env = self._prompter.confirm(
                    f'Environment "{env}" does not exist in app "{self.vars.app}". Initialize it?'
                )
        if not init_env:
            raise EnvironmentNotInitializedError(self.vars.app, env)

        # Checked before the init command runs so a rejected run registers nothing.
        if self.deploy_env is False:
            raise ContradictionError(
                f"cannot initialize environment {env} without deploying it"
            )

        cmd = self._new_init_env_cmd(self)
        with _annotate(f"initialize environment {env}"):
            cmd.validate()
            cmd.ask()
            cmd.execute()
        self.env_exists_in_app = True

        if self.deploy_env is None:
            self.deploy_env = True

    def resolve_plan(self) -> DeploymentPlan:
        """Resolve the names (and --all) into ordered deployment groups."""
        with _annotate("retrieve workloads"):
            self.store_workloads()

        all_workloads: list[str] = []
        initialized: list[str] = []
        if self.vars.deploy_all:
            with _annotate("list workloads in workspace"):
                all_workloads = self.ws_workloads()
                initialized = self.initialized_ws_workloads()

        plan = resolve_deployment_plan(
            self.names,
            deploy_all=self.vars.deploy_all,
            all_workloads=all_workloads,
            initialized_workloads=initialized,
            include_uninitialized_on_all=self.vars.init_wkld is not False,
        )
        if len(plan) == 0:
            raise ShipyardError("no workloads to deploy")
        return plan

    def prepare_workloads(self) -> None:
        """Initialize, build, ask and validate every planned workload."""
        plan = self._require_plan()
        registered = {wl.name for wl in self.store_workloads()}

        for name in plan.workloads:
            if name not in registered:
                self.init_workload(name)
                registered.add(name)

            with _annotate(f"get workload {name}"):
                workload = self._store.get_workload(self.vars.app, name)

            try:
                noun = family_of(workload.workload_type).value
            except UnrecognizedWorkloadTypeError:
                raise UnrecognizedWorkloadTypeError(workload.workload_type, name) from None
            cmd = self._new_workload_command(name, workload.workload_type, self._workload_options())
            with _annotate(f"ask {noun} deploy for {name}"):
                cmd.ask()
            with _annotate(f"validate {noun} deploy for {name}"):
                cmd.validate()
            self.commands[name] = cmd

    def init_workload(self, name: str) -> None:
        """Register a workload that only exists in the workspace.

        Naming a workload counts as confirmation, so no prompt is shown.
        """
        if self.vars.init_wkld is False:
            raise WorkloadNotInitializedError(name)

        workload = init_workload(self._store, self._workspace, self.vars.app, name)
        click.echo(f"Initialized {workload.workload_type} {name} in application {self.vars.app}.")

    def maybe_deploy_env(self) -> None:
        """Deploy the environment first when asked (or just initialized)."""
        env = self._require_env()
        if not self.env_exists_in_ws:
            return

        deploy_env = self.deploy_env
        if deploy_env is None:
            with _annotate("confirm env deployment"):
                deploy_env = self._prompter.confirm(
                    f'Deploy environment "{env}" before deploying workloads?',
                    "Choose yes if you changed the environment manifest.",
                )
        if not deploy_env:
            return

        cmd = self._new_deploy_env_cmd(self)
        with _annotate(f"deploy environment {env}"):
            cmd.validate()
            cmd.ask()
            try:
                cmd.execute()
            except NoInfrastructureChangesError:
                click.echo(f"No infrastructure changes for environment {env}.")

    def log_plan(self) -> None:
        """Summarize the plan before anything irreversible happens."""
        plan = self._require_plan()
        if len(plan) <= 1:
            return
        click.echo(
            f"Will deploy {len(plan)} workloads to {self.env_name} "
            f"in {len(plan.groups)} group{'s' if len(plan.groups) != 1 else ''}:"
        )
        for i, group in enumerate(plan.groups, start=1):
            click.echo(f"  {i}. {', '.join(group.names)}")

    def execute_plan(self) -> None:
        """Execute the plan group by group.

        Raises:
            DeployError: On the first failure that is not a no-op deployment,
                annotated with the workload's index in its group and the
                group's index (both 1-based)
        """
        plan = self._require_plan()
        for g, group in enumerate(plan.groups, start=1):
            for i, name in enumerate(group.names, start=1):
                cmd = self.commands[name]
                try:
                    cmd.execute()
                    self.deployed.append(name)
                except NoInfrastructureChangesError as e:
                    _logger.info("No infrastructure changes for %s: %s", name, e)
                    click.echo(f"No infrastructure changes for {name}, skipping.")
                    self.unchanged.append(name)
                except click.Abort:
                    raise
                except Exception as e:
                    raise DeployError(
                        f"execute deployment {i} of {len(group.names)} in group {g}: {e}",
                        cause=e,
                    ) from e

                with _annotate(f"recommend actions for {name}"):
                    cmd.recommend_actions()

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_env(self) -> str:
        if not self.env_name:
            raise RuntimeError("environment has not been resolved")
        return self.env_name

    def _require_plan(self) -> DeploymentPlan:
        if self.plan is None:
            raise RuntimeError("deployment plan has not been resolved")
        return self.plan

    def _workload_options(self) -> DeployWorkloadOptions:
        return DeployWorkloadOptions(
            app=self.vars.app,
            env=self._require_env(),
            image_tag=self.vars.image_tag,
            resource_tags=self.vars.resource_tags,
            force=self.vars.force,
            rollback=self.vars.rollback,
            detach=self.vars.detach,
            allow_downgrade=self.vars.allow_downgrade,
            session=self.vars.session,
        )

    def _build_workload_command(
        self, name: str, workload_type: str, options: DeployWorkloadOptions
    ) -> WorkloadCommand:
        return build_workload_command(
            name,
            workload_type,
            options,
            store=self._store,
            workspace=self._workspace,
            deployer=self._deployer,
        )


def _default_init_env_cmd(o: DeployOrchestrator) -> EnvCommand:
    return InitEnvCommand(
        o.vars.app,
        o._require_env(),
        o._store,
        o._workspace,
        session=o.vars.session,
        default_region=o._default_region,
    )


def _default_deploy_env_cmd(o: DeployOrchestrator) -> EnvCommand:
    return DeployEnvCommand(
        o.vars.app,
        o._require_env(),
        o._store,
        o._workspace,
        o._deployer,
        session=o.vars.session,
        force=o.vars.force,
    )


__all__ = ["DeployVars", "DeployOrchestrator", "EnvCommand", "init_workload"]
