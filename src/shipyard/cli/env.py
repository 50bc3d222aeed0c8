"""Environment commands for shipyard CLI.

Provides commands for initializing and deploying environments outside of a
workload deployment.
"""

import click
from pydantic import ValidationError

from ..config import SessionConfig
from ..deploy.env import DeployEnvCommand, InitEnvCommand
from ..errors import NoInfrastructureChangesError, ShipyardError
from .main import cli, fail, get_config, get_deployer, get_store, get_workspace, resolve_app


@cli.group()
def env() -> None:
    """Manage environments.

    \b
    Commands:
        shipyard env init --name <env>
        shipyard env deploy --name <env>
    """
    pass


@env.command("init")
@click.option("--name", "-n", "env_name", required=True, help="Environment name")
@click.option("--app", "-a", "app_name", help="Application name (default: from the workspace)")
@click.option("--region", help="Region the environment lives in")
@click.option("--profile", help="Named credentials profile")
def env_init(env_name: str, app_name: str | None, region: str | None, profile: str | None) -> None:
    """Register a workspace environment with the application.

    \b
    Examples:
        shipyard env init --name test
        shipyard env init --name prod --region eu-west-1
    """
    try:
        session = SessionConfig(region=region, profile=profile)
    except ValidationError as e:
        raise click.UsageError(f"Invalid region: {e}") from None

    workspace = get_workspace()
    app = resolve_app(app_name, workspace)
    cmd = InitEnvCommand(
        app,
        env_name,
        get_store(),
        workspace,
        session=session,
        default_region=get_config().default_region,
    )
    try:
        cmd.validate()
        cmd.ask()
        cmd.execute()
    except ShipyardError as e:
        fail(e)


@env.command("deploy")
@click.option("--name", "-n", "env_name", required=True, help="Environment name")
@click.option("--app", "-a", "app_name", help="Application name (default: from the workspace)")
@click.option("--force", is_flag=True, help="Force a new deployment even with no changes")
def env_deploy(env_name: str, app_name: str | None, force: bool) -> None:
    """Deploy an environment's infrastructure.

    \b
    Examples:
        shipyard env deploy --name test
    """
    workspace = get_workspace()
    app = resolve_app(app_name, workspace)
    store = get_store()

    try:
        registered = store.get_environment(app, env_name)
        session = SessionConfig(region=registered.region, profile=registered.profile)
        cmd = DeployEnvCommand(
            app, env_name, store, workspace, get_deployer(), session=session, force=force
        )
        cmd.validate()
        cmd.ask()
        cmd.execute()
    except NoInfrastructureChangesError:
        click.echo(f"No infrastructure changes for environment {env_name}.")
    except ShipyardError as e:
        fail(e)
