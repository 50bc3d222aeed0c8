"""Main CLI entry point for shipyard.

Provides the command group and the collaborators shared by every command:
    shipyard deploy [-n <name>[/<priority>]]... [--env <env>] [--all]
    shipyard env init --name <env>
    shipyard env deploy --name <env>
    shipyard workload list
    shipyard workload init --name <name>
    shipyard status --env <env>
"""

import logging
import sys
from typing import NoReturn

import click

from .. import __version__
from ..config import ShipyardConfig
from ..errors import ShipyardError
from ..prompt import ClickPrompter, Prompter
from ..workloads.deployer import FileDeployer
from ..workloads.store import FileStore
from ..workloads.workspace import Workspace

# Global config instance
_config: ShipyardConfig | None = None


def get_config() -> ShipyardConfig:
    """Get or create the tool configuration."""
    global _config
    if _config is None:
        _config = ShipyardConfig.from_env()
    return _config


def get_store() -> FileStore:
    return FileStore(get_config().store_dir)


def get_deployer() -> FileDeployer:
    return FileDeployer(get_config().deployments_dir)


def get_workspace() -> Workspace:
    """Find the workspace from the current directory.

    Raises:
        click.ClickException: If there is no workspace
    """
    try:
        return Workspace.from_cwd()
    except ShipyardError as e:
        raise click.ClickException(str(e)) from None


def get_prompter() -> Prompter:
    return ClickPrompter()


def resolve_app(app: str | None, workspace: Workspace | None = None) -> str:
    """Pick the application: --app, then the workspace summary, then SHIPYARD_APP.

    Raises:
        click.UsageError: If no application can be determined
    """
    if app:
        return app
    if workspace is not None:
        try:
            summary = workspace.summary()
        except ShipyardError as e:
            raise click.ClickException(str(e)) from None
        if summary is not None:
            return summary.application
    default_app = get_config().default_app
    if default_app:
        return default_app
    raise click.UsageError(
        "Couldn't determine the application. Pass --app, set SHIPYARD_APP, "
        "or add 'application: <name>' to shipyard/.workspace"
    )


def fail(error: ShipyardError) -> NoReturn:
    """Print a shipyard error with its recommended actions and exit."""
    click.echo(f"Error: {error}", err=True)
    actions = error.recommend_actions()
    if actions:
        click.echo(actions, err=True)
    sys.exit(error.exit_code or 1)


@click.group()
@click.version_option(version=__version__, prog_name="shipyard")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Shipyard - deploy services and jobs into application environments.

    \b
    Deploy workloads in priority order:
        shipyard deploy -n fe/1 -n be/2 --env test
        shipyard deploy --all --env prod

    \b
    Manage environments and workloads:
        shipyard env init --name test
        shipyard workload list
        shipyard status --env test
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main() -> None:
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
