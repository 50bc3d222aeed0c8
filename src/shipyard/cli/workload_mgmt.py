"""Workload management commands for shipyard CLI.

Provides commands for listing workspace workloads and registering them with
the application.
"""

import click

from ..deploy.orchestrator import init_workload
from ..errors import ShipyardError
from .main import cli, fail, get_store, get_workspace, resolve_app


@cli.group()
def workload() -> None:
    """Manage services and jobs.

    \b
    Commands:
        shipyard workload list
        shipyard workload init --name <name>
    """
    pass


@workload.command("list")
@click.option("--app", "-a", "app_name", help="Application name (default: from the workspace)")
def workload_list(app_name: str | None) -> None:
    """List workloads in the workspace and whether they are initialized."""
    workspace = get_workspace()
    app = resolve_app(app_name, workspace)

    try:
        names = workspace.list_workloads()
        registered = {wl.name: wl for wl in get_store().list_workloads(app)}
    except ShipyardError as e:
        fail(e)

    if not names:
        click.echo("No services or jobs found in the workspace.")
        return

    click.echo(f"Workloads in application {app}:")
    for name in names:
        wl = registered.get(name)
        if wl is None:
            click.echo(f"  - {name} (uninitialized)")
        else:
            click.echo(f"  - {name} [{wl.workload_type}]")


@workload.command("init")
@click.option("--name", "-n", "name", required=True, help="Workload name")
@click.option("--app", "-a", "app_name", help="Application name (default: from the workspace)")
def workload_init(name: str, app_name: str | None) -> None:
    """Register a workload from its workspace manifest.

    \b
    Examples:
        shipyard workload init --name frontend
    """
    workspace = get_workspace()
    app = resolve_app(app_name, workspace)

    try:
        wl = init_workload(get_store(), workspace, app, name)
    except ShipyardError as e:
        fail(e)

    click.echo(f"Initialized {wl.workload_type} {name} in application {app}.")
