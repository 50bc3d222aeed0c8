"""Status command for shipyard CLI.

Shows the latest deployment of every workload in an environment.
"""

import json

import click

from ..errors import ShipyardError
from .main import cli, fail, get_deployer, get_workspace, resolve_app


@cli.command()
@click.option("--env", "-e", "env_name", required=True, help="Environment name")
@click.option("--app", "-a", "app_name", help="Application name (default: from the workspace)")
@click.option(
    "--format", "-f", "output_format", type=click.Choice(["text", "json"]), default="text"
)
def status(env_name: str, app_name: str | None, output_format: str) -> None:
    """Show deployments in an environment.

    \b
    Examples:
        shipyard status --env test
        shipyard status --env test --format json
    """
    app = resolve_app(app_name, get_workspace())

    try:
        records = get_deployer().list_deployments(app, env_name)
    except ShipyardError as e:
        fail(e)

    if output_format == "json":
        click.echo(json.dumps([r.model_dump(mode="json") for r in records], indent=2))
        return

    if not records:
        click.echo(f"No deployments found in environment {env_name}.")
        return

    click.echo(f"Deployments in {app}/{env_name}:")
    click.echo(f"{'NAME':<24} {'TYPE':<28} {'TAG':<16} DEPLOYED")
    click.echo("-" * 90)
    for r in records:
        tag = r.image_tag or "-"
        click.echo(f"{r.name:<24} {r.workload_type or '-':<28} {tag:<16} {r.deployed_at}")
