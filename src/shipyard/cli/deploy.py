"""Deploy command for shipyard CLI.

Deploys one or more workloads into an environment. Workloads are named with
``--name``; a ``/<priority>`` suffix puts them in a deployment group, and
groups deploy in ascending priority. Unprioritized workloads deploy last.
"""

import click
from pydantic import ValidationError

from ..config import SessionConfig
from ..deploy.orchestrator import DeployOrchestrator, DeployVars
from ..errors import ShipyardError
from .main import (
    cli,
    fail,
    get_config,
    get_deployer,
    get_prompter,
    get_store,
    get_workspace,
    resolve_app,
)


def _parse_resource_tags(raw: str | None) -> dict[str, str]:
    """Parse ``key=value,key2=value2``.

    Raises:
        click.UsageError: If an entry is not key=value
    """
    tags: dict[str, str] = {}
    if not raw:
        return tags
    for entry in raw.split(","):
        if "=" not in entry:
            raise click.UsageError(f"Invalid --resource-tags entry {entry!r}. Expected key=value")
        k, v = entry.split("=", 1)
        k = k.strip()
        if not k:
            raise click.UsageError(f"Invalid --resource-tags entry {entry!r}. Key must not be empty")
        tags[k] = v.strip()
    return tags


@cli.command()
@click.option(
    "--name",
    "-n",
    "names",
    multiple=True,
    help="Workload to deploy, optionally as <name>/<priority>. Repeatable.",
)
@click.option("--env", "-e", "env_name", help="Environment to deploy to")
@click.option("--app", "-a", "app_name", help="Application name (default: from the workspace)")
@click.option("--all", "deploy_all", is_flag=True, help="Deploy every workload in the workspace")
@click.option(
    "--init-wkld/--no-init-wkld",
    default=None,
    help="Initialize workloads that only exist in the workspace",
)
@click.option(
    "--init-env/--no-init-env",
    default=None,
    help="Initialize the environment if it only exists in the workspace",
)
@click.option(
    "--deploy-env/--no-deploy-env",
    default=None,
    help="Deploy the environment before the workloads",
)
@click.option("--force", is_flag=True, help="Force a new deployment even with no changes")
@click.option("--no-rollback", is_flag=True, help="Don't roll back a failed deployment")
@click.option("--tag", "image_tag", help="Image tag to deploy")
@click.option("--resource-tags", help="Resource tags in key=value,key2=value2 format")
@click.option("--allow-downgrade", is_flag=True, help="Allow deploying over a newer version")
@click.option("--detach", is_flag=True, help="Don't wait for deployments to finish")
@click.option("--region", help="Region to deploy to")
@click.option("--profile", help="Named credentials profile")
@click.option("--access-key-id", help="Access key ID")
@click.option("--secret-access-key", help="Secret access key")
@click.option("--session-token", help="Session token")
def deploy(
    names: tuple[str, ...],
    env_name: str | None,
    app_name: str | None,
    deploy_all: bool,
    init_wkld: bool | None,
    init_env: bool | None,
    deploy_env: bool | None,
    force: bool,
    no_rollback: bool,
    image_tag: str | None,
    resource_tags: str | None,
    allow_downgrade: bool,
    detach: bool,
    region: str | None,
    profile: str | None,
    access_key_id: str | None,
    secret_access_key: str | None,
    session_token: str | None,
) -> None:
    """Deploy one or more services or jobs.

    \b
    Examples:
        shipyard deploy -n fe --env test
        shipyard deploy -n fe/1 -n be/2 -n worker --env test
        shipyard deploy -n db/1 --all --no-init-wkld --env prod
    """
    tags = _parse_resource_tags(resource_tags)

    try:
        session = SessionConfig(
            region=region or get_config().default_region,
            profile=profile,
            access_key_id=access_key_id,
            secret_access_key=secret_access_key,
            session_token=session_token,
        )
    except ValidationError as e:
        raise click.UsageError(f"Invalid credentials or region: {e}") from None

    workspace = get_workspace()
    app = resolve_app(app_name, workspace)

    deploy_vars = DeployVars(
        app=app,
        names=list(names),
        env=env_name,
        deploy_all=deploy_all,
        init_wkld=init_wkld,
        init_env=init_env,
        deploy_env=deploy_env,
        image_tag=image_tag,
        resource_tags=tags,
        force=force,
        rollback=not no_rollback,
        detach=detach,
        allow_downgrade=allow_downgrade,
        session=session,
    )
    orchestrator = DeployOrchestrator(
        deploy_vars,
        store=get_store(),
        workspace=workspace,
        deployer=get_deployer(),
        prompter=get_prompter(),
        default_region=get_config().default_region,
    )

    try:
        orchestrator.run()
    except ShipyardError as e:
        fail(e)
