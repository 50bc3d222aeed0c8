"""Workload data models.

Records kept by the config store, manifests read from the workspace, and the
deployment records written by the deployer.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from ..config import SessionConfig


class Workload(BaseModel):
    """A workload registered in the config store."""

    app: str = Field(..., description="Application the workload belongs to")
    name: str = Field(..., description="Workload name")
    workload_type: str = Field(..., alias="type", description="Declared workload type")

    class Config:
        populate_by_name = True


class Environment(BaseModel):
    """An environment registered in the config store."""

    app: str = Field(..., description="Application the environment belongs to")
    name: str = Field(..., description="Environment name")
    region: str | None = Field(default=None, description="Region the environment lives in")
    profile: str | None = Field(default=None, description="Credentials profile used at init")


class WorkspaceSummary(BaseModel):
    """Contents of the workspace ``.workspace`` file."""

    application: str = Field(..., description="Application the workspace belongs to")


class WorkloadManifest(BaseModel):
    """Manifest describing a workload.

    Read from shipyard/<name>/manifest.yml. Only the fields the orchestrator
    needs are modeled; everything else is kept verbatim in ``raw``.
    """

    name: str | None = Field(default=None, description="Workload name")
    workload_type: str = Field(default="", alias="type", description="Declared workload type")
    image: dict[str, Any] = Field(default_factory=dict, description="Image build/location settings")
    schedule: str | None = Field(default=None, description="Cron schedule for jobs")
    variables: dict[str, Any] = Field(default_factory=dict, description="Environment variables")
    raw: str = Field(default="", description="Manifest file contents")

    class Config:
        populate_by_name = True


class EnvironmentManifest(BaseModel):
    """Manifest describing an environment.

    Read from shipyard/environments/<name>/manifest.yml.
    """

    name: str | None = Field(default=None, description="Environment name")
    network: dict[str, Any] = Field(default_factory=dict, description="Network settings")
    raw: str = Field(default="", description="Manifest file contents")


class DeployRequest(BaseModel):
    """Everything the deployer needs to deploy one workload or environment."""

    app: str
    environment: str
    name: str
    workload_type: str | None = Field(default=None, description="None for environments")
    manifest: str = Field(default="", description="Manifest file contents")
    image_tag: str | None = None
    resource_tags: dict[str, str] = Field(default_factory=dict)
    force: bool = False
    rollback: bool = True
    detach: bool = False
    session: SessionConfig = Field(default_factory=SessionConfig)


class DeploymentRecord(BaseModel):
    """Record of the last successful deployment of a component.

    Written by the deployer after each deployment and consulted to detect
    no-op deployments and version downgrades.
    """

    app: str = Field(..., description="Application name")
    environment: str = Field(..., description="Environment name")
    name: str = Field(..., description="Workload or environment name")
    workload_type: str | None = Field(default=None, description="None for environments")
    image_tag: str | None = Field(default=None, description="Deployed image tag")
    resource_tags: dict[str, str] = Field(default_factory=dict, description="Resource tags")
    digest: str = Field(..., description="Digest of the deployed configuration")
    tool_version: str = Field(..., description="shipyard version that deployed it")
    region: str | None = Field(default=None, description="Region deployed to")
    deployed_at: datetime = Field(..., description="When the deployment finished")
    detached: bool = Field(default=False, description="Whether the deploy was detached")
