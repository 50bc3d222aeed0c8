"""Deployer - applies a workload or environment configuration to its target.

Public API (the "studs"):
    Deployer: Protocol the deploy commands expect from a deployer
    FileDeployer: Deployer recording deployments as JSON files
    is_newer_version: Compare two dotted version strings
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..errors import NoInfrastructureChangesError
from .models import DeploymentRecord, DeployRequest
from .store import validate_name

_logger = logging.getLogger(__name__)

_VERSION_PART = re.compile(r"^(\d+)")


def _version_key(version: str) -> tuple[int, ...]:
    parts = []
    for part in version.lstrip("v").split("."):
        match = _VERSION_PART.match(part)
        parts.append(int(match.group(1)) if match else 0)
    return tuple(parts)


def is_newer_version(candidate: str, baseline: str) -> bool:
    """Return True if ``candidate`` is a strictly later version than ``baseline``."""
    return _version_key(candidate) > _version_key(baseline)


def _digest(request: DeployRequest) -> str:
    """Digest of everything that changes the deployed infrastructure."""
    payload = {
        "workload_type": request.workload_type,
        "manifest": request.manifest,
        "image_tag": request.image_tag,
        "resource_tags": dict(sorted(request.resource_tags.items())),
        "region": request.session.region,
    }
    return hashlib.sha256(json.dumps(payload, sort_keys=True).encode()).hexdigest()


@runtime_checkable
class Deployer(Protocol):
    """Protocol defining how deployments are applied and looked up."""

    def deploy_workload(self, request: DeployRequest) -> DeploymentRecord:
        """Deploy a workload. Raises NoInfrastructureChangesError on a no-op."""
        ...

    def deploy_environment(self, request: DeployRequest) -> DeploymentRecord:
        """Deploy an environment. Raises NoInfrastructureChangesError on a no-op."""
        ...

    def get_deployment(self, app: str, environment: str, name: str) -> DeploymentRecord | None:
        """Return the last deployment record of a component, if any."""
        ...

    def list_deployments(self, app: str, environment: str) -> list[DeploymentRecord]:
        """List deployment records in an environment."""
        ...


class FileDeployer:
    """File-based Deployer implementation.

    Stores the last deployment of each component as JSON in
    {root}/{app}/{environment}/{name}.json. A deployment whose digest matches
    the stored record is a no-op unless forced.

    Suitable for local development and testing; it does not provision any
    cloud resources.
    """

    # Record name used for the environment itself
    ENVIRONMENT_RECORD = "_environment"

    def __init__(self, root: Path | None = None, tool_version: str | None = None) -> None:
        """Initialize FileDeployer.

        Args:
            root: Directory for deployment records. Defaults to ~/.shipyard/deployments/
            tool_version: Version stamped on records. Defaults to the installed version
        """
        if root is None:
            root = Path.home() / ".shipyard" / "deployments"
        if tool_version is None:
            from .. import __version__

            tool_version = __version__
        self._root = root
        self._tool_version = tool_version

    def _environment_dir(self, app: str, environment: str) -> Path:
        return (
            self._root
            / validate_name(app, "application name")
            / validate_name(environment, "environment name")
        )

    def _record_path(self, app: str, environment: str, name: str) -> Path:
        return self._environment_dir(app, environment) / f"{name}.json"

    def _apply(self, request: DeployRequest, record_name: str) -> DeploymentRecord:
        digest = _digest(request)
        path = self._record_path(request.app, request.environment, record_name)
        if path.exists() and not request.force:
            previous = DeploymentRecord.model_validate_json(path.read_text())
            if previous.digest == digest:
                raise NoInfrastructureChangesError(
                    f"no infrastructure changes for {request.name} in environment {request.environment}"
                )

        _logger.debug(
            "Deploying %s with %s credentials",
            request.name,
            "static" if request.session.uses_static_credentials else "profile",
        )
        if not request.rollback:
            _logger.debug("Rollback disabled for %s", request.name)

        record = DeploymentRecord(
            app=request.app,
            environment=request.environment,
            name=request.name,
            workload_type=request.workload_type,
            image_tag=request.image_tag,
            resource_tags=request.resource_tags,
            digest=digest,
            tool_version=self._tool_version,
            region=request.session.region,
            deployed_at=datetime.now(timezone.utc),
            detached=request.detach,
        )
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(record.model_dump_json(indent=2))
        _logger.debug("Saved deployment record to %s", path)
        return record

    def deploy_workload(self, request: DeployRequest) -> DeploymentRecord:
        validate_name(request.name, "workload name")
        return self._apply(request, request.name)

    def deploy_environment(self, request: DeployRequest) -> DeploymentRecord:
        return self._apply(request, self.ENVIRONMENT_RECORD)

    def get_deployment(self, app: str, environment: str, name: str) -> DeploymentRecord | None:
        path = self._record_path(app, environment, name)
        if not path.exists():
            return None
        return DeploymentRecord.model_validate_json(path.read_text())

    def list_deployments(self, app: str, environment: str) -> list[DeploymentRecord]:
        directory = self._environment_dir(app, environment)
        results: list[DeploymentRecord] = []
        if not directory.exists():
            return results

        for record_file in sorted(directory.glob("*.json")):
            if record_file.stem == self.ENVIRONMENT_RECORD:
                continue
            try:
                results.append(DeploymentRecord.model_validate_json(record_file.read_text()))
            except ValueError:
                _logger.warning("Failed to read deployment record %s", record_file, exc_info=True)
        return results


__all__ = ["Deployer", "FileDeployer", "is_newer_version"]
