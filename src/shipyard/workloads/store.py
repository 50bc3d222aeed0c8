"""Config store - persisted registry of applications' workloads and environments.

Public API (the "studs"):
    Store: Protocol the orchestrator expects from a config store
    FileStore: Concrete Store storing JSON records on the local filesystem
    validate_name: Reject names that are unsafe as file or resource names
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Protocol, runtime_checkable

from ..errors import InvalidNameError, NoSuchEnvironmentError, NoSuchWorkloadError
from .models import Environment, Workload

_logger = logging.getLogger(__name__)

# Lowercase alphanumerics and hyphens, starting with a letter
_SAFE_NAME_PATTERN = re.compile(r"^[a-z][a-z0-9-]*$")


def validate_name(name: str, kind: str = "name") -> str:
    """Validate an application, workload or environment name.

    Args:
        name: Raw name
        kind: What the name identifies, used in error messages

    Returns:
        The name, unchanged

    Raises:
        InvalidNameError: If the name is empty or contains unsupported characters
    """
    if not name:
        raise InvalidNameError(f"{kind} must not be empty")

    if "/" in name or "\\" in name:
        raise InvalidNameError(f"{kind} contains path separators: {name!r}")

    if not _SAFE_NAME_PATTERN.match(name):
        raise InvalidNameError(
            f"{kind} contains invalid characters: {name!r}. "
            "Only lowercase letters, digits and hyphens are allowed, starting with a letter."
        )

    return name


@runtime_checkable
class Store(Protocol):
    """Protocol defining the config store the orchestrator reads and writes."""

    def list_workloads(self, app: str) -> list[Workload]:
        """List all workloads registered in an application."""
        ...

    def get_workload(self, app: str, name: str) -> Workload:
        """Get a registered workload. Raises NoSuchWorkloadError if absent."""
        ...

    def create_workload(self, workload: Workload) -> None:
        """Register a workload. Re-registering an existing workload is a no-op."""
        ...

    def list_environments(self, app: str) -> list[Environment]:
        """List all environments registered in an application."""
        ...

    def get_environment(self, app: str, name: str) -> Environment:
        """Get a registered environment. Raises NoSuchEnvironmentError if absent."""
        ...

    def create_environment(self, environment: Environment) -> None:
        """Register an environment. Re-registering is a no-op."""
        ...


class FileStore:
    """File-based Store implementation.

    Stores records as JSON in {root}/{app}/workloads/{name}.json and
    {root}/{app}/environments/{name}.json. Each registration is written
    immediately; there is no transaction spanning several records.
    """

    def __init__(self, root: Path | None = None) -> None:
        """Initialize FileStore.

        Args:
            root: Directory for store records. Defaults to ~/.shipyard/apps/
        """
        if root is None:
            root = Path.home() / ".shipyard" / "apps"
        self._root = root

    def _workload_dir(self, app: str) -> Path:
        return self._root / validate_name(app, "application name") / "workloads"

    def _environment_dir(self, app: str) -> Path:
        return self._root / validate_name(app, "application name") / "environments"

    def list_workloads(self, app: str) -> list[Workload]:
        directory = self._workload_dir(app)
        if not directory.exists():
            return []
        return [
            Workload.model_validate_json(path.read_text())
            for path in sorted(directory.glob("*.json"))
        ]

    def get_workload(self, app: str, name: str) -> Workload:
        path = self._workload_dir(app) / f"{validate_name(name, 'workload name')}.json"
        if not path.exists():
            raise NoSuchWorkloadError(app, name)
        return Workload.model_validate_json(path.read_text())

    def create_workload(self, workload: Workload) -> None:
        directory = self._workload_dir(workload.app)
        path = directory / f"{validate_name(workload.name, 'workload name')}.json"
        if path.exists():
            _logger.debug("Workload %s already registered in %s", workload.name, workload.app)
            return
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(workload.model_dump_json(indent=2, by_alias=True))
        _logger.debug("Registered workload %s in %s", workload.name, workload.app)

    def list_environments(self, app: str) -> list[Environment]:
        directory = self._environment_dir(app)
        if not directory.exists():
            return []
        return [
            Environment.model_validate_json(path.read_text())
            for path in sorted(directory.glob("*.json"))
        ]

    def get_environment(self, app: str, name: str) -> Environment:
        path = self._environment_dir(app) / f"{validate_name(name, 'environment name')}.json"
        if not path.exists():
            raise NoSuchEnvironmentError(app, name)
        return Environment.model_validate_json(path.read_text())

    def create_environment(self, environment: Environment) -> None:
        directory = self._environment_dir(environment.app)
        path = directory / f"{validate_name(environment.name, 'environment name')}.json"
        if path.exists():
            _logger.debug("Environment %s already registered in %s", environment.name, environment.app)
            return
        directory.mkdir(parents=True, exist_ok=True)
        path.write_text(environment.model_dump_json(indent=2))
        _logger.debug("Registered environment %s in %s", environment.name, environment.app)


__all__ = ["Store", "FileStore", "validate_name"]
