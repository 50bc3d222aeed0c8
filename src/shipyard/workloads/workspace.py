"""Workspace - the local directory holding workload and environment manifests.

Layout::

    shipyard/
        .workspace                       # application: <app>
        <workload>/manifest.yml
        environments/<env>/manifest.yml
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from ..errors import ManifestError, ShipyardError
from .models import EnvironmentManifest, WorkloadManifest, WorkspaceSummary

_logger = logging.getLogger(__name__)

WORKSPACE_DIR_NAME = "shipyard"
SUMMARY_FILE_NAME = ".workspace"
MANIFEST_FILE_NAME = "manifest.yml"
ENVIRONMENTS_DIR_NAME = "environments"

# How many parent directories to search for the workspace directory
MAX_PARENT_DIRS_TO_SEARCH = 5


class WorkspaceNotFoundError(ShipyardError):
    """No shipyard/ directory was found near the working directory."""

    def __init__(self, start: Path) -> None:
        self.start = start
        super().__init__(
            f"couldn't find a {WORKSPACE_DIR_NAME}/ directory in {start} "
            f"or its {MAX_PARENT_DIRS_TO_SEARCH} parent directories"
        )

    def recommend_actions(self) -> str:
        return f"Run shipyard from a directory containing {WORKSPACE_DIR_NAME}/{SUMMARY_FILE_NAME}."


def _load_yaml(path: Path) -> tuple[dict, str]:
    """Read a YAML mapping, returning the parsed data and the raw text."""
    raw = path.read_text()
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ManifestError(f"invalid YAML in {path}: {e}") from None
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError(f"{path} must contain a YAML mapping")
    return data, raw


class Workspace:
    """Reads manifests from a local workspace directory."""

    def __init__(self, root: Path) -> None:
        """Initialize the workspace.

        Args:
            root: Path to the shipyard/ directory itself
        """
        self._root = root

    @classmethod
    def from_cwd(cls, start: Path | None = None) -> Workspace:
        """Find the workspace by walking up from ``start`` (default: cwd).

        Raises:
            WorkspaceNotFoundError: If no shipyard/ directory is found
        """
        start = (start or Path.cwd()).resolve()
        candidate = start
        for _ in range(MAX_PARENT_DIRS_TO_SEARCH + 1):
            ws_dir = candidate / WORKSPACE_DIR_NAME
            if ws_dir.is_dir():
                _logger.debug("Found workspace at %s", ws_dir)
                return cls(ws_dir)
            if candidate.parent == candidate:
                break
            candidate = candidate.parent
        raise WorkspaceNotFoundError(start)

    @property
    def path(self) -> Path:
        return self._root

    def summary(self) -> WorkspaceSummary | None:
        """Read the workspace summary, or None when the workspace has none."""
        path = self._root / SUMMARY_FILE_NAME
        if not path.exists():
            return None
        data, _ = _load_yaml(path)
        try:
            return WorkspaceSummary(**data)
        except ValidationError as e:
            raise ManifestError(f"invalid workspace summary {path}: {e}") from None

    def list_workloads(self) -> list[str]:
        """List workload names that have a manifest in the workspace."""
        if not self._root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in self._root.iterdir()
            if entry.is_dir()
            and entry.name != ENVIRONMENTS_DIR_NAME
            and (entry / MANIFEST_FILE_NAME).is_file()
        )

    def list_environments(self) -> list[str]:
        """List environment names that have a manifest in the workspace."""
        env_root = self._root / ENVIRONMENTS_DIR_NAME
        if not env_root.is_dir():
            return []
        return sorted(
            entry.name
            for entry in env_root.iterdir()
            if entry.is_dir() and (entry / MANIFEST_FILE_NAME).is_file()
        )

    def read_workload_manifest(self, name: str) -> WorkloadManifest:
        """Read and parse the manifest of a workload.

        Raises:
            ManifestError: If the manifest is missing or malformed
        """
        path = self._root / name / MANIFEST_FILE_NAME
        if not path.is_file():
            raise ManifestError(f"manifest file {path} does not exist")
        data, raw = _load_yaml(path)
        try:
            manifest = WorkloadManifest(**data, raw=raw)
        except (ValidationError, TypeError) as e:
            raise ManifestError(f"invalid manifest {path}: {e}") from None
        if manifest.name is None:
            manifest.name = name
        return manifest

    def read_environment_manifest(self, name: str) -> EnvironmentManifest:
        """Read and parse the manifest of an environment.

        Raises:
            ManifestError: If the manifest is missing or malformed
        """
        path = self._root / ENVIRONMENTS_DIR_NAME / name / MANIFEST_FILE_NAME
        if not path.is_file():
            raise ManifestError(f"manifest file {path} does not exist")
        data, raw = _load_yaml(path)
        try:
            manifest = EnvironmentManifest(**data, raw=raw)
        except (ValidationError, TypeError) as e:
            raise ManifestError(f"invalid manifest {path}: {e}") from None
        if manifest.name is None:
            manifest.name = name
        return manifest


__all__ = [
    "Workspace",
    "WorkspaceNotFoundError",
    "WORKSPACE_DIR_NAME",
    "MANIFEST_FILE_NAME",
]
