"""Shared test fixtures."""

from pathlib import Path

import pytest
import yaml


@pytest.fixture(autouse=True)
def _clear_cli_config():
    """Reset the CLI's cached configuration between tests."""
    from shipyard.cli import main

    main._config = None
    yield
    main._config = None


def _write_manifest(path: Path, data: dict) -> Path:
    path.mkdir(parents=True, exist_ok=True)
    manifest = path / "manifest.yml"
    manifest.write_text(yaml.safe_dump(data))
    return manifest


@pytest.fixture
def write_manifest():
    """Write a manifest.yml under a directory and return the file path."""
    return _write_manifest


@pytest.fixture
def workspace_dir(tmp_path):
    """A shipyard/ workspace with two services, a job and a test environment."""
    ws = tmp_path / "project" / "shipyard"
    ws.mkdir(parents=True)
    (ws / ".workspace").write_text("application: demo\n")
    _write_manifest(
        ws / "fe",
        {"name": "fe", "type": "Load Balanced Web Service", "image": {"build": "fe/Dockerfile"}},
    )
    _write_manifest(
        ws / "be",
        {"name": "be", "type": "Backend Service", "image": {"build": "be/Dockerfile"}},
    )
    _write_manifest(
        ws / "report",
        {
            "name": "report",
            "type": "Scheduled Job",
            "image": {"location": "example.com/report:1"},
            "schedule": "@daily",
        },
    )
    _write_manifest(ws / "environments" / "test", {"name": "test"})
    return ws
