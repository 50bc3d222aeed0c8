"""Command line interface for shipyard."""

from . import deploy, env, lifecycle, workload_mgmt  # noqa: F401
from .main import cli

__all__ = ["cli"]
