"""Exceptions raised by the deployment orchestrator and its collaborators.

Public API (the "studs"):
    ShipyardError: Base exception for all shipyard errors
    InvalidNameError: Name unsafe as a file or resource name
    InvalidWorkloadNameError: Malformed name/priority token
    NoSuchWorkloadError: Workload not registered in the config store
    NoSuchEnvironmentError: Environment not registered in the config store
    EnvironmentNotFoundError: Environment missing from both store and workspace
    EnvironmentNotInitializedError: Environment initialization was declined
    WorkloadNotInitializedError: Uninitialized workload with initialization disabled
    ContradictionError: Mutually exclusive preferences were requested
    ManifestError: Manifest could not be read or parsed
    UnrecognizedWorkloadTypeError: Manifest declares an unknown workload type
    CannotDowngradeError: Deployment would downgrade a newer tool's deployment
    NoInfrastructureChangesError: Deployment was a no-op (ignorable)
    DeployError: Contextual wrapper raised by the orchestrator
"""


class ShipyardError(Exception):
    """Base exception for all shipyard errors.

    Subclasses may override ``recommend_actions`` to return a hint that the
    CLI prints after the error message.
    """

    exit_code = 1

    def recommend_actions(self) -> str | None:
        return None


class InvalidNameError(ShipyardError, ValueError):
    """An application, workload or environment name is unsafe to use."""

    pass


class InvalidWorkloadNameError(ShipyardError):
    """A ``name`` or ``name/priority`` token could not be parsed."""

    def __init__(self, token: str, reason: str) -> None:
        self.token = token
        self.reason = reason
        super().__init__(f"invalid workload name and priority {token!r}: {reason}")


class NoSuchWorkloadError(ShipyardError):
    """Workload is not registered in the config store."""

    def __init__(self, app: str, name: str) -> None:
        self.app = app
        self.name = name
        super().__init__(f"couldn't find workload {name} in the application {app}")


class NoSuchEnvironmentError(ShipyardError):
    """Environment is not registered in the config store."""

    def __init__(self, app: str, name: str) -> None:
        self.app = app
        self.name = name
        super().__init__(f"couldn't find environment {name} in the application {app}")


class EnvironmentNotFoundError(ShipyardError):
    """Environment exists neither in the config store nor in the workspace."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'environment "{name}" does not exist in the workspace')

    def recommend_actions(self) -> str:
        return (
            f"Run `shipyard env init --name {self.name}` from a workspace that "
            f"contains shipyard/environments/{self.name}/manifest.yml."
        )


class EnvironmentNotInitializedError(ShipyardError):
    """Environment is only in the workspace and initialization was declined."""

    def __init__(self, app: str, name: str) -> None:
        self.app = app
        self.name = name
        super().__init__(f"env {name} does not exist in app {app}")

    def recommend_actions(self) -> str:
        return f"Run `shipyard env init --name {self.name}` to initialize it."


class WorkloadNotInitializedError(ShipyardError):
    """Workload is only in the workspace and --init-wkld=false was given."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"workload {name} is uninitialized but --init-wkld=false was specified")

    def recommend_actions(self) -> str:
        return f"Run `shipyard workload init --name {self.name}` or drop --no-init-wkld."


class ContradictionError(ShipyardError):
    """Two requested preferences cannot both be honored."""

    pass


class ManifestError(ShipyardError):
    """A manifest could not be read or is not valid YAML."""

    pass


class UnrecognizedWorkloadTypeError(ShipyardError):
    """A manifest declares a workload type outside the known families."""

    def __init__(self, workload_type: str, name: str | None = None) -> None:
        self.workload_type = workload_type
        self.name = name
        message = f'unrecognized workload type "{workload_type}"'
        if name:
            message += f" in manifest for workload {name}"
        super().__init__(message)


class CannotDowngradeError(ShipyardError):
    """A newer tool version last deployed the component."""

    def __init__(self, component_type: str, name: str, later_version: str, this_version: str) -> None:
        self.component_type = component_type
        self.name = name
        self.later_version = later_version
        self.this_version = this_version
        super().__init__(
            f'cannot downgrade {component_type} "{name}" (currently in version '
            f"{later_version}) to version {this_version}"
        )

    def recommend_actions(self) -> str:
        return (
            f"It looks like {self.component_type} {self.name} was last deployed by a newer "
            "version of shipyard.\n"
            "- Upgrade your local shipyard installation and run this command again.\n"
            "- Alternatively, run with --allow-downgrade to override. This can cause an "
            "unsuccessful deployment."
        )


class NoInfrastructureChangesError(ShipyardError):
    """Deployment found nothing to change. Not a failure for batch runs."""

    exit_code = 0


class DeployError(ShipyardError):
    """Raised by the orchestrator with the phase and workload that failed."""

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        self.cause = cause
        super().__init__(message)

    def recommend_actions(self) -> str | None:
        if isinstance(self.cause, ShipyardError):
            return self.cause.recommend_actions()
        return None


__all__ = [
    "ShipyardError",
    "InvalidNameError",
    "InvalidWorkloadNameError",
    "NoSuchWorkloadError",
    "NoSuchEnvironmentError",
    "EnvironmentNotFoundError",
    "EnvironmentNotInitializedError",
    "WorkloadNotInitializedError",
    "ContradictionError",
    "ManifestError",
    "UnrecognizedWorkloadTypeError",
    "CannotDowngradeError",
    "NoInfrastructureChangesError",
    "DeployError",
]
