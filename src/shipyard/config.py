"""Configuration models for shipyard.

Public API (the "studs"):
    ShipyardConfig: Tool-wide settings (state directory, default app/region)
    SessionConfig: Cloud session settings passed to deployments
"""

import os
import re
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

# Data-driven mapping: config_field -> env_var
_ENV_MAP: dict[str, str] = {
    "home": "SHIPYARD_HOME",
    "default_app": "SHIPYARD_APP",
    "default_region": "SHIPYARD_REGION",
}

_REGION_PATTERN = re.compile(r"^[a-z]{2}(-[a-z]+)+-\d+$")


class ShipyardConfig(BaseModel):
    """Tool-wide settings.

    Attributes:
        home: Root directory for the config store and deployment records
        default_app: Application used when the workspace does not name one
        default_region: Region used when no --region flag is given
    """

    home: Path = Field(
        default_factory=lambda: Path.home() / ".shipyard",
        description="Root directory for local state",
    )
    default_app: str | None = Field(None, description="Fallback application name")
    default_region: str = Field("us-west-2", description="Fallback region")

    @property
    def store_dir(self) -> Path:
        return self.home / "apps"

    @property
    def deployments_dir(self) -> Path:
        return self.home / "deployments"

    @classmethod
    def from_env(cls) -> "ShipyardConfig":
        """Create ShipyardConfig from environment variables.

        Environment variables:
            SHIPYARD_HOME: State root (default: ~/.shipyard)
            SHIPYARD_APP: Default application name
            SHIPYARD_REGION: Default region (default: us-west-2)

        Returns:
            ShipyardConfig instance
        """
        kwargs: dict[str, Any] = {}
        for field, env_var in _ENV_MAP.items():
            value = os.environ.get(env_var)
            if value:
                kwargs[field] = value
        return cls(**kwargs)


class SessionConfig(BaseModel):
    """Cloud session settings carried by every deployment in a run.

    Credentials given on the command line take precedence over the named
    profile. The access key and secret must be supplied together.
    """

    region: str | None = Field(None, description="Target region")
    profile: str | None = Field(None, description="Named credentials profile")
    access_key_id: str | None = Field(None, description="Access key ID")
    secret_access_key: SecretStr | None = Field(None, description="Secret access key")
    session_token: SecretStr | None = Field(None, description="Session token")

    @field_validator("region")
    @classmethod
    def validate_region(cls, v: str | None) -> str | None:
        """Validate region looks like us-west-2."""
        if v is not None and not _REGION_PATTERN.match(v):
            raise ValueError(f"Invalid region: {v!r}. Expected a value like 'us-west-2'")
        return v

    @model_validator(mode="after")
    def validate_credentials(self) -> "SessionConfig":
        """Validate static credentials come as a pair."""
        if bool(self.access_key_id) != bool(self.secret_access_key):
            raise ValueError("access_key_id and secret_access_key must be specified together")
        if self.session_token and not self.access_key_id:
            raise ValueError("session_token requires access_key_id and secret_access_key")
        return self

    @property
    def uses_static_credentials(self) -> bool:
        return self.access_key_id is not None


__all__ = ["ShipyardConfig", "SessionConfig"]
