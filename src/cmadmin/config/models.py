"""Pydantic models for CLI configuration."""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from cmadmin.client.auth import Credential
from cmadmin.config.constants import DEFAULT_SETTLE_DELAY, DEFAULT_TIMEOUT
from cmadmin.models.connection import normalize_server


class ServerProfile(BaseModel):
    """A named Administration Service connection profile."""

    name: str
    server: str = Field(description="SMS Provider host name, e.g. cm01.corp.local")
    username: str | None = Field(default=None, description="Username (DOMAIN\\user)")
    password: str | None = Field(default=None, description="Password")
    skip_certificate_validation: bool = Field(
        default=False, description="Skip TLS certificate validation",
    )
    timeout: float = Field(
        default=DEFAULT_TIMEOUT, gt=0, le=600, description="Request timeout in seconds",
    )
    settle_delay: float = Field(
        default=DEFAULT_SETTLE_DELAY, ge=0, le=60,
        description="Seconds to wait before reading back a write",
    )

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str) -> str:
        return normalize_server(v)

    @property
    def credential(self) -> Credential | None:
        if self.username and self.password is not None:
            return Credential(username=self.username, password=self.password)
        return None


class CLIConfig(BaseModel):
    """Root configuration model."""

    default_profile: str | None = None
    default_format: str = "table"
    profiles: dict[str, ServerProfile] = Field(default_factory=dict)
