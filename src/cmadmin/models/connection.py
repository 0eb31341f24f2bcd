"""Connection descriptor for one Administration Service endpoint."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from cmadmin.client.auth import Credential


class Connection(BaseModel):
    """An immutable, validated connection to a site's Administration Service."""

    model_config = ConfigDict(frozen=True)

    server: str = Field(description="SMS Provider host name, e.g. cm01.corp.local")
    site_code: str = Field(default="", description="Site code learned on connect")
    credential: Credential | None = None
    skip_certificate_validation: bool = False
    timeout: float = Field(default=30.0, gt=0, le=600)

    @field_validator("server")
    @classmethod
    def validate_server(cls, v: str) -> str:
        return normalize_server(v)

    @property
    def base_url(self) -> str:
        return f"https://{self.server}/AdminService/"


def normalize_server(value: str) -> str:
    """Strip any scheme, path and trailing slash from a server name."""
    server = value.strip()
    for prefix in ("https://", "http://"):
        if server.lower().startswith(prefix):
            server = server[len(prefix):]
    server = server.split("/", 1)[0]
    if not server:
        raise ValueError("Server host name must not be empty")
    return server
