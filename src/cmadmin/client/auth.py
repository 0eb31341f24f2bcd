"""Credentials for the Administration Service."""

from __future__ import annotations

import httpx
from pydantic import BaseModel, ConfigDict, Field


class Credential(BaseModel):
    """An explicit username/password pair."""

    model_config = ConfigDict(frozen=True)

    username: str
    password: str = Field(repr=False)


class BasicAuth(httpx.BasicAuth):
    """HTTP Basic auth wrapper."""


def resolve_auth(credential: Credential | None) -> httpx.Auth | None:
    """Resolve an httpx auth object from an optional credential.

    ``None`` means "use default": the request is sent without an
    Authorization header and the ambient identity (proxy, client
    certificate) is relied upon.
    """
    if credential is None:
        return None
    return BasicAuth(credential.username, credential.password)
