"""Device data models."""

from __future__ import annotations

from typing import ClassVar

from pydantic import Field

from cmadmin.models.common import NamedEntity


class Device(NamedEntity):
    """A discovered system resource (``SMS_R_System``)."""

    key_attr: ClassVar[str] = "resource_id"

    resource_id: int = Field(alias="ResourceId")
    name: str | None = Field(default=None, alias="Name")
    client: int | None = Field(default=None, alias="Client")
    active: int | None = Field(default=None, alias="Active")
    operating_system: str | None = Field(
        default=None, alias="OperatingSystemNameandVersion",
    )
