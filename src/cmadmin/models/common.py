"""Common response models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict


class NamedEntity(BaseModel):
    """A server object with a canonical key, a display name, and passthrough attributes.

    Fields the library relies on are typed; every other property the server
    returns is kept verbatim in :attr:`attributes`.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    key_attr: ClassVar[str] = ""

    name: str | None = None

    @property
    def key(self) -> str | int:
        return getattr(self, self.key_attr)

    @property
    def attributes(self) -> dict[str, Any]:
        return dict(self.model_extra or {})

    def to_dict(self) -> dict[str, Any]:
        """Wire-shaped dict (server property names), extras included."""
        return self.model_dump(by_alias=True, exclude_none=True)
