"""Device and collection variable models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Variable(BaseModel):
    """One entry of a settings object's variable list."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str = Field(alias="Name", min_length=1)
    value: str = Field(default="", alias="Value")
    masked: bool = Field(default=False, alias="IsMasked")

    @field_validator("value", mode="before")
    @classmethod
    def none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    def matches(self, name: str) -> bool:
        return self.name.lower() == name.lower()

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)
