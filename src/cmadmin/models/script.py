"""Script and script execution models."""

from __future__ import annotations

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from cmadmin.models.common import NamedEntity

APPROVED = 3


class Script(NamedEntity):
    """A Run Scripts entry (``SMS_Scripts``)."""

    key_attr: ClassVar[str] = "script_guid"

    script_guid: str = Field(alias="ScriptGuid")
    name: str | None = Field(default=None, alias="ScriptName")
    script_version: str | None = Field(default=None, alias="ScriptVersion")
    script_hash: str | None = Field(default=None, alias="ScriptHash")
    script_hash_algorithm: str | None = Field(default=None, alias="ScriptHashAlgorithm")
    approval_state: int | None = Field(default=None, alias="ApprovalState")
    params_definition: str | None = Field(default=None, alias="ParamsDefinition")
    author: str | None = Field(default=None, alias="Author")


class ScriptParameter(BaseModel):
    """A parameter declared by a script's ``ParamsDefinition``."""

    name: str
    type: str = "System.String"
    required: bool = False
    hidden: bool = False
    default: str | None = None
    description: str | None = None


class ScriptExecutionOperation(BaseModel):
    """A submitted script run; poll its status by ``operation_id``."""

    operation_id: int
    script_guid: str
    script_version: str
    target_collection_id: str = ""
    target_resource_ids: list[int] = Field(default_factory=list)
    parameters: dict[str, str] = Field(default_factory=dict)


class ScriptExecutionStatus(BaseModel):
    """Aggregate per-target counts for one script run."""

    operation_id: int
    state: str
    total: int = 0
    completed: int = 0
    failed: int = 0
    offline: int = 0
    not_applicable: int = 0
    unknown: int = 0
    script_name: str | None = None
    attributes: dict[str, Any] = Field(default_factory=dict)


class ScriptResult(BaseModel):
    """One device's outcome from ``SMS_ScriptsExecutionStatus``."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    resource_id: int | None = Field(default=None, alias="ResourceId")
    device_name: str | None = Field(default=None, alias="DeviceName")
    exit_code: int | None = Field(default=None, alias="ScriptExitCode")
    output: str | None = Field(default=None, alias="ScriptOutput")
    state: int | None = Field(default=None, alias="ScriptExecutionState")
