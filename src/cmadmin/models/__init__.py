"""Pydantic data models for the Administration Service."""

from cmadmin.models.collection import Collection, CollectionMember
from cmadmin.models.common import NamedEntity
from cmadmin.models.connection import Connection
from cmadmin.models.device import Device
from cmadmin.models.rule import (
    DirectRule,
    ExcludeRule,
    IncludeRule,
    MembershipRule,
    QueryRule,
    parse_rule,
)
from cmadmin.models.script import (
    Script,
    ScriptExecutionOperation,
    ScriptExecutionStatus,
    ScriptParameter,
    ScriptResult,
)
from cmadmin.models.variable import Variable

__all__ = [
    "Collection",
    "CollectionMember",
    "Connection",
    "Device",
    "DirectRule",
    "ExcludeRule",
    "IncludeRule",
    "MembershipRule",
    "NamedEntity",
    "QueryRule",
    "Script",
    "ScriptExecutionOperation",
    "ScriptExecutionStatus",
    "ScriptParameter",
    "ScriptResult",
    "Variable",
    "parse_rule",
]
