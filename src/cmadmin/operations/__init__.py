"""Per-entity operation groups built on the transport and resolver."""

from cmadmin.operations.base import BatchResult, OperationGroup, run_batch
from cmadmin.operations.collections import CollectionOperations
from cmadmin.operations.devices import DeviceOperations
from cmadmin.operations.rules import RuleOperations
from cmadmin.operations.scripts import ScriptOperations
from cmadmin.operations.variables import VariableOperations, VariableOwner

__all__ = [
    "BatchResult",
    "CollectionOperations",
    "DeviceOperations",
    "OperationGroup",
    "RuleOperations",
    "ScriptOperations",
    "VariableOperations",
    "VariableOwner",
    "run_batch",
]
