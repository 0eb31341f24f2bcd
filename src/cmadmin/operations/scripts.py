"""Run Scripts operations — list scripts, run one, and poll its outcome.

A run goes through three local steps before the site takes over:
the script's metadata is looked up and checked, the parameter payload is
assembled and hashed, and the client operation is submitted.  Progress is
then read back by operation ID; nothing is pushed.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import re
import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from typing import Any
from xml.sax.saxutils import escape

from cmadmin.client.errors import CMAdminError, ScriptNotRunnableError, ValidationError
from cmadmin.client.odata import Filter, query_params
from cmadmin.client.resources import (
    CLIENT_OPERATION,
    COLLECTION,
    DEVICE,
    SCRIPT,
    SCRIPT_STATUS,
    SCRIPT_SUMMARY,
)
from cmadmin.client.transport import first_item
from cmadmin.models.script import (
    APPROVED,
    Script,
    ScriptExecutionOperation,
    ScriptExecutionStatus,
    ScriptParameter,
    ScriptResult,
)
from cmadmin.operations.base import OperationGroup
from cmadmin.resolver import filter_by_pattern, has_wildcard

log = logging.getLogger(__name__)

RUN_SCRIPT_OPERATION = 135
NOT_FOUND = "NotFound"

_XML_DECLARATION = re.compile(r"^\s*<\?xml[^>]*\?>")
_ATTR_ENTITIES = {'"': "&quot;"}


def _decode_text(raw: bytes) -> str:
    if raw.startswith((b"\xff\xfe", b"\xfe\xff")):
        return raw.decode("utf-16")
    if len(raw) > 1 and raw[1:2] == b"\x00":
        return raw.decode("utf-16-le")
    return raw.decode("utf-8-sig")


def parse_params_definition(encoded: str | None) -> list[ScriptParameter]:
    """Parse a script's base64 ``ParamsDefinition`` XML into parameter specs."""
    if not encoded:
        return []
    try:
        text = _decode_text(base64.b64decode(encoded, validate=True))
        root = ET.fromstring(_XML_DECLARATION.sub("", text, count=1))
    except (binascii.Error, UnicodeDecodeError, ET.ParseError) as exc:
        raise CMAdminError(f"Unreadable script parameter definition: {exc}") from exc
    params = []
    for node in root.iter("ScriptParameter"):
        params.append(ScriptParameter(
            name=node.get("Name", ""),
            type=node.get("Type") or "System.String",
            required=node.get("IsRequired", "false").lower() == "true",
            hidden=node.get("IsHidden", "false").lower() == "true",
            default=node.get("DefaultValue") or None,
            description=node.get("Description") or None,
        ))
    return [p for p in params if p.name]


def bind_parameters(
    declared: list[ScriptParameter], values: Mapping[str, Any],
) -> dict[str, str]:
    """Match caller values to declared parameters, applying defaults.

    Raises:
        ValidationError: an unknown parameter was given, or a required one
            has neither a value nor a default.
    """
    by_name = {p.name.lower(): p for p in declared}
    unknown = [name for name in values if name.lower() not in by_name]
    if unknown:
        raise ValidationError(f"Unknown script parameter(s): {', '.join(sorted(unknown))}")
    given = {name.lower(): value for name, value in values.items()}
    bound: dict[str, str] = {}
    for param in declared:
        value = given.get(param.name.lower())
        if value is None:
            value = param.default
        if value is None:
            if param.required:
                raise ValidationError(f"Missing required script parameter '{param.name}'")
            continue
        bound[param.name] = str(value)
    return bound


def build_parameters_xml(
    declared: list[ScriptParameter], bound: Mapping[str, str],
) -> str:
    """Parameter XML for a run; a script that declares no parameters gets an empty string."""
    if not declared:
        return ""
    types = {p.name: p.type for p in declared}
    parts = [
        '<ScriptParameter ParameterGroupGuid="" ParameterGroupName="PG_" '
        f'ParameterName="{escape(name, _ATTR_ENTITIES)}" '
        f'ParameterType="{escape(types.get(name, "System.String"), _ATTR_ENTITIES)}" '
        f'ParameterValue="{escape(value, _ATTR_ENTITIES)}"/>'
        for name, value in bound.items()
    ]
    return "<ScriptParameters>" + "".join(parts) + "</ScriptParameters>"


def parameters_hash(parameters_xml: str) -> str:
    """SHA-256 of the parameter XML as UTF-16LE, upper-case hex."""
    return hashlib.sha256(parameters_xml.encode("utf-16-le")).hexdigest().upper()


def build_script_payload(script: Script, parameters_xml: str) -> str:
    """The base64 ``Param`` value for an ``InitiateClientOperationEx`` run-script call."""
    digest = parameters_hash(parameters_xml) if parameters_xml else ""
    xml = (
        f"<ScriptContent ScriptGuid='{script.script_guid}'>"
        f"<ScriptVersion>{script.script_version}</ScriptVersion>"
        "<ScriptType>0</ScriptType>"
        f"<ScriptHash ScriptHashAlg='SHA256'>{script.script_hash}</ScriptHash>"
        f"{parameters_xml}"
        f"<ParameterGroupHash ParameterHashAlg='SHA256'>{digest}"
        "</ParameterGroupHash>"
        "</ScriptContent>"
    )
    return base64.b64encode(xml.encode("utf-8")).decode("ascii")


def derive_state(total: int, completed: int, failed: int, not_applicable: int) -> str:
    if total <= 0:
        return "Unknown"
    if completed + not_applicable >= total:
        return "Completed"
    if failed >= total:
        return "Failed"
    if completed or failed:
        return "PartiallyCompleted"
    return "InProgress"


class ScriptOperations(OperationGroup):
    """Operations on ``SMS_Scripts`` and script client operations."""

    def get(
        self,
        name: str | None = None,
        key: str | None = None,
        pattern: str | None = None,
    ) -> list[Script]:
        if key is not None:
            return [Script.model_validate(self.resolver.fetch(SCRIPT, key))]
        if name is not None and has_wildcard(name):
            pattern, name = name, None
        if name is not None:
            items = self.resolver.find_by_name(SCRIPT, name)
        else:
            items = self.client.get_items(SCRIPT.path())
        if pattern:
            items = filter_by_pattern(items, pattern, lambda s: s.get("ScriptName") or "")
        return [Script.model_validate(item) for item in items]

    def get_one(self, name: str | None = None, key: str | None = None) -> Script:
        script_guid = self.resolver.resolve(SCRIPT, name=name, key=key)
        return Script.model_validate(self.resolver.fetch(SCRIPT, script_guid))

    def invoke(
        self,
        script: str | None = None,
        script_id: str | None = None,
        *,
        collection: str | None = None,
        collection_id: str | None = None,
        devices: Iterable[str] | None = None,
        device_ids: Iterable[int | str] | None = None,
        parameters: Mapping[str, Any] | None = None,
    ) -> ScriptExecutionOperation:
        """Run an approved script against a collection or a set of devices."""
        by_collection = collection is not None or collection_id is not None
        by_device = devices is not None or device_ids is not None
        if by_collection == by_device:
            raise ValidationError("Target either a collection or a set of devices, not both")

        meta = self.get_one(name=script, key=script_id)
        if not meta.script_version or not meta.script_hash:
            raise ScriptNotRunnableError(
                f"Script '{meta.name}' is missing its version or hash and cannot be run"
            )
        if meta.approval_state is not None and meta.approval_state != APPROVED:
            raise ScriptNotRunnableError(f"Script '{meta.name}' is not approved")

        declared = parse_params_definition(meta.params_definition)
        bound = bind_parameters(declared, parameters or {})
        payload = build_script_payload(meta, build_parameters_xml(declared, bound))

        if by_collection:
            target_collection = str(
                self.resolver.resolve(COLLECTION, name=collection, key=collection_id)
            )
            target_ids: list[int] = []
        else:
            # Direct device targeting sends an empty collection ID.
            target_collection = ""
            target_ids = [
                int(self.resolver.resolve(DEVICE, name=d)) for d in devices or []
            ] + [int(DEVICE.coerce_key(i)) for i in device_ids or []]
            if not target_ids:
                raise ValidationError("No target devices given")

        body = {
            "Type": RUN_SCRIPT_OPERATION,
            "TargetCollectionID": target_collection,
            "TargetResourceIDs": target_ids,
            "RandomizationWindow": 0,
            "Param": payload,
        }
        response = first_item(self.client.invoke(
            "POST", CLIENT_OPERATION.path(method="InitiateClientOperationEx"), body=body,
        ))
        operation_id = (response or {}).get("OperationID")
        if operation_id is None:
            raise CMAdminError(f"Server did not return an operation ID for script '{meta.name}'")
        log.info(
            "Started script '%s' v%s as operation %s", meta.name, meta.script_version, operation_id,
        )
        return ScriptExecutionOperation(
            operation_id=int(operation_id),
            script_guid=meta.script_guid,
            script_version=str(meta.script_version),
            target_collection_id=target_collection,
            target_resource_ids=target_ids,
            parameters=bound,
        )

    def status(self, operation_id: int) -> ScriptExecutionStatus:
        """Aggregate status of a run; an unknown operation yields state ``NotFound``."""
        params = query_params(filter=Filter(SCRIPT_SUMMARY.key_field, "eq", int(operation_id)))
        row = first_item(self.client.invoke("GET", SCRIPT_SUMMARY.path(), params=params))
        if row is None:
            return ScriptExecutionStatus(operation_id=operation_id, state=NOT_FOUND)
        counts = {
            "total": int(row.get("TotalClients") or 0),
            "completed": int(row.get("CompletedClients") or 0),
            "failed": int(row.get("FailedClients") or 0),
            "offline": int(row.get("OfflineClients") or 0),
            "not_applicable": int(row.get("NotApplicableClients") or 0),
            "unknown": int(row.get("UnknownClients") or 0),
        }
        return ScriptExecutionStatus(
            operation_id=operation_id,
            state=derive_state(
                counts["total"], counts["completed"], counts["failed"], counts["not_applicable"],
            ),
            script_name=row.get("ScriptName"),
            attributes={k: v for k, v in row.items() if not k.startswith("@odata")},
            **counts,
        )

    def results(self, operation_id: int) -> list[ScriptResult]:
        """Per-device output of a run."""
        params = query_params(filter=Filter(SCRIPT_STATUS.key_field, "eq", int(operation_id)))
        items = self.client.get_items(SCRIPT_STATUS.path(), params=params)
        return [ScriptResult.model_validate(item) for item in items]
