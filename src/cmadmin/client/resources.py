"""WMI classes exposed by the Administration Service and their key fields."""

from __future__ import annotations

from dataclasses import dataclass

from cmadmin.client.errors import ValidationError
from cmadmin.client.odata import ResourcePath


@dataclass(frozen=True)
class ResourceClass:
    """A WMI class addressable under ``wmi/``."""

    name: str
    wmi_class: str
    key_field: str
    name_field: str | None = None
    numeric_key: bool = False

    def path(self, key: str | int | None = None, method: str | None = None) -> ResourcePath:
        if key is not None:
            key = self.coerce_key(key)
        return ResourcePath(self.wmi_class, key=key, method=method)

    def coerce_key(self, key: str | int) -> str | int:
        if self.numeric_key:
            try:
                return int(key)
            except (TypeError, ValueError):
                raise ValidationError(f"{self.name} ID must be numeric, got '{key}'") from None
        return str(key)


COLLECTION = ResourceClass("collection", "SMS_Collection", "CollectionID", "Name")
DEVICE = ResourceClass("device", "SMS_R_System", "ResourceId", "Name", numeric_key=True)
SCRIPT = ResourceClass("script", "SMS_Scripts", "ScriptGuid", "ScriptName")
COLLECTION_SETTINGS = ResourceClass(
    "collection settings", "SMS_CollectionSettings", "CollectionID",
)
DEVICE_SETTINGS = ResourceClass(
    "device settings", "SMS_MachineSettings", "ResourceID", numeric_key=True,
)
COLLECTION_MEMBERSHIP = ResourceClass(
    "collection member", "SMS_FullCollectionMembership", "ResourceID", "Name",
    numeric_key=True,
)
SITE_IDENTIFICATION = ResourceClass("site", "SMS_Identification", "ThisSiteCode")
CLIENT_OPERATION = ResourceClass("client operation", "SMS_ClientOperation", "ID")
SCRIPT_SUMMARY = ResourceClass(
    "script execution", "SMS_ScriptsExecutionSummary", "ClientOperationId",
)
SCRIPT_STATUS = ResourceClass(
    "script result", "SMS_ScriptsExecutionStatus", "ClientOperationId",
)
