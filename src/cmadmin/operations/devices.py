"""Device lookups."""

from __future__ import annotations

from cmadmin.client.resources import DEVICE
from cmadmin.models.device import Device
from cmadmin.operations.base import OperationGroup
from cmadmin.resolver import filter_by_pattern, has_wildcard


class DeviceOperations(OperationGroup):
    """Read-only operations on ``SMS_R_System``."""

    def get(
        self,
        name: str | None = None,
        key: int | str | None = None,
        pattern: str | None = None,
    ) -> list[Device]:
        if key is not None:
            return [Device.model_validate(self.resolver.fetch(DEVICE, DEVICE.coerce_key(key)))]
        if name is not None and has_wildcard(name):
            pattern, name = name, None
        if name is not None:
            items = self.resolver.find_by_name(DEVICE, name)
        else:
            items = self.client.get_items(DEVICE.path())
        if pattern:
            items = filter_by_pattern(items, pattern)
        return [Device.model_validate(item) for item in items]

    def get_one(self, name: str | None = None, key: int | str | None = None) -> Device:
        resource_id = self.resolver.resolve(DEVICE, name=name, key=key)
        return Device.model_validate(self.resolver.fetch(DEVICE, resource_id))
