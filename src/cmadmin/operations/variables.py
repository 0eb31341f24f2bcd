"""Device and collection variable operations.

Variables have no identity of their own: they live in the
``CollectionVariables`` / ``MachineVariables`` list of the owner's settings
object, and every change reads that list, edits it, and writes the whole
settings object back.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from cmadmin.client.errors import (
    AlreadyExistsError,
    HttpError,
    NotFoundError,
    ValidationError,
)
from cmadmin.client.resources import (
    COLLECTION,
    COLLECTION_SETTINGS,
    DEVICE,
    DEVICE_SETTINGS,
    ResourceClass,
)
from cmadmin.models.variable import Variable
from cmadmin.operations.base import OperationGroup
from cmadmin.resolver import filter_by_pattern, has_wildcard

log = logging.getLogger(__name__)

DEFAULT_LOCALE_ID = 1033


@dataclass(frozen=True)
class VariableOwner:
    """A resolved collection or device whose settings hold variables."""

    kind: str
    key: str | int
    settings: ResourceClass
    list_field: str

    def __str__(self) -> str:
        return f"{self.kind} {self.key}"


class VariableOperations(OperationGroup):
    """Read-modify-write operations on settings variable lists."""

    def owner(
        self,
        *,
        collection: str | None = None,
        collection_id: str | None = None,
        device: str | None = None,
        device_id: int | str | None = None,
    ) -> VariableOwner:
        """Resolve exactly one collection or device to a variable owner."""
        given = [v for v in (collection, collection_id, device, device_id) if v is not None]
        if len(given) != 1:
            raise ValidationError(
                "Specify exactly one of a collection name, collection ID, device name or device ID"
            )
        if collection is not None or collection_id is not None:
            key = self.resolver.resolve(COLLECTION, name=collection, key=collection_id)
            return VariableOwner("collection", key, COLLECTION_SETTINGS, "CollectionVariables")
        key = self.resolver.resolve(DEVICE, name=device, key=device_id)
        return VariableOwner("device", key, DEVICE_SETTINGS, "MachineVariables")

    def get(
        self,
        owner: VariableOwner,
        name: str | None = None,
        pattern: str | None = None,
    ) -> list[Variable]:
        """List the owner's variables, optionally filtered by name or wildcard."""
        _, variables = self._read(owner)
        if name is not None:
            variables = filter_by_pattern(variables, name)
        if pattern is not None:
            variables = filter_by_pattern(variables, pattern)
        return variables

    def new(
        self,
        owner: VariableOwner,
        name: str,
        value: str,
        masked: bool = False,
        *,
        pass_thru: bool = False,
    ) -> Variable | None:
        if has_wildcard(name):
            raise ValidationError(f"Variable name '{name}' must not contain wildcards")
        self._guard(owner, "add variables to")
        settings, variables = self._read(owner)
        if any(v.matches(name) for v in variables):
            raise AlreadyExistsError(f"Variable '{name}' already exists on {owner}")
        variables.append(Variable(name=name, value=value, masked=masked))
        self._write(owner, settings, variables)
        log.info("Added variable '%s' to %s", name, owner)
        return self._pass_thru(owner, name) if pass_thru else None

    def set(
        self,
        owner: VariableOwner,
        name: str,
        value: str | None = None,
        masked: bool | None = None,
        *,
        pass_thru: bool = False,
    ) -> Variable | None:
        """Change an existing variable's value and/or mask flag.

        Setting a variable to its current state succeeds without writing.
        """
        if value is None and masked is None:
            raise ValidationError("Nothing to change; pass a value or a mask setting")
        self._guard(owner, "modify variables of")
        settings, variables = self._read(owner)
        for index, current in enumerate(variables):
            if current.matches(name):
                break
        else:
            raise NotFoundError(f"{owner.kind} variable", name)

        updated = current.model_copy(update={
            "value": current.value if value is None else value,
            "masked": current.masked if masked is None else masked,
        })
        if updated.value == current.value and updated.masked == current.masked:
            log.debug("Variable '%s' on %s already up to date", name, owner)
            return current if pass_thru else None
        variables[index] = updated
        self._write(owner, settings, variables)
        log.info("Updated variable '%s' on %s", name, owner)
        return self._pass_thru(owner, name) if pass_thru else None

    def remove(self, owner: VariableOwner, name: str) -> list[Variable]:
        """Remove every variable matching *name* (exact or wildcard) in one write."""
        self._guard(owner, "remove variables from")
        settings, variables = self._read(owner)
        doomed = filter_by_pattern(variables, name)
        if not doomed:
            raise NotFoundError(f"{owner.kind} variable", name)
        doomed_names = {v.name.lower() for v in doomed}
        kept = [v for v in variables if v.name.lower() not in doomed_names]
        self._write(owner, settings, kept)
        log.info("Removed %d variable(s) matching '%s' from %s", len(doomed), name, owner)
        return doomed

    def _guard(self, owner: VariableOwner, action: str) -> None:
        if owner.kind == "collection":
            self.guard_collection(str(owner.key), action)

    def _read(self, owner: VariableOwner) -> tuple[dict[str, Any] | None, list[Variable]]:
        try:
            settings = self.client.get_object(owner.settings.path(owner.key))
        except HttpError as exc:
            if not exc.is_not_found:
                raise
            # No settings object yet; the first write creates it.
            settings = None
        if settings is None:
            return None, []
        raw = settings.get(owner.list_field) or []
        return settings, [Variable.model_validate(item) for item in raw]

    def _write(
        self,
        owner: VariableOwner,
        settings: dict[str, Any] | None,
        variables: list[Variable],
    ) -> None:
        entries = [v.to_dict() for v in variables]
        if settings is None:
            body: dict[str, Any] = {owner.settings.key_field: owner.key, owner.list_field: entries}
            if owner.kind == "device":
                body["SourceSite"] = self.client.connection.site_code
                body["LocaleID"] = DEFAULT_LOCALE_ID
            self.client.post(owner.settings.path(), json=body)
            return
        body = {
            k: v for k, v in settings.items()
            if not k.startswith(("@odata", "__"))
        }
        body[owner.list_field] = entries
        self.client.put(owner.settings.path(owner.key), json=body)

    def _pass_thru(self, owner: VariableOwner, name: str) -> Variable | None:
        self.settle()
        _, variables = self._read(owner)
        return next((v for v in variables if v.matches(name)), None)
