"""Name-to-key resolution and client-side wildcard matching.

Display names are not unique on a site, so every lookup by name has to
reject both the zero-match and the multi-match case before a key is used
for anything else.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

from cmadmin.client.errors import (
    AmbiguousNameError,
    HttpError,
    NotFoundError,
    ValidationError,
)
from cmadmin.client.odata import Filter, query_params
from cmadmin.client.resources import ResourceClass
from cmadmin.client.transport import AdminServiceClient

log = logging.getLogger(__name__)

T = TypeVar("T")

_WILDCARDS = ("*", "?")


def has_wildcard(pattern: str) -> bool:
    return any(ch in pattern for ch in _WILDCARDS)


def compile_glob(pattern: str) -> re.Pattern[str]:
    """Translate ``*``/``?`` glob syntax into an anchored, case-insensitive regex."""
    parts = []
    for ch in pattern:
        if ch == "*":
            parts.append(".*")
        elif ch == "?":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("^" + "".join(parts) + "$", re.IGNORECASE | re.DOTALL)


def _default_name(entity: Any) -> str:
    if isinstance(entity, dict):
        return str(entity.get("Name") or "")
    return str(getattr(entity, "name", "") or "")


def filter_by_pattern(
    entities: Iterable[T],
    pattern: str,
    name_of: Callable[[T], str] = _default_name,
) -> list[T]:
    """Return every entity whose name matches *pattern*, in input order."""
    regex = compile_glob(pattern)
    return [e for e in entities if regex.match(name_of(e) or "")]


class Resolver:
    """Resolves human names to canonical keys through the Administration Service."""

    def __init__(self, client: AdminServiceClient) -> None:
        self.client = client

    def find_by_name(self, resource_class: ResourceClass, name: str) -> list[dict[str, Any]]:
        if not resource_class.name_field:
            raise ValidationError(f"{resource_class.name} objects have no name to look up")
        params = query_params(filter=Filter(resource_class.name_field, "eq", name))
        return self.client.get_items(resource_class.path(), params=params)

    def lookup(self, resource_class: ResourceClass, name: str) -> dict[str, Any] | None:
        """The single object named *name*, or ``None`` if there is none.

        Raises:
            AmbiguousNameError: more than one object has that name.
        """
        matches = self.find_by_name(resource_class, name)
        if len(matches) > 1:
            raise AmbiguousNameError(resource_class.name, name, len(matches))
        return matches[0] if matches else None

    def resolve_by_name(self, resource_class: ResourceClass, name: str) -> str | int:
        found = self.lookup(resource_class, name)
        if found is None:
            raise NotFoundError(resource_class.name, name)
        key = found.get(resource_class.key_field)
        if key is None:
            raise NotFoundError(resource_class.name, name)
        log.debug("Resolved %s '%s' to %s", resource_class.name, name, key)
        return resource_class.coerce_key(key)

    def resolve(
        self,
        resource_class: ResourceClass,
        name: str | None = None,
        key: str | int | None = None,
    ) -> str | int:
        """Return *key* as given, or resolve *name*; exactly one must be supplied.

        A supplied key is not checked for existence; the caller's next
        request against it will fail if it does not exist.
        """
        if (name is None) == (key is None):
            raise ValidationError(
                f"Specify exactly one of a {resource_class.name} name or ID"
            )
        if key is not None:
            return resource_class.coerce_key(key)
        return self.resolve_by_name(resource_class, name)  # type: ignore[arg-type]

    def fetch(self, resource_class: ResourceClass, key: str | int) -> dict[str, Any]:
        """GET one object by key, mapping 404 and empty envelopes to NotFoundError."""
        try:
            found = self.client.get_object(resource_class.path(key))
        except HttpError as exc:
            if exc.is_not_found:
                raise NotFoundError(resource_class.name, key) from exc
            raise
        if found is None:
            raise NotFoundError(resource_class.name, key)
        return found
