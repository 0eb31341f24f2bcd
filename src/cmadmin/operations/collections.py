"""Collection operations — list, show, create, update, delete, refresh, members."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from cmadmin.client.errors import AlreadyExistsError, NotFoundError, ValidationError
from cmadmin.client.odata import Filter, query_params
from cmadmin.client.resources import COLLECTION, COLLECTION_MEMBERSHIP
from cmadmin.client.transport import first_item
from cmadmin.models.collection import COLLECTION_TYPES, Collection, CollectionMember
from cmadmin.operations.base import BatchResult, OperationGroup, run_batch
from cmadmin.resolver import filter_by_pattern, has_wildcard

log = logging.getLogger(__name__)


class CollectionOperations(OperationGroup):
    """Operations on ``SMS_Collection``."""

    def get(
        self,
        name: str | None = None,
        key: str | None = None,
        pattern: str | None = None,
    ) -> list[Collection]:
        """List collections by ID, exact name, wildcard pattern, or all of them.

        Unlike :meth:`get_one`, several collections sharing a name are all
        returned.
        """
        if key is not None:
            return [Collection.model_validate(self.resolver.fetch(COLLECTION, key))]
        if name is not None and has_wildcard(name):
            pattern, name = name, None
        if name is not None:
            items = self.resolver.find_by_name(COLLECTION, name)
        else:
            items = self.client.get_items(COLLECTION.path())
        if pattern:
            items = filter_by_pattern(items, pattern)
        return [Collection.model_validate(item) for item in items]

    def get_one(self, name: str | None = None, key: str | None = None) -> Collection:
        collection_id = self.resolver.resolve(COLLECTION, name=name, key=key)
        return Collection.model_validate(self.resolver.fetch(COLLECTION, collection_id))

    def new(
        self,
        name: str,
        limiting_name: str | None = None,
        limiting_key: str | None = None,
        collection_type: str = "device",
        comment: str | None = None,
    ) -> Collection:
        """Create a collection limited to another collection."""
        type_code = COLLECTION_TYPES.get(collection_type.lower())
        if type_code is None:
            raise ValidationError(
                f"Collection type must be one of {', '.join(COLLECTION_TYPES)}"
            )
        if not name.strip():
            raise ValidationError("Collection name must not be empty")
        limit_id = self.resolver.resolve(COLLECTION, name=limiting_name, key=limiting_key)
        if self.resolver.find_by_name(COLLECTION, name):
            raise AlreadyExistsError(f"A collection named '{name}' already exists")

        body: dict[str, Any] = {
            "Name": name,
            "CollectionType": type_code,
            "LimitToCollectionID": limit_id,
        }
        if comment is not None:
            body["Comment"] = comment
        created = first_item(self.client.invoke("POST", COLLECTION.path(), body=body))
        log.info("Created collection '%s' limited to %s", name, limit_id)
        if created is None or COLLECTION.key_field not in created:
            self.settle()
            found = self.resolver.lookup(COLLECTION, name)
            if found is None:
                raise NotFoundError(COLLECTION.name, name)
            created = found
        return Collection.model_validate(created)

    def set(
        self,
        name: str | None = None,
        key: str | None = None,
        *,
        new_name: str | None = None,
        comment: str | None = None,
        pass_thru: bool = False,
    ) -> Collection | None:
        """Rename a collection or change its comment."""
        collection_id = self.resolver.resolve(COLLECTION, name=name, key=key)
        self.guard_collection(str(collection_id), "modify")
        changes: dict[str, Any] = {}
        if new_name is not None:
            clashes = [
                c for c in self.resolver.find_by_name(COLLECTION, new_name)
                if str(c.get(COLLECTION.key_field)).lower() != str(collection_id).lower()
            ]
            if clashes:
                raise AlreadyExistsError(f"A collection named '{new_name}' already exists")
            changes["Name"] = new_name
        if comment is not None:
            changes["Comment"] = comment
        if not changes:
            raise ValidationError("Nothing to change; pass a new name or comment")

        self.client.put(COLLECTION.path(collection_id), json=changes)
        log.info("Updated collection %s: %s", collection_id, ", ".join(changes))
        if not pass_thru:
            return None
        self.settle()
        return Collection.model_validate(self.resolver.fetch(COLLECTION, collection_id))

    def remove(self, name: str | None = None, key: str | None = None) -> str:
        collection_id = self.resolver.resolve(COLLECTION, name=name, key=key)
        self.guard_collection(str(collection_id), "remove")
        self.client.delete(COLLECTION.path(collection_id))
        log.info("Removed collection %s", collection_id)
        return str(collection_id)

    def remove_many(self, names: Iterable[str]) -> BatchResult[str, str]:
        """Remove several collections by name, continuing past failures."""
        return run_batch(names, lambda n: self.remove(name=n))

    def refresh(self, name: str | None = None, key: str | None = None) -> str:
        """Ask the site to re-evaluate a collection's membership."""
        collection_id = self.resolver.resolve(COLLECTION, name=name, key=key)
        self.client.post(COLLECTION.path(collection_id, method="RequestRefresh"))
        log.info("Requested membership refresh of %s", collection_id)
        return str(collection_id)

    def members(
        self, name: str | None = None, key: str | None = None,
    ) -> list[CollectionMember]:
        collection_id = self.resolver.resolve(COLLECTION, name=name, key=key)
        params = query_params(filter=Filter("CollectionID", "eq", collection_id))
        items = self.client.get_items(COLLECTION_MEMBERSHIP.path(), params=params)
        return [CollectionMember.model_validate(item) for item in items]
