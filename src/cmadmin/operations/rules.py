"""Collection membership rule operations.

Rules are added and removed one at a time through the collection's
``AddMembershipRule`` / ``DeleteMembershipRule`` methods; the site performs
its own duplicate detection.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from cmadmin.client.errors import NotFoundError, ValidationError
from cmadmin.client.resources import COLLECTION, DEVICE
from cmadmin.models.collection import Collection
from cmadmin.models.rule import (
    RULE_TYPES,
    DirectRule,
    ExcludeRule,
    IncludeRule,
    MembershipRule,
    QueryRule,
    parse_rule,
)
from cmadmin.operations.base import BatchResult, OperationGroup, run_batch
from cmadmin.resolver import compile_glob

log = logging.getLogger(__name__)


class RuleOperations(OperationGroup):
    """Operations on ``SMS_Collection.CollectionRules``."""

    def get(
        self,
        collection: str | None = None,
        collection_id: str | None = None,
        *,
        kind: str | None = None,
        rule_name: str | None = None,
    ) -> list[MembershipRule]:
        """List a collection's rules, optionally by kind and rule-name wildcard."""
        key = self.resolver.resolve(COLLECTION, name=collection, key=collection_id)
        return self._rules(str(key), kind=kind, rule_name=rule_name)

    def add_direct(
        self,
        collection: str | None = None,
        collection_id: str | None = None,
        *,
        device: str | None = None,
        device_id: int | str | None = None,
        rule_name: str | None = None,
        pass_thru: bool = False,
    ) -> MembershipRule | Collection:
        key = self._target(collection, collection_id)
        if (device is None) == (device_id is None):
            raise ValidationError("Specify exactly one of a device name or device ID")
        if device is not None:
            found = self.resolver.lookup(DEVICE, device)
            if found is None:
                raise NotFoundError(DEVICE.name, device)
        else:
            found = self.resolver.fetch(DEVICE, DEVICE.coerce_key(device_id))  # type: ignore[arg-type]
        rule = DirectRule(
            resource_id=int(found[DEVICE.key_field]),
            rule_name=rule_name or str(found.get("Name") or found[DEVICE.key_field]),
        )
        return self._add(key, rule, pass_thru)

    def add_direct_many(
        self,
        devices: Iterable[str],
        collection: str | None = None,
        collection_id: str | None = None,
    ) -> BatchResult[str, MembershipRule | Collection]:
        """Add a direct rule per device name, continuing past per-device failures.

        Each rule is named after its device, and the batch result carries the
        added rules rather than a re-read collection. Use :meth:`add_direct`
        for a custom rule name or pass-through.
        """
        key = self._target(collection, collection_id)
        return run_batch(
            devices, lambda d: self.add_direct(collection_id=key, device=d),
        )

    def add_query(
        self,
        collection: str | None = None,
        collection_id: str | None = None,
        *,
        rule_name: str,
        query: str,
        pass_thru: bool = False,
    ) -> MembershipRule | Collection:
        if not rule_name or not query:
            raise ValidationError("A query rule needs both a rule name and a query expression")
        key = self._target(collection, collection_id)
        return self._add(key, QueryRule(rule_name=rule_name, query_expression=query), pass_thru)

    def add_include(
        self,
        collection: str | None = None,
        collection_id: str | None = None,
        *,
        include: str | None = None,
        include_id: str | None = None,
        rule_name: str | None = None,
        pass_thru: bool = False,
    ) -> MembershipRule | Collection:
        key = self._target(collection, collection_id)
        target, target_name = self._other_collection(key, include, include_id)
        rule = IncludeRule(include_collection_id=target, rule_name=rule_name or target_name)
        return self._add(key, rule, pass_thru)

    def add_exclude(
        self,
        collection: str | None = None,
        collection_id: str | None = None,
        *,
        exclude: str | None = None,
        exclude_id: str | None = None,
        rule_name: str | None = None,
        pass_thru: bool = False,
    ) -> MembershipRule | Collection:
        key = self._target(collection, collection_id)
        target, target_name = self._other_collection(key, exclude, exclude_id)
        rule = ExcludeRule(exclude_collection_id=target, rule_name=rule_name or target_name)
        return self._add(key, rule, pass_thru)

    def remove(
        self,
        collection: str | None = None,
        collection_id: str | None = None,
        *,
        kind: str,
        rule_name: str | None = None,
        target: str | int | None = None,
    ) -> BatchResult[MembershipRule, MembershipRule]:
        """Remove every rule of *kind* matching a rule-name wildcard and/or target.

        *target* is the resource ID for direct rules, the query expression
        for query rules, and the referenced collection ID for include and
        exclude rules.
        """
        if rule_name is None and target is None:
            raise ValidationError("Specify a rule name pattern or a rule target to remove")
        key = self._target(collection, collection_id)
        rules = self._rules(key, kind=kind, rule_name=rule_name)
        if target is not None:
            rules = [r for r in rules if str(r.target).lower() == str(target).lower()]
        if not rules:
            raise NotFoundError(f"{kind} membership rule", rule_name or target)

        def delete(rule: MembershipRule) -> MembershipRule:
            self.client.post(
                COLLECTION.path(key, method="DeleteMembershipRule"),
                json={"collectionRule": rule.to_dict()},
            )
            log.info("Removed %s rule '%s' from %s", rule.kind, rule.rule_name, key)
            return rule

        return run_batch(rules, delete)

    def _target(self, collection: str | None, collection_id: str | None) -> str:
        key = str(self.resolver.resolve(COLLECTION, name=collection, key=collection_id))
        self.guard_collection(key, "change membership rules of")
        return key

    def _other_collection(
        self, key: str, name: str | None, other_id: str | None,
    ) -> tuple[str, str]:
        if (name is None) == (other_id is None):
            raise ValidationError("Specify exactly one of a collection name or ID to reference")
        if name is not None:
            found = self.resolver.lookup(COLLECTION, name)
            if found is None:
                raise NotFoundError(COLLECTION.name, name)
        else:
            found = self.resolver.fetch(COLLECTION, other_id)  # type: ignore[arg-type]
        target = str(found[COLLECTION.key_field])
        if target.lower() == key.lower():
            raise ValidationError("A collection cannot include or exclude itself")
        return target, str(found.get("Name") or target)

    def _rules(
        self, key: str, *, kind: str | None = None, rule_name: str | None = None,
    ) -> list[MembershipRule]:
        if kind is not None and kind.lower() not in RULE_TYPES:
            raise ValidationError(f"Rule kind must be one of {', '.join(RULE_TYPES)}")
        data: dict[str, Any] = self.resolver.fetch(COLLECTION, key)
        rules: list[MembershipRule] = []
        for item in data.get("CollectionRules") or []:
            try:
                rules.append(parse_rule(item))
            except ValueError as exc:
                log.warning("Skipping membership rule on %s: %s", key, exc)
        if kind is not None:
            rules = [r for r in rules if r.kind == kind.lower()]
        if rule_name is not None:
            regex = compile_glob(rule_name)
            rules = [r for r in rules if regex.match(r.rule_name)]
        return rules

    def _add(
        self, key: str, rule: MembershipRule, pass_thru: bool,
    ) -> MembershipRule | Collection:
        self.client.post(
            COLLECTION.path(key, method="AddMembershipRule"),
            json={"collectionRule": rule.to_dict()},
        )
        log.info("Added %s rule '%s' to %s", rule.kind, rule.rule_name, key)
        if not pass_thru:
            return rule
        self.settle()
        return Collection.model_validate(self.resolver.fetch(COLLECTION, key))
