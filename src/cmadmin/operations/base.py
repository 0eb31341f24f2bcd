"""Shared plumbing for the per-entity operation groups."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from cmadmin.client.errors import CMAdminError, ProtectedEntityError
from cmadmin.client.transport import AdminServiceClient
from cmadmin.resolver import Resolver

log = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")

# Built-in collections (All Systems is SMS00001) all carry the SMS prefix.
PROTECTED_COLLECTION_PREFIX = "SMS"


def is_protected_collection(collection_id: str) -> bool:
    return str(collection_id).upper().startswith(PROTECTED_COLLECTION_PREFIX)


@dataclass
class BatchResult(Generic[T, R]):
    """Per-item outcome of an operation applied to several inputs."""

    succeeded: list[R] = field(default_factory=list)
    failed: list[tuple[T, CMAdminError]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def run_batch(items: Iterable[T], action: Callable[[T], R]) -> BatchResult[T, R]:
    """Apply *action* to every item, collecting failures instead of stopping."""
    result: BatchResult[T, R] = BatchResult()
    for item in items:
        try:
            result.succeeded.append(action(item))
        except CMAdminError as exc:
            log.warning("Skipping %s: %s", item, exc)
            result.failed.append((item, exc))
    return result


class OperationGroup:
    """Base for collections/devices/variables/rules/scripts operations."""

    def __init__(
        self,
        client: AdminServiceClient,
        resolver: Resolver,
        *,
        settle_delay: float = 2.0,
    ) -> None:
        self.client = client
        self.resolver = resolver
        self.settle_delay = settle_delay

    def settle(self) -> None:
        """Wait for a write to propagate before it is read back."""
        if self.settle_delay > 0:
            time.sleep(self.settle_delay)

    def guard_collection(self, collection_id: str, action: str) -> None:
        if is_protected_collection(collection_id):
            raise ProtectedEntityError(
                f"Cannot {action} built-in collection {collection_id}"
            )
