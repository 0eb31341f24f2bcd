"""The injectable client object that threads one connection through every operation."""

from __future__ import annotations

from typing import Any

import httpx

from cmadmin.client.transport import AdminServiceClient
from cmadmin.models.connection import Connection
from cmadmin.operations import (
    CollectionOperations,
    DeviceOperations,
    RuleOperations,
    ScriptOperations,
    VariableOperations,
)
from cmadmin.resolver import Resolver


class AdminService:
    """Entry point for all entity operations against one connection.

    >>> conn = connect("cm01.corp.local")
    >>> with AdminService(conn) as cm:
    ...     cm.variables.new(cm.variables.owner(collection="Test Collection"), "Role", "web")
    """

    def __init__(
        self,
        connection: Connection | None,
        *,
        settle_delay: float = 2.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.connection = connection
        self.client = AdminServiceClient(connection, transport=transport)
        self.resolver = Resolver(self.client)
        kwargs = {"settle_delay": settle_delay}
        self.collections = CollectionOperations(self.client, self.resolver, **kwargs)
        self.devices = DeviceOperations(self.client, self.resolver, **kwargs)
        self.variables = VariableOperations(self.client, self.resolver, **kwargs)
        self.rules = RuleOperations(self.client, self.resolver, **kwargs)
        self.scripts = ScriptOperations(self.client, self.resolver, **kwargs)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> AdminService:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
