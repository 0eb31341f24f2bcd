"""Shared test fixtures."""

from __future__ import annotations

import base64
import copy
import json
import re
from pathlib import Path
from typing import Any

import httpx
import pytest
import respx

from cmadmin.config.manager import ConfigManager
from cmadmin.config.models import ServerProfile
from cmadmin.models.connection import Connection
from cmadmin.service import AdminService

SERVER = "cm01.corp.local"
BASE = f"https://{SERVER}/AdminService"

PARAMS_XML = (
    '<?xml version="1.0" encoding="utf-16"?>'
    '<ScriptParameters SchemaVersion="1">'
    '<ScriptParameter Name="ServiceName" FriendlyName="" Type="System.String" '
    'Description="Service to restart" IsRequired="true" IsHidden="false"/>'
    '<ScriptParameter Name="Delay" FriendlyName="" Type="System.Int32" '
    'Description="" IsRequired="false" IsHidden="false" DefaultValue="5"/>'
    "</ScriptParameters>"
)
PARAMS_DEFINITION = base64.b64encode(PARAMS_XML.encode("utf-16")).decode("ascii")

_PATH = re.compile(
    r"^/AdminService/wmi/(?P<cls>\w+)"
    r"(?:\((?P<key>[^)]*)\))?"
    r"(?:/AdminService\.(?P<method>\w+))?$"
)
_FILTER = re.compile(r"^(?P<field>\w+) eq (?:'(?P<text>(?:[^']|'')*)'|(?P<num>-?\d+))$")

_KEYS = {
    "SMS_Collection": "CollectionID",
    "SMS_R_System": "ResourceId",
    "SMS_CollectionSettings": "CollectionID",
    "SMS_MachineSettings": "ResourceID",
    "SMS_Scripts": "ScriptGuid",
    "SMS_ScriptsExecutionSummary": "ClientOperationId",
    "SMS_ScriptsExecutionStatus": "ClientOperationId",
    "SMS_FullCollectionMembership": "ResourceID",
    "SMS_Identification": "ThisSiteCode",
}

_RULE_TARGETS = (
    "ResourceID", "QueryExpression", "IncludeCollectionID", "ExcludeCollectionID",
)


def _collection(cid: str, name: str, limit: str | None = "SMS00001", **extra: Any) -> dict:
    return {
        "CollectionID": cid,
        "Name": name,
        "CollectionType": 2,
        "LimitToCollectionID": limit,
        "MemberCount": 0,
        "CollectionRules": [],
        **extra,
    }


class FakeSite:
    """An in-memory Administration Service answering respx-routed requests."""

    def __init__(self) -> None:
        self.tables: dict[str, dict[Any, dict[str, Any]]] = {cls: {} for cls in _KEYS}
        self.requests: list[httpx.Request] = []
        self.next_collection = 20
        self.next_operation = 16777300
        self.seed()

    def seed(self) -> None:
        for row in (
            _collection("SMS00001", "All Systems", limit=None),
            _collection("PS100010", "Test Collection"),
            _collection("PS100011", "Dup"),
            _collection("PS100012", "Dup"),
            _collection("PS100013", "Servers"),
        ):
            self.add("SMS_Collection", row)
        for rid, name in ((1001, "WKS001"), (1002, "WKS002"), (1003, "DUPPC"), (1004, "DUPPC")):
            self.add("SMS_R_System", {"ResourceId": rid, "Name": name, "Client": 1})
        self.add("SMS_CollectionSettings", {
            "CollectionID": "PS100013",
            "LocaleID": 1033,
            "CollectionVariables": [
                {"Name": "Role", "Value": "web", "IsMasked": False},
                {"Name": "TempA", "Value": "1", "IsMasked": False},
                {"Name": "TempB", "Value": "2", "IsMasked": False},
                {"Name": "Keep", "Value": "k", "IsMasked": False},
            ],
        })
        self.add("SMS_Scripts", {
            "ScriptGuid": "7F2C1E4B-0000-4000-8000-000000000001",
            "ScriptName": "Restart Service",
            "ScriptVersion": "2",
            "ScriptHash": "AB12CD34",
            "ScriptHashAlgorithm": "SHA256",
            "ApprovalState": 3,
            "ParamsDefinition": PARAMS_DEFINITION,
            "Author": "CORP\\admin",
        })
        self.add("SMS_Scripts", {
            "ScriptGuid": "7F2C1E4B-0000-4000-8000-000000000002",
            "ScriptName": "Get Uptime",
            "ScriptVersion": "1",
            "ScriptHash": "EF56",
            "ApprovalState": 3,
            "ParamsDefinition": "",
        })
        self.add("SMS_Scripts", {
            "ScriptGuid": "7F2C1E4B-0000-4000-8000-000000000003",
            "ScriptName": "Draft",
            "ScriptVersion": "1",
            "ScriptHash": "0000",
            "ApprovalState": 1,
        })
        self.add("SMS_Identification", {"ThisSiteCode": "PS1", "SiteName": "Primary"})
        self.add("SMS_FullCollectionMembership", {
            "ResourceID": 1001, "CollectionID": "PS100010", "Name": "WKS001", "IsDirect": True,
        })

    def add(self, cls: str, row: dict[str, Any]) -> None:
        self.tables[cls][row[_KEYS[cls]]] = row

    def get(self, cls: str, key: Any) -> dict[str, Any] | None:
        return self.tables[cls].get(key)

    @property
    def writes(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.method != "GET"]

    def bodies(self, method: str, suffix: str) -> list[Any]:
        return [
            json.loads(r.content) if r.content else None
            for r in self.requests
            if r.method == method and r.url.path.endswith(suffix)
        ]

    # -- request handling -------------------------------------------------

    def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        match = _PATH.match(request.url.path)
        if not match:
            return httpx.Response(404, json={"error": {"message": "No route"}})
        cls = match["cls"]
        if cls not in self.tables:
            self.tables[cls] = {}
        key = self._key(match["key"])
        body = json.loads(request.content) if request.content else None
        if match["method"]:
            return self._method(request, cls, key, match["method"], body)
        if request.method == "GET":
            if key is None:
                return self._list(cls, request.url.params.get("$filter"))
            row = self.tables[cls].get(key)
            if row is None:
                return httpx.Response(404, json={"error": {"message": f"{cls} {key} not found"}})
            if cls == "SMS_Collection":
                return httpx.Response(200, json={"value": [copy.deepcopy(row)]})
            return httpx.Response(200, json=copy.deepcopy(row))
        if request.method == "POST" and key is None:
            return self._create(cls, body)
        if request.method == "PUT" and key is not None:
            row = self.tables[cls].get(key)
            if row is None:
                return httpx.Response(404, json={"error": {"message": "not found"}})
            if cls.endswith("Settings"):
                self.tables[cls][key] = {**body, _KEYS[cls]: key}
            else:
                row.update(body)
            return httpx.Response(200, json=copy.deepcopy(self.tables[cls][key]))
        if request.method == "DELETE" and key is not None:
            if self.tables[cls].pop(key, None) is None:
                return httpx.Response(404, json={"error": {"message": "not found"}})
            return httpx.Response(204)
        return httpx.Response(405, json={"error": {"message": "Method not allowed"}})

    @staticmethod
    def _key(raw: str | None) -> Any:
        if raw is None:
            return None
        if raw.startswith("'"):
            return raw[1:-1].replace("''", "'")
        return int(raw)

    def _list(self, cls: str, odata_filter: str | None) -> httpx.Response:
        rows = list(self.tables[cls].values())
        if odata_filter:
            m = _FILTER.match(odata_filter)
            assert m, f"fake cannot evaluate filter {odata_filter!r}"
            if m["num"] is not None:
                wanted: Any = int(m["num"])
                rows = [r for r in rows if r.get(m["field"]) == wanted]
            else:
                text = m["text"].replace("''", "'").lower()
                rows = [r for r in rows if str(r.get(m["field"], "")).lower() == text]
        return httpx.Response(200, json={
            "@odata.context": f"{BASE}/$metadata#{cls}",
            "value": copy.deepcopy(rows),
        })

    def _create(self, cls: str, body: dict[str, Any]) -> httpx.Response:
        if cls == "SMS_Collection":
            cid = f"PS1000{self.next_collection}"
            self.next_collection += 1
            row = _collection(cid, body["Name"], body["LimitToCollectionID"])
            row.update(body)
            self.add(cls, row)
            return httpx.Response(201, json=copy.deepcopy(row))
        key = body[_KEYS[cls]]
        self.tables[cls][key] = dict(body)
        return httpx.Response(201, json=copy.deepcopy(body))

    def _method(
        self, request: httpx.Request, cls: str, key: Any, method: str, body: Any,
    ) -> httpx.Response:
        if request.headers.get("content-type") != "application/json":
            return httpx.Response(415, json={"error": {"message": "Unsupported media type"}})
        if method == "InitiateClientOperationEx":
            op = self.next_operation
            self.next_operation += 1
            return httpx.Response(200, json={"ReturnValue": 0, "OperationID": op})
        row = self.tables[cls].get(key)
        if row is None:
            return httpx.Response(404, json={"error": {"message": "not found"}})
        if method == "RequestRefresh":
            return httpx.Response(200, json={"ReturnValue": 0})
        rule = body["collectionRule"]
        rules = row["CollectionRules"]
        same = [
            r for r in rules
            if r["@odata.type"] == rule["@odata.type"]
            and any(f in r and r[f] == rule.get(f) for f in _RULE_TARGETS)
        ]
        if method == "AddMembershipRule":
            if same:
                return httpx.Response(409, json={"error": {"message": "Rule already exists"}})
            rules.append(rule)
            return httpx.Response(200, json={"ReturnValue": 0})
        if method == "DeleteMembershipRule":
            if not same:
                return httpx.Response(404, json={"error": {"message": "Rule not found"}})
            rules.remove(same[0])
            return httpx.Response(200, json={"ReturnValue": 0})
        return httpx.Response(400, json={"error": {"message": f"Unknown method {method}"}})


@pytest.fixture
def connection() -> Connection:
    return Connection(server=SERVER, site_code="PS1")


@pytest.fixture
def site():
    """A fake site serving every request to the test server."""
    fake = FakeSite()
    with respx.mock(assert_all_called=False) as router:
        router.route(host=SERVER).mock(side_effect=fake.handle)
        yield fake


@pytest.fixture
def cm(site: FakeSite, connection: Connection):
    with AdminService(connection, settle_delay=0) as service:
        yield service


@pytest.fixture
def tmp_config(tmp_path: Path) -> Path:
    """Return a temporary config file path."""
    return tmp_path / "config.toml"


@pytest.fixture
def config_manager(tmp_config: Path) -> ConfigManager:
    """Return a ConfigManager pointed at a temp config file."""
    return ConfigManager(config_path=tmp_config)


@pytest.fixture
def sample_profile() -> ServerProfile:
    """Return a sample server profile for testing."""
    return ServerProfile(
        name="lab",
        server=SERVER,
        username="CORP\\svc_cm",
        password="hunter2",
    )


@pytest.fixture
def params_definition() -> str:
    """Base64 UTF-16 parameter XML as stored on a script."""
    return PARAMS_DEFINITION


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's own CMADMIN_* settings out of tests."""
    for var in ("CMADMIN_SERVER", "CMADMIN_USERNAME", "CMADMIN_PASSWORD", "CMADMIN_PROFILE"):
        monkeypatch.delenv(var, raising=False)
