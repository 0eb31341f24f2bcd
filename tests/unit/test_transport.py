"""Tests for the Administration Service HTTP client."""

from __future__ import annotations

import json

import httpx
import pytest
import respx

from cmadmin.client.auth import BasicAuth, Credential, resolve_auth
from cmadmin.client.errors import (
    AuthenticationError,
    CMAdminError,
    CMConnectionError,
    HttpError,
)
from cmadmin.client.odata import ResourcePath
from cmadmin.client.transport import AdminServiceClient, extract_items, first_item
from cmadmin.models.connection import Connection

BASE = "https://cm01/AdminService"


@pytest.fixture
def conn() -> Connection:
    return Connection(server="cm01", skip_certificate_validation=True)


class TestAuth:
    def test_default_credential_sends_no_auth(self):
        assert resolve_auth(None) is None

    def test_explicit_credential(self):
        auth = resolve_auth(Credential(username="CORP\\admin", password="pw"))
        assert isinstance(auth, BasicAuth)

    def test_password_not_in_repr(self):
        assert "pw" not in repr(Credential(username="u", password="pw"))


class TestEnvelope:
    def test_value_envelope(self):
        assert extract_items({"value": [{"a": 1}, {"a": 2}]}) == [{"a": 1}, {"a": 2}]

    def test_bare_object(self):
        assert extract_items({"a": 1}) == [{"a": 1}]

    def test_bare_list(self):
        assert extract_items([{"a": 1}]) == [{"a": 1}]

    def test_none(self):
        assert extract_items(None) == []

    def test_first_item_of_envelope(self):
        assert first_item({"value": [{"a": 1}, {"a": 2}]}) == {"a": 1}

    def test_first_item_of_empty_envelope(self):
        assert first_item({"value": []}) is None

    def test_first_item_of_bare_object(self):
        assert first_item({"ThisSiteCode": "PS1"}) == {"ThisSiteCode": "PS1"}


class TestAdminServiceClient:
    def test_requires_connection(self):
        with pytest.raises(CMConnectionError, match="Connect first"):
            AdminServiceClient(None)

    def test_base_url(self, conn):
        with AdminServiceClient(conn) as client:
            assert client.base_url == "https://cm01/AdminService/"

    @respx.mock
    def test_get_items_unwraps_value(self, conn):
        respx.get(f"{BASE}/wmi/SMS_Collection").mock(
            return_value=httpx.Response(200, json={"value": [{"CollectionID": "SMS00001"}]})
        )
        with AdminServiceClient(conn) as client:
            assert client.get_items(ResourcePath("SMS_Collection")) == [{"CollectionID": "SMS00001"}]

    @respx.mock
    def test_get_object_bare(self, conn):
        respx.get(f"{BASE}/wmi/SMS_CollectionSettings('PS100010')").mock(
            return_value=httpx.Response(200, json={"CollectionID": "PS100010"})
        )
        with AdminServiceClient(conn) as client:
            data = client.get_object(ResourcePath("SMS_CollectionSettings", "PS100010"))
        assert data == {"CollectionID": "PS100010"}

    @respx.mock
    def test_filter_sent_as_query(self, conn):
        route = respx.get(f"{BASE}/wmi/SMS_R_System").mock(
            return_value=httpx.Response(200, json={"value": []})
        )
        with AdminServiceClient(conn) as client:
            client.get_items("wmi/SMS_R_System", params={"$filter": "Name eq 'PC1'"})
        assert route.calls.last.request.url.params["$filter"] == "Name eq 'PC1'"

    @respx.mock
    def test_empty_post_still_has_content_type(self, conn):
        route = respx.post(f"{BASE}/wmi/SMS_Collection('PS100010')/AdminService.RequestRefresh").mock(
            return_value=httpx.Response(200, json={"ReturnValue": 0})
        )
        with AdminServiceClient(conn) as client:
            client.post(ResourcePath("SMS_Collection", "PS100010", method="RequestRefresh"))
        request = route.calls.last.request
        assert request.headers["content-type"] == "application/json"
        assert request.content == b""

    @respx.mock
    def test_json_body(self, conn):
        route = respx.put(f"{BASE}/wmi/SMS_Collection('PS100010')").mock(
            return_value=httpx.Response(200, json={})
        )
        with AdminServiceClient(conn) as client:
            client.put("wmi/SMS_Collection('PS100010')", json={"Comment": "x"})
        assert json.loads(route.calls.last.request.content) == {"Comment": "x"}

    @respx.mock
    def test_invoke_empty_body_returns_none(self, conn):
        respx.delete(f"{BASE}/wmi/SMS_Collection('PS100010')").mock(
            return_value=httpx.Response(204)
        )
        with AdminServiceClient(conn) as client:
            assert client.invoke("DELETE", "wmi/SMS_Collection('PS100010')") is None

    @respx.mock
    def test_not_found_is_distinguishable(self, conn):
        respx.get(f"{BASE}/wmi/SMS_MachineSettings(1)").mock(
            return_value=httpx.Response(404, json={"error": {"message": "Not found"}})
        )
        with AdminServiceClient(conn) as client, pytest.raises(HttpError) as exc_info:
            client.get("wmi/SMS_MachineSettings(1)")
        assert exc_info.value.is_not_found
        assert exc_info.value.message == "Not found"

    @respx.mock
    def test_auth_error(self, conn):
        respx.get(f"{BASE}/wmi/SMS_Site").mock(
            return_value=httpx.Response(401, text="Unauthorized")
        )
        with AdminServiceClient(conn) as client, pytest.raises(AuthenticationError) as exc_info:
            client.get("wmi/SMS_Site")
        assert exc_info.value.status_code == 401

    @respx.mock
    def test_server_error(self, conn):
        respx.get(f"{BASE}/wmi/SMS_Site").mock(
            return_value=httpx.Response(500, json={"message": "WMI failure"})
        )
        with AdminServiceClient(conn) as client, pytest.raises(HttpError, match="WMI failure"):
            client.get("wmi/SMS_Site")

    @respx.mock
    def test_connect_error(self, conn):
        respx.get(f"{BASE}/wmi/SMS_Site").mock(side_effect=httpx.ConnectError("refused"))
        with AdminServiceClient(conn) as client, pytest.raises(CMConnectionError, match="cm01"):
            client.get("wmi/SMS_Site")

    @respx.mock
    def test_timeout(self, conn):
        respx.get(f"{BASE}/wmi/SMS_Site").mock(side_effect=httpx.ReadTimeout("slow"))
        with AdminServiceClient(conn) as client, pytest.raises(CMConnectionError, match="timed out"):
            client.get("wmi/SMS_Site")

    @respx.mock
    def test_malformed_json(self, conn):
        respx.get(f"{BASE}/wmi/SMS_Site").mock(
            return_value=httpx.Response(200, content=b"<html>", headers={"content-type": "text/html"})
        )
        with AdminServiceClient(conn) as client, pytest.raises(CMAdminError, match="Malformed"):
            client.invoke("GET", "wmi/SMS_Site")
