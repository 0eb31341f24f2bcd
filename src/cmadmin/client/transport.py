"""Administration Service HTTP client."""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from cmadmin.client.auth import resolve_auth
from cmadmin.client.errors import (
    AuthenticationError,
    CMAdminError,
    CMConnectionError,
    HttpError,
)
from cmadmin.client.odata import ResourcePath
from cmadmin.models.connection import Connection

log = logging.getLogger(__name__)

_WRITE_METHODS = frozenset({"POST", "PUT", "PATCH"})


class AdminServiceClient:
    """Synchronous HTTP client for ``https://{server}/AdminService/``."""

    def __init__(
        self,
        connection: Connection | None,
        *,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if connection is None or not connection.server:
            raise CMConnectionError(
                "Not connected to an Administration Service. Connect first."
            )
        self.connection = connection
        self.base_url = connection.base_url
        if connection.skip_certificate_validation:
            log.warning("TLS certificate validation is disabled for %s", connection.server)
        self._client = httpx.Client(
            base_url=self.base_url,
            auth=resolve_auth(connection.credential),
            verify=not connection.skip_certificate_validation,
            timeout=connection.timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> AdminServiceClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def _handle_response(self, response: httpx.Response) -> httpx.Response:
        if response.is_success:
            return response
        status = response.status_code
        detail = _error_detail(response)
        if status in (401, 403):
            raise AuthenticationError(
                status, f"Access denied by {self.connection.server}: {detail}"
            )
        raise HttpError(status, detail)

    def request(
        self,
        method: str,
        path: str | ResourcePath,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        method = method.upper()
        url = str(path).lstrip("/")
        kwargs: dict[str, Any] = {"params": params}
        if json is not None:
            kwargs["json"] = json
        elif method in _WRITE_METHODS:
            # Parameterless method calls are rejected without a content type.
            kwargs["content"] = b""
            kwargs["headers"] = {"Content-Type": "application/json"}
        try:
            response = self._client.request(method, url, **kwargs)
        except httpx.ConnectError as exc:
            raise CMConnectionError(
                f"Cannot connect to {self.connection.server}: {exc}"
            ) from exc
        except httpx.TimeoutException as exc:
            raise CMConnectionError(
                f"Request to {self.connection.server} timed out: {exc}"
            ) from exc
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise CMConnectionError(
                f"Invalid URL for {self.connection.server}: {exc}"
            ) from exc
        log.debug("%s %s -> %s", method, response.request.url, response.status_code)
        return self._handle_response(response)

    def invoke(
        self,
        method: str,
        path: str | ResourcePath,
        *,
        params: dict[str, str] | None = None,
        body: Any = None,
    ) -> Any:
        """Send a request and return the parsed JSON body (``None`` when empty)."""
        resp = self.request(method, path, params=params, json=body)
        if not resp.content:
            return None
        try:
            return resp.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise CMAdminError(
                f"Malformed JSON in response from {resp.request.url}"
            ) from exc

    def get(self, path: str | ResourcePath, **kwargs: Any) -> httpx.Response:
        return self.request("GET", path, **kwargs)

    def post(self, path: str | ResourcePath, **kwargs: Any) -> httpx.Response:
        return self.request("POST", path, **kwargs)

    def put(self, path: str | ResourcePath, **kwargs: Any) -> httpx.Response:
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str | ResourcePath, **kwargs: Any) -> httpx.Response:
        return self.request("DELETE", path, **kwargs)

    def get_items(
        self,
        path: str | ResourcePath,
        *,
        params: dict[str, str] | None = None,
    ) -> list[dict[str, Any]]:
        """GET a list endpoint and return its items, whatever the envelope."""
        return extract_items(self.invoke("GET", path, params=params))

    def get_object(
        self,
        path: str | ResourcePath,
        *,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any] | None:
        """GET a single object, unwrapping a ``value`` envelope if present."""
        return first_item(self.invoke("GET", path, params=params))


def extract_items(data: Any) -> list[dict[str, Any]]:
    """Normalize ``{"value": [...]}``, a bare list, or a bare object to a list."""
    if data is None:
        return []
    if isinstance(data, list):
        return list(data)
    if isinstance(data, dict):
        if "value" in data:
            value = data["value"]
            if isinstance(value, list):
                return list(value)
            return [value] if isinstance(value, dict) else []
        return [data]
    return []


def first_item(data: Any) -> dict[str, Any] | None:
    """The payload, or the first element of the payload list."""
    items = extract_items(data)
    return items[0] if items else None


def _error_detail(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return response.text or response.reason_phrase
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
        if payload.get("message"):
            return str(payload["message"])
        if payload.get("Message"):
            return str(payload["Message"])
    return response.text or response.reason_phrase
