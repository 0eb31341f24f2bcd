"""Connecting to a site and holding the current connection."""

from __future__ import annotations

import logging

import httpx

from cmadmin.client.auth import Credential
from cmadmin.client.errors import CMAdminError, CMConnectionError
from cmadmin.client.resources import SITE_IDENTIFICATION
from cmadmin.client.transport import AdminServiceClient
from cmadmin.models.connection import Connection

log = logging.getLogger(__name__)


def connect(
    server: str,
    credential: Credential | None = None,
    skip_certificate_validation: bool = False,
    *,
    timeout: float = 30.0,
    transport: httpx.BaseTransport | None = None,
) -> Connection:
    """Validate reachability of *server* and return a connection carrying its site code.

    Raises:
        CMConnectionError: the server could not be reached, rejected the
            credential, or did not report a site code.
    """
    candidate = Connection(
        server=server,
        credential=credential,
        skip_certificate_validation=skip_certificate_validation,
        timeout=timeout,
    )
    try:
        with AdminServiceClient(candidate, transport=transport) as client:
            info = client.get_object(SITE_IDENTIFICATION.path())
    except CMConnectionError:
        raise
    except CMAdminError as exc:
        raise CMConnectionError(
            f"Cannot connect to {candidate.server}: {exc}"
        ) from exc
    site_code = (info or {}).get(SITE_IDENTIFICATION.key_field)
    if not site_code:
        raise CMConnectionError(
            f"{candidate.server} did not report a site code"
        )
    log.info("Connected to %s (site %s)", candidate.server, site_code)
    return candidate.model_copy(update={"site_code": site_code})


class SessionState:
    """Holds at most one current connection; last successful connect wins."""

    def __init__(self) -> None:
        self._current: Connection | None = None

    @property
    def current(self) -> Connection | None:
        return self._current

    def connect(
        self,
        server: str,
        credential: Credential | None = None,
        skip_certificate_validation: bool = False,
        **kwargs: object,
    ) -> Connection:
        """Connect and replace the current connection; a failure leaves it untouched."""
        connection = connect(
            server, credential, skip_certificate_validation, **kwargs,  # type: ignore[arg-type]
        )
        self._current = connection
        return connection

    def require(self) -> Connection:
        if self._current is None:
            raise CMConnectionError(
                "Not connected to an Administration Service. Connect first."
            )
        return self._current


default_session = SessionState()
