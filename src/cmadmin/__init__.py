"""cmadmin — client library and CLI for the Configuration Manager Administration Service."""

__version__ = "0.1.0"

from cmadmin.client.auth import Credential  # noqa: E402
from cmadmin.client.errors import (  # noqa: E402
    AlreadyExistsError,
    AmbiguousNameError,
    AuthenticationError,
    CMAdminError,
    CMConnectionError,
    HttpError,
    NotFoundError,
    ProtectedEntityError,
    ValidationError,
)
from cmadmin.models.connection import Connection  # noqa: E402
from cmadmin.service import AdminService  # noqa: E402
from cmadmin.session import SessionState, connect  # noqa: E402

__all__ = [
    "AdminService",
    "AlreadyExistsError",
    "AmbiguousNameError",
    "AuthenticationError",
    "CMAdminError",
    "CMConnectionError",
    "Connection",
    "Credential",
    "HttpError",
    "NotFoundError",
    "ProtectedEntityError",
    "SessionState",
    "ValidationError",
    "__version__",
    "connect",
]
