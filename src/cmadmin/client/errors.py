"""Typed exceptions and error handling decorator."""

from __future__ import annotations

import functools
from typing import Any, Callable, TypeVar

from rich.console import Console

F = TypeVar("F", bound=Callable[..., Any])

err_console = Console(stderr=True)


class CMAdminError(Exception):
    """Base exception for cmadmin."""

    exit_code: int = 1


class CMConnectionError(CMAdminError):
    """No active connection, or the Administration Service is unreachable."""

    exit_code = 2


class HttpError(CMAdminError):
    """Non-2xx response from the Administration Service."""

    exit_code = 3

    def __init__(self, status_code: int, message: str = "") -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Server returned {status_code}: {message}")

    @property
    def is_not_found(self) -> bool:
        return self.status_code == 404


class AuthenticationError(HttpError):
    """Authentication failed (401/403)."""


class NotFoundError(CMAdminError):
    """A required lookup matched nothing."""

    exit_code = 4

    def __init__(self, resource_class: str, identifier: Any) -> None:
        self.resource_class = resource_class
        self.identifier = identifier
        super().__init__(f"No {resource_class} found matching '{identifier}'")


class AmbiguousNameError(CMAdminError):
    """A name lookup matched more than one entity."""

    exit_code = 5

    def __init__(self, resource_class: str, identifier: Any, count: int) -> None:
        self.resource_class = resource_class
        self.identifier = identifier
        self.count = count
        super().__init__(
            f"{count} {resource_class} objects are named '{identifier}'; use the ID instead"
        )


class AlreadyExistsError(CMAdminError):
    """Uniqueness violation on create."""

    exit_code = 6


class ProtectedEntityError(CMAdminError):
    """Attempted mutation of a built-in object."""

    exit_code = 7


class ValidationError(CMAdminError):
    """Invalid or conflicting parameters, detected before any request."""

    exit_code = 8

    def __init__(self, detail: str = "") -> None:
        super().__init__(detail or "Validation error")


class ConfigurationError(CMAdminError):
    """No usable server configuration."""

    exit_code = 9


class ScriptNotRunnableError(CMAdminError):
    """The script exists but is unapproved or lacks its version or hash."""

    exit_code = 10


def error_handler(func: F) -> F:
    """Decorator that catches CMAdminError and prints user-friendly messages."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except CMAdminError as exc:
            err_console.print(f"[bold red]Error:[/] {exc}")
            raise SystemExit(exc.exit_code)
        except ValueError as exc:
            err_console.print(f"[bold red]Error:[/] {exc}")
            raise SystemExit(1)

    return wrapper  # type: ignore[return-value]
