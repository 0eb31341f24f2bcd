"""Shared helpers for CLI commands — service factory, options, batch reporting."""

from __future__ import annotations

from typing import Annotated, Any

import typer
from rich.console import Console

from cmadmin.client.errors import err_console
from cmadmin.config.manager import ConfigManager
from cmadmin.operations.base import BatchResult
from cmadmin.service import AdminService
from cmadmin.session import connect

_console = Console()

# Shared Typer option type aliases
ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Server profile"),
]
ServerOpt = Annotated[
    str | None,
    typer.Option("--server", help="SMS Provider host override"),
]
UsernameOpt = Annotated[
    str | None,
    typer.Option("--username", help="Username override"),
]
PasswordOpt = Annotated[
    str | None,
    typer.Option("--password", help="Password override"),
]
SkipCertOpt = Annotated[
    bool | None,
    typer.Option("--skip-cert-check/--cert-check", help="Skip TLS certificate validation"),
]
FormatOpt = Annotated[
    str,
    typer.Option("--format", "-f", help="Output format (table, json, yaml, csv)"),
]
PassThruOpt = Annotated[
    bool,
    typer.Option("--pass-thru", help="Read back and show the result"),
]


def make_service(
    profile: str | None,
    server: str | None,
    username: str | None,
    password: str | None,
    skip_cert: bool | None = None,
) -> AdminService:
    """Connect using CLI options, env vars, or config profile and return a service."""
    mgr = ConfigManager()
    settings = mgr.resolve_server(
        profile_name=profile,
        server=server,
        username=username,
        password=password,
        skip_certificate_validation=skip_cert,
    )
    connection = connect(
        settings.server,
        settings.credential,
        settings.skip_certificate_validation,
        timeout=settings.timeout,
    )
    return AdminService(connection, settle_delay=settings.settle_delay)


def report_batch(result: BatchResult[Any, Any], verb: str) -> None:
    """Print per-item failures; exit non-zero if any item failed."""
    for item, exc in result.failed:
        err_console.print(f"[red]Failed to {verb} {item}:[/] {exc}")
    if result.succeeded:
        _console.print(f"[green]{verb.capitalize()}: {len(result.succeeded)} item(s).[/]")
    if result.failed:
        raise typer.Exit(1)


def parse_assignments(values: list[str] | None) -> dict[str, str]:
    """Parse repeated ``NAME=VALUE`` options into a dict."""
    parsed: dict[str, str] = {}
    for item in values or []:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            _console.print(f"[red]Invalid parameter '{item}'. Use NAME=VALUE.[/]")
            raise typer.Exit(1)
        parsed[name.strip()] = value
    return parsed
