"""Raw API commands — direct HTTP access to any Administration Service path."""

from __future__ import annotations

import json
from typing import Annotated, Any, Optional

import typer
from rich.console import Console

from cmadmin.client.errors import error_handler
from cmadmin.commands._common import (
    PasswordOpt,
    ProfileOpt,
    ServerOpt,
    SkipCertOpt,
    UsernameOpt,
    make_service,
)
from cmadmin.output.formatter import output

app = typer.Typer(name="api", help="Raw Administration Service access.")
console = Console()

PathArg = Annotated[str, typer.Argument(help="Path under /AdminService/ (e.g. wmi/SMS_Site)")]
BodyOpt = Annotated[Optional[str], typer.Option("--data", "-d", help="JSON body")]
FilterOpt = Annotated[Optional[str], typer.Option("--filter", help="Raw OData $filter expression")]
JsonFormatOpt = Annotated[str, typer.Option("--format", "-f", help="Output format")]


def _parse_body(data: str | None) -> Any:
    if not data:
        return None
    try:
        return json.loads(data)
    except json.JSONDecodeError:
        console.print("[red]Invalid JSON body.[/]")
        raise typer.Exit(1)


def _send(
    method: str,
    path: str,
    body: Any,
    odata_filter: str | None,
    fmt: str,
    conn: tuple[str | None, str | None, str | None, str | None, bool | None],
) -> None:
    params = {"$filter": odata_filter} if odata_filter else None
    with make_service(*conn) as cm:
        data = cm.client.invoke(method, path, params=params, body=body)
        if data is None:
            console.print(f"[green]{method} {path} succeeded.[/]")
            return
        output(data, fmt)


@app.command("get")
@error_handler
def api_get(
    path: PathArg,
    odata_filter: FilterOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: JsonFormatOpt = "json",
) -> None:
    """Send a GET request."""
    _send("GET", path, None, odata_filter, fmt, (profile, server, username, password, skip_cert))


@app.command("post")
@error_handler
def api_post(
    path: PathArg,
    body: BodyOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: JsonFormatOpt = "json",
) -> None:
    """Send a POST request (e.g. to a wmi/Class('key')/AdminService.Method path)."""
    json_body = _parse_body(body)
    _send("POST", path, json_body, None, fmt, (profile, server, username, password, skip_cert))


@app.command("put")
@error_handler
def api_put(
    path: PathArg,
    body: BodyOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: JsonFormatOpt = "json",
) -> None:
    """Send a PUT request."""
    json_body = _parse_body(body)
    _send("PUT", path, json_body, None, fmt, (profile, server, username, password, skip_cert))


@app.command("delete")
@error_handler
def api_delete(
    path: PathArg,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: JsonFormatOpt = "json",
) -> None:
    """Send a DELETE request."""
    _send("DELETE", path, None, None, fmt, (profile, server, username, password, skip_cert))
