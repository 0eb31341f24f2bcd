"""Device commands — list, show."""

from __future__ import annotations

from typing import Annotated

import typer

from cmadmin.client.errors import error_handler
from cmadmin.commands._common import (
    FormatOpt,
    PasswordOpt,
    ProfileOpt,
    ServerOpt,
    SkipCertOpt,
    UsernameOpt,
    make_service,
)
from cmadmin.output.formatter import output

app = typer.Typer(name="device", help="Look up devices.")

NameArg = Annotated[str | None, typer.Argument(help="Device name (wildcards allowed for list)")]
IdOpt = Annotated[int | None, typer.Option("--id", help="Resource ID")]


@app.command("list")
@error_handler
def list_devices(
    name: NameArg = None,
    resource_id: IdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List devices, optionally by name, wildcard, or resource ID."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        items = cm.devices.get(name=name, key=resource_id)
        rows = [[d.resource_id, d.name, d.client, d.operating_system] for d in items]
        output(items, fmt, columns=["Resource ID", "Name", "Client", "OS"], rows=rows,
               title="Devices")


@app.command()
@error_handler
def show(
    name: NameArg = None,
    resource_id: IdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show one device's properties."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        device = cm.devices.get_one(name=name, key=resource_id)
        output(device.to_dict(), fmt, title=f"Device: {device.name}")
