"""Script commands — list, run, status, results."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from cmadmin.client.errors import error_handler
from cmadmin.commands._common import (
    FormatOpt,
    PasswordOpt,
    ProfileOpt,
    ServerOpt,
    SkipCertOpt,
    UsernameOpt,
    make_service,
    parse_assignments,
)
from cmadmin.output.formatter import output

app = typer.Typer(name="script", help="Run scripts and check their results.")
console = Console()


@app.command("list")
@error_handler
def list_scripts(
    name: Annotated[str | None, typer.Argument(help="Script name or wildcard")] = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List scripts."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        items = cm.scripts.get(name=name)
        rows = [
            [s.script_guid, s.name, s.script_version, s.approval_state, s.author]
            for s in items
        ]
        output(items, fmt, columns=["GUID", "Name", "Version", "Approval", "Author"],
               rows=rows, title="Scripts")


@app.command()
@error_handler
def run(
    script: Annotated[str | None, typer.Argument(help="Script name")] = None,
    script_id: Annotated[str | None, typer.Option("--script-id", help="Script GUID")] = None,
    collection: Annotated[
        str | None, typer.Option("--collection", "-c", help="Target collection name"),
    ] = None,
    collection_id: Annotated[
        str | None, typer.Option("--collection-id", help="Target collection ID"),
    ] = None,
    devices: Annotated[
        list[str] | None, typer.Option("--device", "-d", help="Target device name (repeatable)"),
    ] = None,
    device_ids: Annotated[
        list[int] | None, typer.Option("--device-id", help="Target resource ID (repeatable)"),
    ] = None,
    params: Annotated[
        list[str] | None, typer.Option("--param", help="Script parameter NAME=VALUE (repeatable)"),
    ] = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Run an approved script on a collection or on devices."""
    parameters = parse_assignments(params)
    with make_service(profile, server, username, password, skip_cert) as cm:
        operation = cm.scripts.invoke(
            script, script_id,
            collection=collection, collection_id=collection_id,
            devices=devices or None, device_ids=device_ids or None,
            parameters=parameters,
        )
        console.print(
            f"[green]Script started as operation {operation.operation_id}.[/] "
            f"Check progress with 'cmadmin script status {operation.operation_id}'."
        )
        if fmt != "table":
            output(operation, fmt)


@app.command()
@error_handler
def status(
    operation_id: Annotated[int, typer.Argument(help="Client operation ID")],
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show the aggregate status of a script run."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        result = cm.scripts.status(operation_id)
        data = result.model_dump(exclude={"attributes"})
        output(data if fmt == "table" else result, fmt, title=f"Operation {operation_id}")


@app.command()
@error_handler
def results(
    operation_id: Annotated[int, typer.Argument(help="Client operation ID")],
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show per-device output of a script run."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        items = cm.scripts.results(operation_id)
        rows = [[r.resource_id, r.device_name, r.exit_code, r.output] for r in items]
        output(items, fmt, columns=["Resource ID", "Device", "Exit Code", "Output"],
               rows=rows, title=f"Operation {operation_id} Results")
