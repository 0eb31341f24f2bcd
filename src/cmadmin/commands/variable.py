"""Variable commands — list, new, set, remove collection or device variables."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console

from cmadmin.client.errors import ValidationError, error_handler
from cmadmin.commands._common import (
    FormatOpt,
    PassThruOpt,
    PasswordOpt,
    ProfileOpt,
    ServerOpt,
    SkipCertOpt,
    UsernameOpt,
    make_service,
)
from cmadmin.models.variable import Variable
from cmadmin.operations.variables import VariableOperations, VariableOwner
from cmadmin.output.formatter import output
from cmadmin.output.tables import MASK

app = typer.Typer(name="variable", help="Manage collection and device variables.")
console = Console()

CollectionOpt = Annotated[str | None, typer.Option("--collection", "-c", help="Collection name")]
CollectionIdOpt = Annotated[str | None, typer.Option("--collection-id", help="Collection ID")]
DeviceOpt = Annotated[str | None, typer.Option("--device", "-d", help="Device name")]
DeviceIdOpt = Annotated[int | None, typer.Option("--device-id", help="Device resource ID")]


def _check_owner(*given: object) -> None:
    if sum(v is not None for v in given) != 1:
        raise ValidationError(
            "Specify exactly one of --collection, --collection-id, --device or --device-id"
        )


def _owner(
    variables: VariableOperations,
    collection: str | None,
    collection_id: str | None,
    device: str | None,
    device_id: int | None,
) -> VariableOwner:
    return variables.owner(
        collection=collection, collection_id=collection_id,
        device=device, device_id=device_id,
    )


def _show(items: list[Variable], fmt: str, title: str) -> None:
    # Masked values are hidden on screen only; structured formats carry the data.
    rows = [[v.name, MASK if v.masked else v.value, v.masked] for v in items]
    output(items, fmt, columns=["Name", "Value", "Masked"], rows=rows, title=title)


@app.command("list")
@error_handler
def list_variables(
    name: Annotated[str | None, typer.Argument(help="Variable name or wildcard")] = None,
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    device: DeviceOpt = None,
    device_id: DeviceIdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List variables of a collection or device."""
    _check_owner(collection, collection_id, device, device_id)
    with make_service(profile, server, username, password, skip_cert) as cm:
        owner = _owner(cm.variables, collection, collection_id, device, device_id)
        _show(cm.variables.get(owner, name), fmt, f"Variables: {owner}")


@app.command()
@error_handler
def new(
    name: Annotated[str, typer.Argument(help="Variable name")],
    value: Annotated[str, typer.Argument(help="Variable value")],
    masked: Annotated[bool, typer.Option("--masked", help="Mask the value")] = False,
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    device: DeviceOpt = None,
    device_id: DeviceIdOpt = None,
    pass_thru: PassThruOpt = False,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Create a variable; fails if it already exists."""
    _check_owner(collection, collection_id, device, device_id)
    with make_service(profile, server, username, password, skip_cert) as cm:
        owner = _owner(cm.variables, collection, collection_id, device, device_id)
        created = cm.variables.new(owner, name, value, masked, pass_thru=pass_thru)
        console.print(f"[green]Variable '{name}' added to {owner}.[/]")
        if created is not None:
            _show([created], fmt, f"Variables: {owner}")


@app.command("set")
@error_handler
def set_variable(
    name: Annotated[str, typer.Argument(help="Variable name")],
    value: Annotated[str | None, typer.Option("--value", help="New value")] = None,
    masked: Annotated[
        bool | None, typer.Option("--masked/--unmasked", help="Change the mask flag"),
    ] = None,
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    device: DeviceOpt = None,
    device_id: DeviceIdOpt = None,
    pass_thru: PassThruOpt = False,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Change an existing variable."""
    _check_owner(collection, collection_id, device, device_id)
    with make_service(profile, server, username, password, skip_cert) as cm:
        owner = _owner(cm.variables, collection, collection_id, device, device_id)
        updated = cm.variables.set(owner, name, value, masked, pass_thru=pass_thru)
        console.print(f"[green]Variable '{name}' updated on {owner}.[/]")
        if updated is not None:
            _show([updated], fmt, f"Variables: {owner}")


@app.command()
@error_handler
def remove(
    name: Annotated[str, typer.Argument(help="Variable name or wildcard (e.g. 'Temp*')")],
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    device: DeviceOpt = None,
    device_id: DeviceIdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
) -> None:
    """Remove every variable matching NAME."""
    _check_owner(collection, collection_id, device, device_id)
    with make_service(profile, server, username, password, skip_cert) as cm:
        owner = _owner(cm.variables, collection, collection_id, device, device_id)
        removed = cm.variables.remove(owner, name)
        names = ", ".join(v.name for v in removed)
        console.print(f"[green]Removed {len(removed)} variable(s) from {owner}: {names}[/]")
