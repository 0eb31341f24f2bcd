"""Collection commands — list, show, new, set, remove, refresh, members."""

from __future__ import annotations

from typing import Annotated

import typer
from rich.console import Console
from rich.prompt import Confirm

from cmadmin.client.errors import error_handler
from cmadmin.commands._common import (
    FormatOpt,
    PassThruOpt,
    PasswordOpt,
    ProfileOpt,
    ServerOpt,
    SkipCertOpt,
    UsernameOpt,
    make_service,
    report_batch,
)
from cmadmin.models.collection import Collection
from cmadmin.output.formatter import output

app = typer.Typer(name="collection", help="Manage device and user collections.")
console = Console()

NameArg = Annotated[
    str | None, typer.Argument(help="Collection name (wildcards allowed for list)"),
]
IdOpt = Annotated[str | None, typer.Option("--id", help="Collection ID")]

_COLUMNS = ["ID", "Name", "Type", "Members", "Limited To"]


def _row(c: Collection) -> list[object]:
    return [c.collection_id, c.name, c.type_name, c.member_count, c.limit_to_collection_id]


@app.command("list")
@error_handler
def list_collections(
    name: NameArg = None,
    collection_id: IdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List collections, optionally by name, wildcard, or ID."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        items = cm.collections.get(name=name, key=collection_id)
        output(items, fmt, columns=_COLUMNS, rows=[_row(c) for c in items], title="Collections")


@app.command()
@error_handler
def show(
    name: NameArg = None,
    collection_id: IdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Show one collection's properties."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        collection = cm.collections.get_one(name=name, key=collection_id)
        data = collection.to_dict()
        data.pop("CollectionRules", None)
        output(data, fmt, title=f"Collection: {collection.name}")


@app.command()
@error_handler
def new(
    name: Annotated[str, typer.Argument(help="New collection name")],
    limit_to: Annotated[
        str | None, typer.Option("--limit-to", help="Limiting collection name"),
    ] = None,
    limit_to_id: Annotated[
        str | None, typer.Option("--limit-to-id", help="Limiting collection ID"),
    ] = None,
    collection_type: Annotated[
        str, typer.Option("--type", help="device or user"),
    ] = "device",
    comment: Annotated[str | None, typer.Option("--comment", help="Comment")] = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Create a collection."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        created = cm.collections.new(
            name,
            limiting_name=limit_to,
            limiting_key=limit_to_id,
            collection_type=collection_type,
            comment=comment,
        )
        console.print(f"[green]Collection '{name}' created ({created.collection_id}).[/]")
        if fmt != "table":
            output(created, fmt)


@app.command("set")
@error_handler
def set_collection(
    name: NameArg = None,
    collection_id: IdOpt = None,
    new_name: Annotated[str | None, typer.Option("--new-name", help="Rename to")] = None,
    comment: Annotated[str | None, typer.Option("--comment", help="New comment")] = None,
    pass_thru: PassThruOpt = False,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Rename a collection or change its comment."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        updated = cm.collections.set(
            name=name, key=collection_id, new_name=new_name, comment=comment,
            pass_thru=pass_thru,
        )
        console.print("[green]Collection updated.[/]")
        if updated is not None:
            output(updated, fmt, title=f"Collection: {updated.name}")


@app.command()
@error_handler
def remove(
    names: Annotated[
        list[str] | None, typer.Argument(help="Collection name(s)"),
    ] = None,
    collection_id: IdOpt = None,
    force: Annotated[bool, typer.Option("--force", help="Skip confirmation")] = False,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
) -> None:
    """Remove one collection by ID, or several by name."""
    targets = collection_id or ", ".join(names or [])
    if not targets:
        console.print("[red]Give at least one collection name or --id.[/]")
        raise typer.Exit(1)
    if not force and not Confirm.ask(f"Remove collection(s) {targets}?"):
        console.print("Cancelled.")
        return
    with make_service(profile, server, username, password, skip_cert) as cm:
        if collection_id:
            cm.collections.remove(key=collection_id)
            console.print(f"[green]Collection {collection_id} removed.[/]")
            return
        report_batch(cm.collections.remove_many(names or []), "remove")


@app.command()
@error_handler
def refresh(
    name: NameArg = None,
    collection_id: IdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
) -> None:
    """Request a membership re-evaluation."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        key = cm.collections.refresh(name=name, key=collection_id)
        console.print(f"[green]Refresh requested for {key}.[/]")


@app.command()
@error_handler
def members(
    name: NameArg = None,
    collection_id: IdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List a collection's members."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        items = cm.collections.members(name=name, key=collection_id)
        rows = [[m.resource_id, m.name, m.is_direct] for m in items]
        output(items, fmt, columns=["Resource ID", "Name", "Direct"], rows=rows,
               title="Collection Members")
