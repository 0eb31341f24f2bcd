"""Membership rule commands — list, add-direct, add-query, add-include, add-exclude, remove."""

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
    report_batch,
)
from cmadmin.models.collection import Collection
from cmadmin.models.rule import MembershipRule
from cmadmin.output.formatter import output

app = typer.Typer(name="rule", help="Manage collection membership rules.")
console = Console()

CollectionOpt = Annotated[str | None, typer.Option("--collection", "-c", help="Collection name")]
CollectionIdOpt = Annotated[str | None, typer.Option("--collection-id", help="Collection ID")]
RuleNameOpt = Annotated[str | None, typer.Option("--rule-name", help="Rule name")]


def _show_rules(rules: list[MembershipRule], fmt: str, title: str) -> None:
    rows = [[r.kind, r.rule_name, r.target] for r in rules]
    output(rules, fmt, columns=["Kind", "Rule Name", "Target"], rows=rows, title=title)


def _done(result: MembershipRule | Collection, fmt: str) -> None:
    if isinstance(result, Collection):
        console.print(f"[green]Rule added to {result.collection_id}.[/]")
        output(result.to_dict().get("CollectionRules", []), fmt, title="Membership Rules")
    else:
        console.print(f"[green]{result.kind.capitalize()} rule '{result.rule_name}' added.[/]")


@app.command("list")
@error_handler
def list_rules(
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    kind: Annotated[
        str | None, typer.Option("--kind", help="direct, query, include or exclude"),
    ] = None,
    rule_name: RuleNameOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """List a collection's membership rules."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        rules = cm.rules.get(collection, collection_id, kind=kind, rule_name=rule_name)
        _show_rules(rules, fmt, "Membership Rules")


@app.command("add-direct")
@error_handler
def add_direct(
    devices: Annotated[
        list[str] | None, typer.Argument(help="Device name(s)"),
    ] = None,
    device_id: Annotated[int | None, typer.Option("--device-id", help="Device resource ID")] = None,
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    rule_name: RuleNameOpt = None,
    pass_thru: PassThruOpt = False,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Add direct rules for one device ID or several device names."""
    if device_id is None and devices and len(devices) > 1 and (rule_name or pass_thru):
        raise ValidationError(
            "--rule-name and --pass-thru apply to a single device; "
            "each rule is named after its device"
        )
    with make_service(profile, server, username, password, skip_cert) as cm:
        if device_id is not None or (devices and len(devices) == 1):
            result = cm.rules.add_direct(
                collection, collection_id,
                device=devices[0] if devices else None, device_id=device_id,
                rule_name=rule_name, pass_thru=pass_thru,
            )
            _done(result, fmt)
            return
        if not devices:
            console.print("[red]Give at least one device name or --device-id.[/]")
            raise typer.Exit(1)
        report_batch(cm.rules.add_direct_many(devices, collection, collection_id), "add")


@app.command("add-query")
@error_handler
def add_query(
    rule_name: Annotated[str, typer.Argument(help="Rule name")],
    query: Annotated[str, typer.Argument(help="WQL query expression")],
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    pass_thru: PassThruOpt = False,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Add a query rule."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        result = cm.rules.add_query(
            collection, collection_id, rule_name=rule_name, query=query, pass_thru=pass_thru,
        )
        _done(result, fmt)


@app.command("add-include")
@error_handler
def add_include(
    include: Annotated[str | None, typer.Argument(help="Collection name to include")] = None,
    include_id: Annotated[str | None, typer.Option("--include-id", help="Collection ID to include")] = None,
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    rule_name: RuleNameOpt = None,
    pass_thru: PassThruOpt = False,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Add an include-collection rule."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        result = cm.rules.add_include(
            collection, collection_id, include=include, include_id=include_id,
            rule_name=rule_name, pass_thru=pass_thru,
        )
        _done(result, fmt)


@app.command("add-exclude")
@error_handler
def add_exclude(
    exclude: Annotated[str | None, typer.Argument(help="Collection name to exclude")] = None,
    exclude_id: Annotated[str | None, typer.Option("--exclude-id", help="Collection ID to exclude")] = None,
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    rule_name: RuleNameOpt = None,
    pass_thru: PassThruOpt = False,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
    fmt: FormatOpt = "table",
) -> None:
    """Add an exclude-collection rule."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        result = cm.rules.add_exclude(
            collection, collection_id, exclude=exclude, exclude_id=exclude_id,
            rule_name=rule_name, pass_thru=pass_thru,
        )
        _done(result, fmt)


@app.command()
@error_handler
def remove(
    kind: Annotated[str, typer.Argument(help="direct, query, include or exclude")],
    rule_name: Annotated[
        str | None, typer.Option("--rule-name", help="Rule name or wildcard"),
    ] = None,
    target: Annotated[
        str | None,
        typer.Option("--target", help="Resource ID, query, or referenced collection ID"),
    ] = None,
    collection: CollectionOpt = None,
    collection_id: CollectionIdOpt = None,
    profile: ProfileOpt = None,
    server: ServerOpt = None,
    username: UsernameOpt = None,
    password: PasswordOpt = None,
    skip_cert: SkipCertOpt = None,
) -> None:
    """Remove every matching rule of KIND."""
    with make_service(profile, server, username, password, skip_cert) as cm:
        result = cm.rules.remove(
            collection, collection_id, kind=kind, rule_name=rule_name, target=target,
        )
        report_batch(result, "remove")
