"""Config commands — manage server profiles."""

from __future__ import annotations

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.prompt import Confirm, Prompt

from cmadmin.client.errors import error_handler
from cmadmin.config.manager import ConfigManager
from cmadmin.config.models import ServerProfile
from cmadmin.output.formatter import output
from cmadmin.output.tables import MASK
from cmadmin.session import connect

app = typer.Typer(name="config", help="Manage server profiles and CLI configuration.")
console = Console()


def _get_manager() -> ConfigManager:
    return ConfigManager()


@app.command()
@error_handler
def init() -> None:
    """Interactive setup wizard — create your first server profile."""
    mgr = _get_manager()
    console.print("[bold]cmadmin Setup Wizard[/]\n")

    name = Prompt.ask("Profile name", default="default")
    server = Prompt.ask("SMS Provider host (e.g. cm01.corp.local)")
    username = Prompt.ask("Username (blank for none)", default="")
    password = Prompt.ask("Password", password=True, default="") if username else ""
    skip = Confirm.ask("Skip TLS certificate validation?", default=False)

    profile = ServerProfile(
        name=name,
        server=server,
        username=username or None,
        password=password or None,
        skip_certificate_validation=skip,
    )
    mgr.add_profile(profile)
    console.print(f"\n[green]Profile '{name}' saved.[/]")
    console.print(f"Config file: {mgr.config_path}")


@app.command()
@error_handler
def add(
    name: Annotated[str, typer.Argument(help="Profile name")],
    server: Annotated[str, typer.Option("--server", "-s", help="SMS Provider host")],
    username: Annotated[Optional[str], typer.Option("--username", help="Username")] = None,
    password: Annotated[Optional[str], typer.Option("--password", help="Password")] = None,
    skip_cert: Annotated[bool, typer.Option("--skip-cert-check", help="Skip TLS certificate validation")] = False,
    set_default: Annotated[bool, typer.Option("--default", help="Set as default profile")] = False,
) -> None:
    """Add a server profile."""
    mgr = _get_manager()
    profile = ServerProfile(
        name=name,
        server=server,
        username=username,
        password=password,
        skip_certificate_validation=skip_cert,
    )
    mgr.add_profile(profile)
    if set_default:
        mgr.set_default(name)
    console.print(f"[green]Profile '{name}' added.[/]")


@app.command("list")
@error_handler
def list_profiles(
    fmt: Annotated[str, typer.Option("--format", "-f", help="Output format")] = "table",
) -> None:
    """List all configured profiles."""
    mgr = _get_manager()
    profiles = mgr.config.profiles
    if not profiles:
        console.print("[yellow]No profiles configured. Run 'cmadmin config init' to get started.[/]")
        return

    default = mgr.config.default_profile
    columns = ["Name", "Server", "User", "Default"]
    rows = [
        [name, p.server, p.username or "(default)", "*" if name == default else ""]
        for name, p in profiles.items()
    ]
    output(
        {"profiles": [p.model_dump(exclude={"password"}, exclude_none=True) for p in profiles.values()]},
        fmt,
        columns=columns,
        rows=rows,
        title="Server Profiles",
    )


@app.command()
@error_handler
def show(
    name: Annotated[str, typer.Argument(help="Profile name")],
    fmt: Annotated[str, typer.Option("--format", "-f", help="Output format")] = "table",
) -> None:
    """Show profile details."""
    mgr = _get_manager()
    profile = mgr.get_profile(name)
    if not profile:
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)

    data = profile.model_dump(exclude_none=True)
    if "password" in data:
        data["password"] = MASK
    output(data, fmt, title=f"Profile: {name}")


@app.command("set-default")
@error_handler
def set_default(
    name: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default server profile."""
    mgr = _get_manager()
    if mgr.set_default(name):
        console.print(f"[green]Default profile set to '{name}'.[/]")
    else:
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)


@app.command()
@error_handler
def test(
    name: Annotated[Optional[str], typer.Argument(help="Profile name (uses default if omitted)")] = None,
) -> None:
    """Test connectivity to a server and show its site code."""
    mgr = _get_manager()
    profile = mgr.resolve_server(profile_name=name)
    console.print(f"Testing connection to [bold]{profile.server}[/]...")
    connection = connect(
        profile.server,
        profile.credential,
        profile.skip_certificate_validation,
        timeout=profile.timeout,
    )
    console.print(f"[green]Connected![/] Site code: {connection.site_code}")


@app.command()
@error_handler
def remove(
    name: Annotated[str, typer.Argument(help="Profile name to remove")],
    force: Annotated[bool, typer.Option("--force", "-f", help="Skip confirmation")] = False,
) -> None:
    """Remove a server profile."""
    mgr = _get_manager()
    if not mgr.get_profile(name):
        console.print(f"[red]Profile '{name}' not found.[/]")
        raise typer.Exit(1)

    if not force and not Confirm.ask(f"Remove profile '{name}'?"):
        console.print("Cancelled.")
        return

    mgr.remove_profile(name)
    console.print(f"[green]Profile '{name}' removed.[/]")
