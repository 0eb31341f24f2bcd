"""Root Typer app — global options and command group registration."""

from __future__ import annotations

from typing import Optional

import typer

from cmadmin import __version__
from cmadmin.commands import (
    api,
    collection,
    config_cmd,
    device,
    rule,
    script,
    variable,
)
from cmadmin.logging_setup import setup_logging

app = typer.Typer(
    name="cmadmin",
    help="CLI for the Configuration Manager Administration Service.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool) -> None:
    if value:
        print(f"cmadmin {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: Optional[bool] = typer.Option(
        None, "--version", "-V", callback=version_callback, is_eager=True, help="Show version and exit."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log requests and changes to stderr."),
) -> None:
    """cmadmin — manage collections, variables, rules, and scripts."""
    setup_logging("DEBUG" if verbose else "WARNING")


# Register command groups
app.add_typer(config_cmd.app, name="config")
app.add_typer(collection.app, name="collection")
app.add_typer(device.app, name="device")
app.add_typer(variable.app, name="variable")
app.add_typer(rule.app, name="rule")
app.add_typer(script.app, name="script")
app.add_typer(api.app, name="api")


def main() -> None:
    app()
