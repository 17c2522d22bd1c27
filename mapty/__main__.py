"""Entry point for mapty."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler

from mapty import __version__
from mapty.commands.export import export_command
from mapty.commands.locate import locate_command
from mapty.commands.workouts import add_command, goto_command, list_command, reset_command
from mapty.core.config import ConfigError, default_config_path, load_config, resolve_storage_path
from mapty.core.state import CLIState
from mapty.utils.parsing import parse_coordinates

app = typer.Typer(
    add_completion=False,
    help="Log running and cycling workouts on a map",
    invoke_without_command=True,
)


def _configure_logging(console: Console, verbose: bool) -> None:
    handler = RichHandler(console=console, show_time=False, show_path=False)
    root = logging.getLogger("mapty")
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if verbose else logging.WARNING)
    root.propagate = False


@app.callback()
def main_callback(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Output JSON where available"),
    plain_output: bool = typer.Option(
        False,
        "--plain",
        help="Output plain text (no rich formatting/tables)",
    ),
    config: Optional[Path] = typer.Option(None, "--config", help="Path to config file"),
    storage: Optional[Path] = typer.Option(None, "--storage", help="Path to the workout storage file"),
    location: Optional[str] = typer.Option(None, "--location", help="Current position as LAT,LNG"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Quiet output"),
    version: bool = typer.Option(False, "--version", help="Show version and exit"),
) -> None:
    """Initialize global CLI state."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if json_output and plain_output:
        typer.echo("Options --json and --plain are mutually exclusive.")
        raise typer.Exit(code=2)

    position = None
    if location is not None:
        try:
            position = parse_coordinates(location)
        except ValueError as exc:
            typer.echo(f"Invalid --location: {exc}")
            raise typer.Exit(code=2)

    cfg_path = (config or default_config_path()).expanduser().resolve()
    try:
        cfg = load_config(cfg_path)
    except ConfigError as exc:
        typer.echo(f"Config error: {exc}")
        raise typer.Exit(code=2)

    console = Console(
        quiet=quiet,
        no_color=plain_output,
        log_time=False,
        log_path=False,
    )
    _configure_logging(console, verbose)
    ctx.obj = CLIState(
        json_output=(json_output and not plain_output),
        plain_output=plain_output,
        verbose=verbose,
        quiet=quiet,
        config_path=cfg_path,
        config=cfg,
        console=console,
        storage_path=(storage.expanduser().resolve() if storage else resolve_storage_path(cfg)),
        location=position,
    )

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


app.command("add")(add_command)
app.command("list")(list_command)
app.command("goto")(goto_command)
app.command("locate")(locate_command)
app.command("reset")(reset_command)
app.command("export")(export_command)


def main() -> None:
    """Console script entrypoint."""
    app()


if __name__ == "__main__":
    main()
