"""Workout export command."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from mapty.commands.common import build_store, get_state, print_json_payload
from mapty.core.config import resolve_output_path
from mapty.exporters.json_export import write_workouts_json


def export_command(
    ctx: typer.Context,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Output JSON file"),
) -> None:
    """Export stored workouts to a JSON file."""
    state = get_state(ctx)
    workouts = build_store(state).load()
    path = write_workouts_json(resolve_output_path(state.config, output), workouts)

    if state.json_output:
        print_json_payload(state, {"exported": len(workouts), "path": str(path)})
        return

    if state.plain_output:
        typer.echo(f"exported\t{len(workouts)}")
        typer.echo(f"path\t{path}")
        return

    state.console.print(f"Exported {len(workouts)} workout(s) to: {path}")
