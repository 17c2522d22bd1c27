"""Current-position command."""

from __future__ import annotations

import copy
from typing import List, Optional

import typer

from mapty.commands.common import build_geolocation, get_state, print_json_payload
from mapty.core.config import save_config
from mapty.core.errors import GeolocationError
from mapty.core.models import Coordinates
from mapty.utils.formatting import format_coordinates


def locate_command(
    ctx: typer.Context,
    save: bool = typer.Option(False, "--save", help="Store the position in the config file"),
) -> None:
    """Show the position new sessions start from."""
    state = get_state(ctx)
    found: List[Coordinates] = []
    failures: List[GeolocationError] = []
    build_geolocation(state).request_current_position(found.append, failures.append)

    position: Optional[Coordinates] = found[0] if found else None
    if position is None:
        reason = failures[0] if failures else "no position reported"
        state.console.print(f"Couldn't get your location: {reason}", style="red", markup=False)
        raise typer.Exit(code=1)

    saved_to = None
    if save:
        config = copy.deepcopy(state.config)
        location = config.setdefault("location", {})
        location["latitude"], location["longitude"] = position
        saved_to = save_config(config, state.config_path)

    if state.json_output:
        print_json_payload(
            state,
            {
                "latitude": position[0],
                "longitude": position[1],
                "savedTo": str(saved_to) if saved_to else None,
            },
        )
        return

    if state.plain_output:
        typer.echo(f"{position[0]},{position[1]}")
        return

    state.console.print(f"Current position: {format_coordinates(position)}")
    if saved_to:
        state.console.print(f"Saved to: {saved_to}")
