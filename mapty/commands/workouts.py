"""Workout add, list, goto and reset commands."""

from __future__ import annotations

import sys
from dataclasses import asdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import typer

from mapty.commands.common import build_store, get_state, open_session, print_json_payload
from mapty.core.collaborators import FormInput
from mapty.core.errors import StorageError
from mapty.core.models import Coordinates
from mapty.core.store import to_record
from mapty.utils.formatting import format_coordinates, format_details, kind_icon
from mapty.utils.parsing import form_input_from_entry, load_workout_input, parse_coordinates
from mapty.views.console import TerminalWorkoutList

Entry = Tuple[FormInput, Optional[Coordinates]]


def _coordinates_option(value: Optional[str], name: str) -> Optional[Coordinates]:
    if value is None:
        return None
    try:
        return parse_coordinates(value)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint=name)


def _collect_entries(
    kind: Optional[str],
    distance: Optional[str],
    duration: Optional[str],
    cadence: Optional[str],
    elevation: Optional[str],
    at: Optional[str],
    file: Optional[Path],
    stdin: bool,
) -> List[Entry]:
    if file or stdin:
        stdin_text = sys.stdin.read() if stdin else ""
        raw_entries = load_workout_input(file_path=file, read_stdin=stdin, stdin_text=stdin_text)
        try:
            return [form_input_from_entry(entry) for entry in raw_entries]
        except ValueError as exc:
            raise typer.BadParameter(str(exc), param_hint="--file")

    if not kind:
        return []
    form = FormInput(
        kind=kind,
        distance=distance or "",
        duration=duration or "",
        cadence=cadence or "",
        elevation_gain=elevation or "",
    )
    return [(form, _coordinates_option(at, "--at"))]


def add_command(
    ctx: typer.Context,
    kind: Optional[str] = typer.Option(None, "--type", "-t", help="Workout type: running|cycling"),
    distance: Optional[str] = typer.Option(None, "--distance", "-d", help="Distance in km"),
    duration: Optional[str] = typer.Option(None, "--duration", "-m", help="Duration in minutes"),
    cadence: Optional[str] = typer.Option(None, "--cadence", help="Cadence in steps/min (running)"),
    elevation: Optional[str] = typer.Option(None, "--elevation", help="Elevation gain in m (cycling)"),
    at: Optional[str] = typer.Option(None, "--at", help="Workout position LAT,LNG (default: current position)"),
    file: Optional[Path] = typer.Option(None, help="JSON/YAML file with workout(s)"),
    stdin: bool = typer.Option(False, "--stdin", help="Read workout data from stdin"),
) -> None:
    """Add workouts by clicking the map and submitting the form."""
    state = get_state(ctx)
    entries = _collect_entries(kind, distance, duration, cadence, elevation, at, file, stdin)
    if not entries:
        raise typer.BadParameter("Provide --type/--distance/--duration, --file, or --stdin")

    session = open_session(state)
    controller = session.controller
    viewport = session.map_view.viewport
    if not controller.map_ready or viewport is None:
        raise typer.Exit(code=1)

    results: List[Dict[str, Any]] = []
    for form_input, position in entries:
        session.map_view.click(position or viewport.center)
        workout = session.form.submit(form_input)
        if workout is None:
            results.append({"status": "rejected", "input": asdict(form_input)})
            continue
        results.append({"status": "created", **to_record(workout)})

    rejected = sum(1 for item in results if item["status"] == "rejected")

    if state.json_output:
        print_json_payload(state, {"results": results})
    elif state.plain_output:
        typer.echo(f"processed\t{len(results)}")
        for item in results:
            typer.echo(f"{item['status']}\t{item.get('id', '')}\t{item.get('description', '')}")
    else:
        for item in results:
            if item["status"] != "created":
                continue
            workout = controller.find(item["id"])
            if workout is None:
                continue
            state.console.print(
                f"Added {kind_icon(workout.kind.value)} {workout.description} "
                f"at {format_coordinates(workout.coordinates)} [dim]({workout.id})[/dim]"
            )
            state.console.print(f"  {format_details(workout)}", markup=False)

    if rejected:
        raise typer.Exit(code=1)


def list_command(ctx: typer.Context) -> None:
    """List stored workouts, newest first."""
    state = get_state(ctx)
    workout_list = TerminalWorkoutList()
    for workout in build_store(state).load():
        workout_list.render(workout)

    if state.json_output:
        print_json_payload(state, {"workouts": [to_record(workout) for workout in workout_list.entries]})
        return

    if state.plain_output:
        for workout in workout_list.entries:
            lat, lng = workout.coordinates
            typer.echo(f"{workout.id}\t{workout.kind.value}\t{workout.description}\t{lat},{lng}")
        return

    if not workout_list.entries:
        state.console.print("No workouts yet. Add one with `mapty add`.")
        return
    state.console.print(workout_list.as_table())


def goto_command(
    ctx: typer.Context,
    workout_id: str = typer.Argument(..., help="Workout ID"),
) -> None:
    """Center the map on a stored workout."""
    state = get_state(ctx)
    session = open_session(state)
    controller = session.controller

    workout = controller.find(workout_id)
    if workout is None:
        state.console.print(f"No workout with id {workout_id}", style="red", markup=False)
        raise typer.Exit(code=1)
    if not controller.select_workout(workout_id) or session.map_view.viewport is None:
        raise typer.Exit(code=1)

    viewport = session.map_view.viewport
    payload = {
        "workoutId": workout.id,
        "description": workout.description,
        "center": list(viewport.center),
        "zoom": viewport.zoom,
    }
    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo(f"workout_id\t{workout.id}")
        typer.echo(f"center\t{viewport.center[0]},{viewport.center[1]}")
        typer.echo(f"zoom\t{viewport.zoom}")
        return

    state.console.print(
        f"Map centered on {workout.description} at {format_coordinates(viewport.center)} (zoom {viewport.zoom})"
    )


def reset_command(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Skip confirmation prompt"),
) -> None:
    """Delete all stored workouts."""
    state = get_state(ctx)

    if not force:
        confirmed = typer.confirm("Delete all stored workouts?", default=False)
        if not confirmed:
            raise typer.Exit(code=0)

    session = open_session(state, start=False)
    try:
        session.controller.reset(restart=False)
    except StorageError as exc:
        state.console.print(f"Reset failed: {exc}", style="red", markup=False)
        raise typer.Exit(code=1)

    payload = {"status": "reset", "storage": str(state.storage_path)}
    if state.json_output:
        print_json_payload(state, payload)
        return

    if state.plain_output:
        typer.echo("status\treset")
        return

    state.console.print("Cleared all stored workouts")
