"""Shared command helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Optional

import typer

from mapty.core.collaborators import GeolocationProvider
from mapty.core.config import configured_location
from mapty.core.constants import IP_GEOLOCATION_URL
from mapty.core.controller import MapSettings, SessionController
from mapty.core.geolocation import IPGeolocation, StaticGeolocation
from mapty.core.models import Coordinates
from mapty.core.state import CLIState
from mapty.core.storage import JsonFileStorage
from mapty.core.store import WorkoutStore
from mapty.views.console import ConsoleNotifier, TerminalForm, TerminalMap, TerminalWorkoutList


@dataclass
class Session:
    """A controller wired to terminal views."""

    controller: SessionController
    map_view: TerminalMap
    form: TerminalForm
    workout_list: TerminalWorkoutList
    notifier: ConsoleNotifier


def get_state(ctx: typer.Context) -> CLIState:
    """Extract validated CLI state from Typer context."""
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise typer.Exit(code=2)
    return state


def print_json_payload(state: CLIState, payload: Any) -> None:
    """Print JSON payload with plain-mode fallback for piping."""
    if state.plain_output:
        typer.echo(json.dumps(payload, separators=(",", ":"), ensure_ascii=False))
        return
    state.console.print_json(data=payload)


def build_store(state: CLIState) -> WorkoutStore:
    return WorkoutStore(JsonFileStorage(state.storage_path))


def build_geolocation(state: CLIState, override: Optional[Coordinates] = None) -> GeolocationProvider:
    """Pick a position provider: explicit override, [location] table, then IP lookup."""
    position = override or state.location
    if position is not None:
        return StaticGeolocation(position)

    provider = str(state.config.get("location", {}).get("provider", "auto"))
    configured = configured_location(state.config)
    if provider == "static" or (provider == "auto" and configured is not None):
        return StaticGeolocation(configured)

    geo_cfg = state.config.get("geolocation", {})
    return IPGeolocation(
        url=str(geo_cfg.get("url", IP_GEOLOCATION_URL)),
        timeout_seconds=float(geo_cfg.get("timeout_seconds", 10)),
        max_retries=int(float(geo_cfg.get("max_retries", 2))),
    )


def open_session(state: CLIState, location: Optional[Coordinates] = None, start: bool = True) -> Session:
    """Wire a controller to terminal views and optionally start it."""
    map_view = TerminalMap()
    form = TerminalForm()
    workout_list = TerminalWorkoutList()
    notifier = ConsoleNotifier(state.console)
    controller = SessionController(
        map_view=map_view,
        form=form,
        workout_list=workout_list,
        geolocation=build_geolocation(state, location),
        store=build_store(state),
        notifier=notifier,
        settings=MapSettings.from_config(state.config),
    )
    if start:
        controller.start()
    return Session(
        controller=controller,
        map_view=map_view,
        form=form,
        workout_list=workout_list,
        notifier=notifier,
    )
