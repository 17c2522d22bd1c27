"""Terminal implementations of the map, form, list and notifier."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from rich.console import Console
from rich.table import Table

from mapty.core.collaborators import FormInput, PopupOptions
from mapty.core.models import AnyWorkout, Coordinates
from mapty.utils.formatting import format_coordinates, kind_icon, workout_details

logger = logging.getLogger(__name__)


@dataclass
class Marker:
    coordinates: Coordinates
    content: str = ""
    options: Optional[PopupOptions] = None


@dataclass
class MapViewport:
    center: Coordinates
    zoom: int
    tile_url: str = ""
    tile_options: Dict[str, Any] = field(default_factory=dict)


class TerminalMap:
    """Keeps the map as data: viewport, tile layer and markers."""

    def __init__(self) -> None:
        self.viewport: Optional[MapViewport] = None
        self.markers: List[Marker] = []
        self._click_handlers: List[Callable[[Coordinates], None]] = []

    def initialize(self, center: Coordinates, zoom: int) -> MapViewport:
        self.viewport = MapViewport(center=center, zoom=zoom)
        self.markers = []
        self._click_handlers = []
        logger.debug("Map initialized at %s (zoom %d)", format_coordinates(center), zoom)
        return self.viewport

    def add_tile_layer(self, url_template: str, options: Dict[str, Any]) -> None:
        if self.viewport is None:
            raise RuntimeError("Map is not initialized")
        self.viewport.tile_url = url_template
        self.viewport.tile_options = dict(options)

    def on_click(self, handler: Callable[[Coordinates], None]) -> None:
        self._click_handlers.append(handler)

    def click(self, coords: Coordinates) -> None:
        """Deliver a click at `coords` to the registered handlers."""
        for handler in list(self._click_handlers):
            handler(coords)

    def add_marker(self, coords: Coordinates) -> Marker:
        marker = Marker(coordinates=coords)
        self.markers.append(marker)
        return marker

    def bind_popup(self, marker: Marker, content: str, options: PopupOptions) -> None:
        marker.content = content
        marker.options = options

    def pan_to(
        self,
        coords: Coordinates,
        zoom: int,
        animate: bool = True,
        duration: float = 1.0,
    ) -> None:
        if self.viewport is None:
            raise RuntimeError("Map is not initialized")
        self.viewport.center = coords
        self.viewport.zoom = zoom
        logger.debug("Panned to %s (animate=%s, %.1fs)", format_coordinates(coords), animate, duration)


class TerminalForm:
    """Form state driven by CLI options instead of input widgets."""

    def __init__(self) -> None:
        self.visible = False
        self.variant_field = "cadence"
        self._handlers: List[Callable[[FormInput], Any]] = []

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def clear(self) -> None:
        self.variant_field = "cadence"

    def show_fields_for(self, kind: str) -> None:
        self.variant_field = "cadence" if kind == "running" else "elevation_gain"

    def on_submit(self, handler: Callable[[FormInput], Any]) -> None:
        self._handlers.append(handler)

    def submit(self, values: FormInput) -> Any:
        """Fire the submit event and return the last handler's result."""
        if not self.visible:
            raise RuntimeError("Form is not shown")
        result = None
        for handler in list(self._handlers):
            result = handler(values)
        return result


class TerminalWorkoutList:
    """Collects rendered entries; newest first, like the on-page list."""

    def __init__(self) -> None:
        self.entries: List[AnyWorkout] = []

    def render(self, workout: AnyWorkout) -> None:
        self.entries.insert(0, workout)

    def clear(self) -> None:
        self.entries = []

    def as_table(self) -> Table:
        table = Table(title="Workouts")
        table.add_column("ID", no_wrap=True)
        table.add_column("Workout")
        table.add_column("Distance", justify="right")
        table.add_column("Duration", justify="right")
        table.add_column("Pace/Speed", justify="right")
        table.add_column("Cadence/Elev.", justify="right")
        for workout in self.entries:
            cells = [f"{value} {unit}" for _, value, unit in workout_details(workout)]
            table.add_row(
                workout.id,
                f"{kind_icon(workout.kind.value)} {workout.description}",
                *cells,
            )
        return table


class ConsoleNotifier:
    """User-facing messages printed to the rich console."""

    def __init__(self, console: Console) -> None:
        self.console = console

    def _emit(self, style: str, message: str) -> None:
        self.console.print(message, style=style, markup=False)

    def error(self, message: str) -> None:
        self._emit("bold red", message)

    def warning(self, message: str) -> None:
        self._emit("yellow", message)

    def info(self, message: str) -> None:
        self._emit("", message)
