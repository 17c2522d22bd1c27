"""Interfaces for the map, form, list, notifier, geolocation and storage."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol

from mapty.core.constants import POPUP_MAX_WIDTH, POPUP_MIN_WIDTH
from mapty.core.errors import GeolocationError
from mapty.core.models import Coordinates


@dataclass(frozen=True)
class PopupOptions:
    max_width: int = POPUP_MAX_WIDTH
    min_width: int = POPUP_MIN_WIDTH
    auto_close: bool = False
    close_on_click: bool = False
    class_name: str = ""


@dataclass(frozen=True)
class FormInput:
    """Raw values as typed into the workout form."""

    kind: str
    distance: str = ""
    duration: str = ""
    cadence: str = ""
    elevation_gain: str = ""


class MapView(Protocol):
    def initialize(self, center: Coordinates, zoom: int) -> Any: ...

    def add_tile_layer(self, url_template: str, options: Dict[str, Any]) -> None: ...

    def on_click(self, handler: Callable[[Coordinates], None]) -> None: ...

    def add_marker(self, coords: Coordinates) -> Any: ...

    def bind_popup(self, marker: Any, content: str, options: PopupOptions) -> None: ...

    def pan_to(
        self,
        coords: Coordinates,
        zoom: int,
        animate: bool = True,
        duration: float = 1.0,
    ) -> None: ...


class FormView(Protocol):
    def show(self) -> None: ...

    def hide(self) -> None: ...

    def clear(self) -> None: ...

    def show_fields_for(self, kind: str) -> None: ...

    def on_submit(self, handler: Callable[[FormInput], Any]) -> None: ...


class WorkoutListView(Protocol):
    def render(self, workout: Any) -> None: ...

    def clear(self) -> None: ...


class Notifier(Protocol):
    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...


class GeolocationProvider(Protocol):
    def request_current_position(
        self,
        on_success: Callable[[Coordinates], None],
        on_error: Callable[[GeolocationError], None],
    ) -> None: ...


class KeyValueStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...
