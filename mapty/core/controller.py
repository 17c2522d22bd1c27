"""Interaction state machine tying geolocation, map, form and storage together."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from mapty.core.collaborators import (
    FormInput,
    FormView,
    GeolocationProvider,
    MapView,
    Notifier,
    PopupOptions,
    WorkoutListView,
)
from mapty.core.constants import (
    INVALID_INPUT_MESSAGE,
    LOCATION_UNAVAILABLE_MESSAGE,
    MAP_ZOOM,
    PAN_DURATION_SECONDS,
    POPUP_MAX_WIDTH,
    POPUP_MIN_WIDTH,
    TILE_MAX_ZOOM,
    TILE_SUBDOMAINS,
    TILE_URL,
)
from mapty.core.errors import GeolocationError, SessionStateError, StorageError, ValidationError
from mapty.core.models import AnyWorkout, Coordinates, WorkoutKind, create_workout
from mapty.core.store import WorkoutStore
from mapty.utils.formatting import popup_class_name, popup_content
from mapty.utils.parsing import parse_number

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    IDLE = "idle"
    AWAITING_POSITION = "awaiting_position"
    POSITION_UNAVAILABLE = "position_unavailable"
    MAP_READY = "map_ready"
    AWAITING_FORM_INPUT = "awaiting_form_input"


@dataclass(frozen=True)
class PendingSession:
    """Candidate location captured by a map click, consumed by the next submit."""

    coordinates: Coordinates
    opened_at: datetime = field(default_factory=lambda: datetime.now().astimezone())


def _default_tile_options() -> Dict[str, Any]:
    return {"maxZoom": TILE_MAX_ZOOM, "subdomains": list(TILE_SUBDOMAINS)}


@dataclass(frozen=True)
class MapSettings:
    """Map, tile layer and popup settings."""

    zoom: int = MAP_ZOOM
    tile_url: str = TILE_URL
    tile_options: Dict[str, Any] = field(default_factory=_default_tile_options)
    pan_duration: float = PAN_DURATION_SECONDS
    popup_max_width: int = POPUP_MAX_WIDTH
    popup_min_width: int = POPUP_MIN_WIDTH
    popup_auto_close: bool = False
    popup_close_on_click: bool = False

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> "MapSettings":
        map_cfg = config.get("map", {})
        popup_cfg = config.get("popup", {})
        return cls(
            zoom=int(float(map_cfg.get("zoom", MAP_ZOOM))),
            tile_url=str(map_cfg.get("tile_url", TILE_URL)),
            tile_options={
                "maxZoom": int(float(map_cfg.get("max_zoom", TILE_MAX_ZOOM))),
                "subdomains": list(map_cfg.get("subdomains", TILE_SUBDOMAINS)),
            },
            pan_duration=float(map_cfg.get("pan_duration", PAN_DURATION_SECONDS)),
            popup_max_width=int(float(popup_cfg.get("max_width", POPUP_MAX_WIDTH))),
            popup_min_width=int(float(popup_cfg.get("min_width", POPUP_MIN_WIDTH))),
            popup_auto_close=bool(popup_cfg.get("auto_close", False)),
            popup_close_on_click=bool(popup_cfg.get("close_on_click", False)),
        )

    def popup_options(self, class_name: str) -> PopupOptions:
        return PopupOptions(
            max_width=self.popup_max_width,
            min_width=self.popup_min_width,
            auto_close=self.popup_auto_close,
            close_on_click=self.popup_close_on_click,
            class_name=class_name,
        )


class SessionController:
    """Owns the workout collection and the pending map click for one session.

    Events are handled one at a time: position callbacks, map clicks, form
    submissions and list selections. Callbacks issued before a reset carry an
    older generation and are dropped when they arrive late.
    """

    def __init__(
        self,
        map_view: MapView,
        form: FormView,
        workout_list: WorkoutListView,
        geolocation: GeolocationProvider,
        store: WorkoutStore,
        notifier: Notifier,
        settings: Optional[MapSettings] = None,
    ) -> None:
        self.map_view = map_view
        self.form = form
        self.workout_list = workout_list
        self.geolocation = geolocation
        self.store = store
        self.notifier = notifier
        self.settings = settings or MapSettings()

        self._state = SessionState.IDLE
        self._workouts: List[AnyWorkout] = []
        self._pending: Optional[PendingSession] = None
        self._generation = 0

        self.form.on_submit(self.submit_form)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def workouts(self) -> Tuple[AnyWorkout, ...]:
        return tuple(self._workouts)

    @property
    def pending(self) -> Optional[PendingSession]:
        return self._pending

    @property
    def map_ready(self) -> bool:
        return self._state in (SessionState.MAP_READY, SessionState.AWAITING_FORM_INPUT)

    def find(self, workout_id: str) -> Optional[AnyWorkout]:
        return next((workout for workout in self._workouts if workout.id == workout_id), None)

    def start(self) -> None:
        """Load stored workouts, then ask for the current position."""
        if self._state is not SessionState.IDLE:
            raise SessionStateError(f"Cannot start a session in state {self._state.value}")

        self._workouts = self.store.load()
        self.workout_list.clear()
        for workout in self._workouts:
            self.workout_list.render(workout)

        self._state = SessionState.AWAITING_POSITION
        generation = self._generation
        self.geolocation.request_current_position(
            lambda coords: self._on_position(generation, coords),
            lambda error: self._on_position_error(generation, error),
        )

    def _on_position(self, generation: int, coords: Coordinates) -> None:
        if generation != self._generation or self._state is not SessionState.AWAITING_POSITION:
            logger.debug("Dropping stale position callback")
            return

        self.map_view.initialize(coords, self.settings.zoom)
        self.map_view.add_tile_layer(self.settings.tile_url, dict(self.settings.tile_options))
        for workout in self._workouts:
            self._render_marker(workout)
        self.map_view.on_click(lambda clicked: self._on_map_click(generation, clicked))
        self._state = SessionState.MAP_READY
        logger.debug("Map ready at %s with %d workout(s)", coords, len(self._workouts))

    def _on_position_error(self, generation: int, error: GeolocationError) -> None:
        if generation != self._generation or self._state is not SessionState.AWAITING_POSITION:
            logger.debug("Dropping stale position error: %s", error)
            return

        logger.warning("Position unavailable: %s", error)
        self._state = SessionState.POSITION_UNAVAILABLE
        self.notifier.error(f"{LOCATION_UNAVAILABLE_MESSAGE}: {error}")

    def _on_map_click(self, generation: int, coords: Coordinates) -> None:
        if generation != self._generation:
            return
        self.handle_map_click(coords)

    def handle_map_click(self, coords: Coordinates) -> None:
        """Open a new pending session at the clicked position."""
        if not self.map_ready:
            logger.debug("Ignoring map click in state %s", self._state.value)
            return

        self._pending = PendingSession(coordinates=(float(coords[0]), float(coords[1])))
        self.form.show()
        self._state = SessionState.AWAITING_FORM_INPUT

    def select_kind(self, kind: Any) -> None:
        self.form.show_fields_for(WorkoutKind.parse(kind).value)

    def submit_form(self, raw: FormInput) -> Optional[AnyWorkout]:
        """Build a workout from the form and the pending click.

        Returns None when the input is rejected; the form and the pending
        session stay as they were.
        """
        pending = self._pending
        if self._state is not SessionState.AWAITING_FORM_INPUT or pending is None:
            raise SessionStateError("No map position selected for this workout")

        try:
            kind = WorkoutKind.parse(raw.kind)
            extra = raw.cadence if kind is WorkoutKind.RUNNING else raw.elevation_gain
            workout = create_workout(
                kind,
                pending.coordinates,
                parse_number(raw.distance),
                parse_number(raw.duration),
                parse_number(extra),
            )
        except ValidationError as exc:
            logger.info("Rejected workout input: %s", exc)
            self.notifier.error(f"{INVALID_INPUT_MESSAGE} ({', '.join(sorted(exc.fields))})")
            return None

        self._pending = None
        self._workouts.append(workout)
        self.form.clear()
        self.form.hide()
        self._render_marker(workout)
        self.workout_list.render(workout)
        self._state = SessionState.MAP_READY

        try:
            self.store.save(self._workouts)
        except StorageError as exc:
            logger.error("Saving workouts failed: %s", exc)
            self.notifier.warning(
                f"{workout.description} was added but could not be saved; "
                "it may not survive a reload"
            )
        return workout

    def select_workout(self, workout_id: str) -> bool:
        """Pan to a listed workout; a no-op until the map is ready."""
        if not self.map_ready:
            return False

        workout = self.find(workout_id)
        if workout is None:
            logger.debug("No workout with id %s", workout_id)
            return False

        self.map_view.pan_to(
            workout.coordinates,
            self.settings.zoom,
            animate=True,
            duration=self.settings.pan_duration,
        )
        return True

    def reset(self, restart: bool = True) -> None:
        """Clear persisted workouts and return to IDLE."""
        self.store.clear()

        self._generation += 1
        self._workouts = []
        self._pending = None
        self._state = SessionState.IDLE
        self.workout_list.clear()
        self.form.clear()
        self.form.hide()
        logger.info("Session reset")

        if restart:
            self.start()

    def _render_marker(self, workout: AnyWorkout) -> None:
        marker = self.map_view.add_marker(workout.coordinates)
        self.map_view.bind_popup(
            marker,
            popup_content(workout),
            self.settings.popup_options(popup_class_name(workout)),
        )
