"""Workout entities and their validated construction."""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, Optional, Set, Tuple, Union

from mapty.core.constants import MONTHS
from mapty.core.errors import ValidationError

Coordinates = Tuple[float, float]

_id_counter = itertools.count(1)


class WorkoutKind(str, Enum):
    """Discriminant for the workout variants."""

    RUNNING = "running"
    CYCLING = "cycling"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def parse(cls, value: Any) -> "WorkoutKind":
        """Resolve a kind from an enum member or a case-insensitive name."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError as exc:
            raise ValidationError({"kind"}, f"Unsupported workout type: {value!r}") from exc


@dataclass(frozen=True)
class Workout:
    """Fields shared by every workout variant."""

    id: str
    created_at: datetime
    coordinates: Coordinates
    distance: float  # km
    duration: float  # min
    description: str

    def __post_init__(self) -> None:
        if type(self) is Workout:
            raise TypeError("Workout is abstract; use create_running or create_cycling")


@dataclass(frozen=True)
class Running(Workout):
    cadence: int  # steps/min
    pace: float  # min/km
    kind: WorkoutKind = field(default=WorkoutKind.RUNNING, init=False)


@dataclass(frozen=True)
class Cycling(Workout):
    elevation_gain: float  # m
    speed: float  # km/h
    kind: WorkoutKind = field(default=WorkoutKind.CYCLING, init=False)


AnyWorkout = Union[Running, Cycling]


def derived_metric(kind: WorkoutKind, distance: float, duration: float) -> float:
    """Return pace (min/km) for running or speed (km/h) for cycling."""
    if kind is WorkoutKind.RUNNING:
        return duration / distance
    return distance / (duration / 60)


def describe(kind: WorkoutKind, created_at: datetime) -> str:
    """Build the display title, e.g. 'Running on October 18'."""
    return f"{kind.label} on {MONTHS[created_at.month - 1]} {created_at.day}"


def next_workout_id(created_at: datetime) -> str:
    """Millisecond timestamp plus a per-process counter."""
    return f"{int(created_at.timestamp() * 1000)}-{next(_id_counter)}"


def _is_finite_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def _coordinates_valid(coords: Any) -> bool:
    try:
        lat, lng = coords
    except (TypeError, ValueError):
        return False
    if not (_is_finite_number(lat) and _is_finite_number(lng)):
        return False
    return -90 <= lat <= 90 and -180 <= lng <= 180


def _validate(
    coords: Any,
    values: Dict[str, Any],
    positive: Iterable[str],
    non_negative: Iterable[str] = (),
) -> None:
    invalid: Set[str] = set()
    if not _coordinates_valid(coords):
        invalid.add("coordinates")

    for name, value in values.items():
        if not _is_finite_number(value):
            invalid.add(name)
    for name in positive:
        if name not in invalid and values[name] <= 0:
            invalid.add(name)
    for name in non_negative:
        if name not in invalid and values[name] < 0:
            invalid.add(name)

    if invalid:
        raise ValidationError(invalid)


def _identity(
    kind: WorkoutKind,
    created_at: Optional[datetime],
    workout_id: Optional[str],
) -> Tuple[str, datetime, str]:
    if workout_id is not None and (not isinstance(workout_id, str) or not workout_id):
        raise ValidationError({"id"})
    created = created_at or datetime.now().astimezone()
    return workout_id or next_workout_id(created), created, describe(kind, created)


def create_running(
    coords: Any,
    distance: Any,
    duration: Any,
    cadence: Any,
    *,
    created_at: Optional[datetime] = None,
    workout_id: Optional[str] = None,
) -> Running:
    """Validate inputs and build a Running workout."""
    values = {"distance": distance, "duration": duration, "cadence": cadence}
    _validate(coords, values, positive=values)
    if not float(cadence).is_integer():
        raise ValidationError({"cadence"})

    kind = WorkoutKind.RUNNING
    identifier, created, description = _identity(kind, created_at, workout_id)
    return Running(
        id=identifier,
        created_at=created,
        coordinates=(float(coords[0]), float(coords[1])),
        distance=float(distance),
        duration=float(duration),
        description=description,
        cadence=int(cadence),
        pace=derived_metric(kind, float(distance), float(duration)),
    )


def create_cycling(
    coords: Any,
    distance: Any,
    duration: Any,
    elevation_gain: Any,
    *,
    created_at: Optional[datetime] = None,
    workout_id: Optional[str] = None,
) -> Cycling:
    """Validate inputs and build a Cycling workout."""
    values = {"distance": distance, "duration": duration, "elevation_gain": elevation_gain}
    _validate(
        coords,
        values,
        positive=("distance", "duration"),
        non_negative=("elevation_gain",),
    )

    kind = WorkoutKind.CYCLING
    identifier, created, description = _identity(kind, created_at, workout_id)
    return Cycling(
        id=identifier,
        created_at=created,
        coordinates=(float(coords[0]), float(coords[1])),
        distance=float(distance),
        duration=float(duration),
        description=description,
        elevation_gain=float(elevation_gain),
        speed=derived_metric(kind, float(distance), float(duration)),
    )


def create_workout(
    kind: Any,
    coords: Any,
    distance: Any,
    duration: Any,
    extra: Any,
    *,
    created_at: Optional[datetime] = None,
    workout_id: Optional[str] = None,
) -> AnyWorkout:
    """Dispatch on the discriminant; `extra` is cadence or elevation gain."""
    resolved = WorkoutKind.parse(kind)
    if resolved is WorkoutKind.RUNNING:
        return create_running(
            coords, distance, duration, extra, created_at=created_at, workout_id=workout_id
        )
    return create_cycling(
        coords, distance, duration, extra, created_at=created_at, workout_id=workout_id
    )
