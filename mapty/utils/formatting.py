"""Formatting helpers used by map popups, list entries and console output."""

from __future__ import annotations

from typing import List, Tuple

from mapty.core.constants import (
    CADENCE_ICON,
    DURATION_ICON,
    ELEVATION_ICON,
    KIND_ICONS,
    METRIC_ICON,
)
from mapty.core.models import AnyWorkout, Running

Detail = Tuple[str, str, str]


def format_value(value: float) -> str:
    """Format a user-entered number without trailing zeros."""
    return f"{value:g}"


def format_coordinates(coords: Tuple[float, float]) -> str:
    lat, lng = coords
    return f"{lat:.5f}, {lng:.5f}"


def kind_icon(kind: str) -> str:
    return KIND_ICONS.get(kind, "")


def popup_content(workout: AnyWorkout) -> str:
    """Text shown in the marker popup, e.g. '🏃 Running on October 18'."""
    return f"{kind_icon(workout.kind.value)} {workout.description}"


def popup_class_name(workout: AnyWorkout) -> str:
    return f"{workout.kind.value}-popup"


def workout_details(workout: AnyWorkout) -> List[Detail]:
    """Return (icon, value, unit) rows for a list entry."""
    details: List[Detail] = [
        (kind_icon(workout.kind.value), format_value(workout.distance), "km"),
        (DURATION_ICON, format_value(workout.duration), "min"),
    ]
    if isinstance(workout, Running):
        details.append((METRIC_ICON, f"{workout.pace:.1f}", "min/km"))
        details.append((CADENCE_ICON, str(workout.cadence), "spm"))
    else:
        details.append((METRIC_ICON, f"{workout.speed:.1f}", "km/h"))
        details.append((ELEVATION_ICON, format_value(workout.elevation_gain), "m"))
    return details


def format_details(workout: AnyWorkout) -> str:
    """One-line summary of a list entry."""
    return "  ".join(f"{icon} {value} {unit}".strip() for icon, value, unit in workout_details(workout))
