"""Parsing helpers for raw form values and workout input files."""

from __future__ import annotations

import json
import math
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from mapty.core.collaborators import FormInput
from mapty.core.models import Coordinates


def parse_number(value: Any) -> float:
    """Parse a raw form value; empty or non-numeric input becomes NaN."""
    if isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value or "").strip()
    if not text:
        return math.nan
    try:
        return float(text)
    except ValueError:
        return math.nan


def parse_coordinates(value: Any) -> Coordinates:
    """Parse 'LAT,LNG' text or a two-item sequence into coordinates."""
    if isinstance(value, str):
        parts = [part.strip() for part in value.replace(";", ",").split(",")]
    elif isinstance(value, (list, tuple)):
        parts = list(value)
    else:
        raise ValueError(f"Expected LAT,LNG but got {value!r}")

    if len(parts) != 2:
        raise ValueError(f"Expected LAT,LNG but got {value!r}")

    lat, lng = parse_number(parts[0]), parse_number(parts[1])
    if not (math.isfinite(lat) and math.isfinite(lng)):
        raise ValueError(f"Coordinates must be numbers: {value!r}")
    if not (-90 <= lat <= 90 and -180 <= lng <= 180):
        raise ValueError(f"Coordinates out of range: {value!r}")
    return lat, lng


def _raw(value: Any) -> str:
    return "" if value is None else str(value)


def form_input_from_entry(entry: Dict[str, Any]) -> Tuple[FormInput, Optional[Coordinates]]:
    """Map one input-file entry to raw form values and an optional click position."""
    kind = entry.get("type", entry.get("kind", ""))
    elevation = entry.get("elevation", entry.get("elevation_gain", entry.get("elevationGain")))
    form = FormInput(
        kind=_raw(kind),
        distance=_raw(entry.get("distance")),
        duration=_raw(entry.get("duration")),
        cadence=_raw(entry.get("cadence")),
        elevation_gain=_raw(elevation),
    )
    at = entry.get("at", entry.get("coordinates"))
    return form, parse_coordinates(at) if at is not None else None


def load_workout_input(file_path: Optional[Path], read_stdin: bool, stdin_text: str = "") -> List[Dict[str, Any]]:
    """Load workout entries from a JSON/YAML file or stdin text."""
    raw_data: Any
    if file_path:
        text = file_path.read_text()
        if file_path.suffix.lower() in {".yaml", ".yml"}:
            raw_data = yaml.safe_load(text)
        else:
            raw_data = json.loads(text)
    elif read_stdin:
        text = stdin_text.strip()
        if not text:
            return []
        try:
            raw_data = json.loads(text)
        except json.JSONDecodeError:
            raw_data = yaml.safe_load(text)
    else:
        return []

    if isinstance(raw_data, dict):
        if isinstance(raw_data.get("workouts"), list):
            raw_data = raw_data["workouts"]
        else:
            return [raw_data]
    if isinstance(raw_data, list):
        return [item for item in raw_data if isinstance(item, dict)]
    return []
