"""Serialize the ordered workout collection and rehydrate it on load."""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Any, Dict, List, Sequence

from mapty.core.collaborators import KeyValueStorage
from mapty.core.constants import STORAGE_KEY
from mapty.core.errors import StorageError, StorageReadError, ValidationError
from mapty.core.models import AnyWorkout, Running, WorkoutKind, create_workout

logger = logging.getLogger(__name__)


def to_record(workout: AnyWorkout) -> Dict[str, Any]:
    """Flatten a workout into its persisted camelCase record."""
    record: Dict[str, Any] = {
        "kind": workout.kind.value,
        "id": workout.id,
        "createdAt": workout.created_at.isoformat(),
        "coordinates": list(workout.coordinates),
        "distance": workout.distance,
        "duration": workout.duration,
        "description": workout.description,
    }
    if isinstance(workout, Running):
        record["cadence"] = workout.cadence
        record["pace"] = workout.pace
    else:
        record["elevationGain"] = workout.elevation_gain
        record["speed"] = workout.speed
    return record


def from_record(record: Any) -> AnyWorkout:
    """Rebuild a workout through the validated factories.

    Stored description and pace/speed are ignored and recomputed.
    """
    if not isinstance(record, dict):
        raise StorageReadError(f"Workout record must be an object, got {type(record).__name__}")
    try:
        kind = WorkoutKind.parse(record["kind"])
        extra_key = "cadence" if kind is WorkoutKind.RUNNING else "elevationGain"
        return create_workout(
            kind,
            tuple(record["coordinates"]),
            record["distance"],
            record["duration"],
            record[extra_key],
            created_at=datetime.fromisoformat(str(record["createdAt"])),
            workout_id=record["id"],
        )
    except KeyError as exc:
        raise StorageReadError(f"Workout record is missing field {exc}") from exc
    except (TypeError, ValueError, ValidationError) as exc:
        raise StorageReadError(f"Invalid workout record {record.get('id')!r}: {exc}") from exc


class WorkoutStore:
    """Persist workouts under a single key of a key/value storage."""

    def __init__(self, storage: KeyValueStorage, key: str = STORAGE_KEY) -> None:
        self.storage = storage
        self.key = key

    def save(self, workouts: Sequence[AnyWorkout]) -> None:
        payload = json.dumps([to_record(workout) for workout in workouts])
        try:
            self.storage.set_item(self.key, payload)
        except StorageError:
            raise
        except (OSError, TypeError, ValueError) as exc:
            raise StorageError(f"Failed to save workouts: {exc}") from exc

    def _decode(self, raw: str) -> List[AnyWorkout]:
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError) as exc:
            raise StorageReadError(f"Stored workouts are not valid JSON: {exc}") from exc
        if not isinstance(data, list):
            raise StorageReadError("Stored workouts must be a JSON array")
        return [from_record(item) for item in data]

    def load(self) -> List[AnyWorkout]:
        """Return stored workouts in order; unreadable data yields an empty list."""
        try:
            raw = self.storage.get_item(self.key)
        except (OSError, StorageError) as exc:
            logger.warning("Could not read stored workouts: %s", exc)
            return []
        if raw is None:
            return []

        try:
            workouts = self._decode(raw)
        except StorageReadError as exc:
            logger.warning("Discarding stored workouts: %s", exc)
            return []
        logger.debug("Loaded %d workout(s) from storage", len(workouts))
        return workouts

    def clear(self) -> None:
        try:
            self.storage.remove_item(self.key)
        except StorageError:
            raise
        except OSError as exc:
            raise StorageError(f"Failed to clear workouts: {exc}") from exc
