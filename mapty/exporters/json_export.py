"""JSON export helpers."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Sequence

from mapty.core.models import AnyWorkout
from mapty.core.store import to_record


def write_workouts_json(path: Path, workouts: Sequence[AnyWorkout]) -> Path:
    """Write workouts as pretty JSON in their persisted record shape."""
    payload = {
        "exportedAt": datetime.now().astimezone().isoformat(),
        "count": len(workouts),
        "workouts": [to_record(workout) for workout in workouts],
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n")
    return path
