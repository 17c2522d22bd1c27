"""Key/value storage backends for persisted workouts."""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

from mapty.core.errors import StorageError

logger = logging.getLogger(__name__)


class MemoryStorage:
    """Process-local storage, used for tests and dry runs."""

    def __init__(self, items: Optional[Dict[str, str]] = None) -> None:
        self._items: Dict[str, str] = dict(items or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class JsonFileStorage:
    """Durable string store kept as one JSON object on disk.

    Writes go to a temporary file in the same directory and are moved into
    place, so a crash mid-write leaves the previous contents intact.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Ignoring unreadable storage file %s: %s", self.path, exc)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring storage file %s without an object at the root", self.path)
            return {}
        return {str(key): value for key, value in data.items() if isinstance(value, str)}

    def _write_all(self, items: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, temp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}-",
                suffix=".tmp",
                dir=str(self.path.parent),
            )
            tmp_path = Path(temp_name)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as handle:
                    json.dump(items, handle, indent=2)
                    handle.write("\n")
                os.replace(tmp_path, self.path)
            finally:
                tmp_path.unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Failed to write storage file {self.path}: {exc}") from exc

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        items = self._read_all()
        items[key] = value
        self._write_all(items)
        logger.debug("Stored %d bytes under %r in %s", len(value), key, self.path)

    def remove_item(self, key: str) -> None:
        items = self._read_all()
        if key not in items:
            return
        del items[key]
        self._write_all(items)
