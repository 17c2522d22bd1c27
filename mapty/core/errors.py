"""Error types shared by the model, store and controller."""

from __future__ import annotations

from typing import Iterable


class MaptyError(RuntimeError):
    """Base class for mapty failures."""


class ValidationError(MaptyError):
    """Raised when workout input is non-finite or violates a constraint."""

    def __init__(self, fields: Iterable[str], message: str = "") -> None:
        self.fields = frozenset(fields)
        if not message:
            message = f"Invalid value for: {', '.join(sorted(self.fields))}"
        super().__init__(message)


class GeolocationError(MaptyError):
    """Raised when the current position cannot be acquired."""


class StorageError(MaptyError):
    """Raised when persisted workouts cannot be written or removed."""


class StorageReadError(StorageError):
    """Raised when persisted workouts are malformed."""


class SessionStateError(MaptyError):
    """Raised when a controller operation is invoked in the wrong state."""
