from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest
from typer.testing import CliRunner

from mapty.core.collaborators import FormInput, PopupOptions
from mapty.core.controller import SessionController
from mapty.core.errors import GeolocationError, StorageError
from mapty.core.storage import MemoryStorage
from mapty.core.store import WorkoutStore

BERLIN = (52.52, 13.405)


class FakeMap:
    def __init__(self) -> None:
        self.calls: List[Tuple[str, Any]] = []
        self.click_handlers: List[Callable[[Any], None]] = []
        self.markers: List[Dict[str, Any]] = []
        self.pans: List[Dict[str, Any]] = []

    def initialize(self, center, zoom):
        self.calls.append(("initialize", (center, zoom)))
        return {"center": center, "zoom": zoom}

    def add_tile_layer(self, url_template: str, options: Dict[str, Any]) -> None:
        self.calls.append(("add_tile_layer", (url_template, options)))

    def on_click(self, handler) -> None:
        self.click_handlers.append(handler)

    def click(self, coords) -> None:
        for handler in list(self.click_handlers):
            handler(coords)

    def add_marker(self, coords):
        marker = {"coords": coords}
        self.markers.append(marker)
        return marker

    def bind_popup(self, marker, content: str, options: PopupOptions) -> None:
        marker["content"] = content
        marker["options"] = options

    def pan_to(self, coords, zoom: int, animate: bool = True, duration: float = 1.0) -> None:
        self.pans.append({"coords": coords, "zoom": zoom, "animate": animate, "duration": duration})


class FakeForm:
    def __init__(self) -> None:
        self.visible = False
        self.cleared = 0
        self.fields_for: Optional[str] = None
        self.handlers: List[Callable[[FormInput], Any]] = []

    def show(self) -> None:
        self.visible = True

    def hide(self) -> None:
        self.visible = False

    def clear(self) -> None:
        self.cleared += 1

    def show_fields_for(self, kind: str) -> None:
        self.fields_for = kind

    def on_submit(self, handler) -> None:
        self.handlers.append(handler)

    def submit(self, values: FormInput):
        return self.handlers[-1](values)


class FakeList:
    def __init__(self) -> None:
        self.rendered: List[Any] = []

    def render(self, workout) -> None:
        self.rendered.append(workout)

    def clear(self) -> None:
        self.rendered = []


class FakeNotifier:
    def __init__(self) -> None:
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.infos: List[str] = []

    def error(self, message: str) -> None:
        self.errors.append(message)

    def warning(self, message: str) -> None:
        self.warnings.append(message)

    def info(self, message: str) -> None:
        self.infos.append(message)


class DeferredGeolocation:
    """Holds callbacks until the test resolves the request."""

    def __init__(self) -> None:
        self.requests: List[Tuple[Callable, Callable]] = []

    def request_current_position(self, on_success, on_error) -> None:
        self.requests.append((on_success, on_error))

    def succeed(self, coords=BERLIN, index: int = -1) -> None:
        self.requests[index][0](coords)

    def fail(self, reason: str = "User denied Geolocation", index: int = -1) -> None:
        self.requests[index][1](GeolocationError(reason))


class FailingStorage(MemoryStorage):
    def set_item(self, key: str, value: str) -> None:
        raise StorageError("disk full")


class Harness:
    def __init__(self, storage: Optional[MemoryStorage] = None) -> None:
        self.map = FakeMap()
        self.form = FakeForm()
        self.list = FakeList()
        self.notifier = FakeNotifier()
        self.geolocation = DeferredGeolocation()
        self.storage = storage if storage is not None else MemoryStorage()
        self.store = WorkoutStore(self.storage)
        self.controller = SessionController(
            map_view=self.map,
            form=self.form,
            workout_list=self.list,
            geolocation=self.geolocation,
            store=self.store,
            notifier=self.notifier,
        )

    def ready(self, coords=BERLIN) -> "Harness":
        self.controller.start()
        self.geolocation.succeed(coords)
        return self


@pytest.fixture()
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture()
def created_at() -> datetime:
    return datetime(2026, 10, 18, 7, 45, 12, 123456, tzinfo=timezone.utc)


@pytest.fixture()
def harness() -> Harness:
    return Harness()


@pytest.fixture()
def failing_storage() -> FailingStorage:
    return FailingStorage()


@pytest.fixture()
def make_harness() -> Callable[..., Harness]:
    return Harness


@pytest.fixture()
def running_form() -> FormInput:
    return FormInput(kind="running", distance="5.2", duration="24", cadence="178")


@pytest.fixture()
def cycling_form() -> FormInput:
    return FormInput(kind="cycling", distance="27", duration="95", elevation_gain="523")


@pytest.fixture()
def cli_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate config and storage under tmp_path."""
    monkeypatch.setenv("MAPTY_CONFIG_FILE", str(tmp_path / "config.toml"))
    monkeypatch.setenv("MAPTY_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("MAPTY_STORAGE", raising=False)
    monkeypatch.delenv("MAPTY_EXPORT_FILE", raising=False)
    return tmp_path


@pytest.fixture()
def write_temp_json(tmp_path: Path):
    def _write(name: str, payload: Any) -> Path:
        path = tmp_path / name
        path.write_text(json.dumps(payload, indent=2) + "\n")
        return path

    return _write
