from __future__ import annotations

import json
from pathlib import Path

import pytest

from mapty.core.config import (
    ConfigError,
    _deep_merge,
    configured_location,
    default_config_path,
    default_data_dir,
    expand_path,
    load_config,
    resolve_output_path,
    resolve_storage_path,
    save_config,
)


def test_deep_merge_nested_dicts() -> None:
    base = {"a": {"b": 1, "c": 2}, "x": 3}
    override = {"a": {"b": 9}, "y": 4}
    merged = _deep_merge(base, override)
    assert merged == {"a": {"b": 9, "c": 2}, "x": 3, "y": 4}
    assert base["a"]["b"] == 1


def test_expand_path_expands_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MAPTY_TMP_PATH", str(tmp_path))
    assert expand_path("$MAPTY_TMP_PATH/config.toml") == (tmp_path / "config.toml").resolve()


def test_default_paths_use_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("MAPTY_CONFIG_FILE", str(tmp_path / "custom.toml"))
    monkeypatch.setenv("MAPTY_DATA_DIR", str(tmp_path / "data"))
    assert default_config_path() == (tmp_path / "custom.toml").resolve()
    assert default_data_dir() == (tmp_path / "data").resolve()


def test_load_config_missing_file_returns_defaults(cli_env: Path) -> None:
    cfg = load_config(cli_env / "missing.toml")
    assert cfg["map"]["zoom"] == 15
    assert cfg["popup"]["max_width"] == 250
    assert cfg["location"]["provider"] == "auto"
    assert cfg["storage"]["path"] == str((cli_env / "data").resolve() / "storage.json")


def test_load_config_from_toml(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text(
        """
[map]
zoom = 12

[location]
latitude = 52.52
longitude = 13.405
""".strip()
        + "\n"
    )
    cfg = load_config(path)
    assert cfg["map"]["zoom"] == 12
    assert cfg["map"]["max_zoom"] == 20
    assert configured_location(cfg) == (52.52, 13.405)


def test_load_config_from_json(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text(json.dumps({"popup": {"min_width": 120}}))
    assert load_config(path)["popup"]["min_width"] == 120


def test_load_config_invalid_toml_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[map\nzoom = ")
    with pytest.raises(ConfigError, match="Invalid TOML"):
        load_config(path)


def test_load_config_invalid_json_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("{")
    with pytest.raises(ConfigError, match="Invalid JSON"):
        load_config(path)


def test_load_config_non_object_root_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.json"
    path.write_text("[]")
    with pytest.raises(ConfigError, match="object/table"):
        load_config(path)


def test_load_config_unknown_provider_raises(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text('[location]\nprovider = "gps"\n')
    with pytest.raises(ConfigError, match="location provider"):
        load_config(path)


def test_configured_location_requires_both_values() -> None:
    assert configured_location({"location": {"latitude": 1.0}}) is None
    with pytest.raises(ConfigError):
        configured_location({"location": {"latitude": "north", "longitude": 2}})


def test_save_config_round_trips_toml(cli_env: Path) -> None:
    cfg = load_config(cli_env / "config.toml")
    cfg["location"]["latitude"] = 52.52
    cfg["location"]["longitude"] = 13.405
    path = save_config(cfg, cli_env / "config.toml")

    text = path.read_text()
    assert "[location]" in text
    assert 'tile_url = "http://{s}.google.com/vt/lyrs=m&x={x}&y={y}&z={z}"' in text
    reloaded = load_config(path)
    assert configured_location(reloaded) == (52.52, 13.405)
    assert reloaded["map"]["subdomains"] == ["mt0", "mt1", "mt2", "mt3"]


def test_save_config_json(tmp_path: Path) -> None:
    path = save_config({"map": {"zoom": 10}}, tmp_path / "nested" / "config.json")
    assert json.loads(path.read_text()) == {"map": {"zoom": 10}}


def test_resolve_storage_path_env_overrides_config(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    cfg = {"storage": {"path": str(tmp_path / "from-config.json")}}
    monkeypatch.delenv("MAPTY_STORAGE", raising=False)
    assert resolve_storage_path(cfg) == (tmp_path / "from-config.json").resolve()
    monkeypatch.setenv("MAPTY_STORAGE", str(tmp_path / "from-env.json"))
    assert resolve_storage_path(cfg) == (tmp_path / "from-env.json").resolve()


def test_resolve_output_path_prefers_explicit(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.delenv("MAPTY_EXPORT_FILE", raising=False)
    cfg = {"export": {"default_file": str(tmp_path / "default.json")}}
    assert resolve_output_path(cfg) == (tmp_path / "default.json").resolve()
    assert resolve_output_path(cfg, tmp_path / "out.json") == (tmp_path / "out.json").resolve()


@pytest.mark.parametrize(
    "body, message",
    [
        ('[location]\nlatitude = "north"\nlongitude = 13.4\n', "Invalid \\[location\\] latitude"),
        ("[location]\nlatitude = 200\nlongitude = 13.4\n", "latitude 200 out of range"),
        ("[location]\nlatitude = 52.5\nlongitude = -181\n", "longitude -181 out of range"),
        ('[map]\nzoom = "close"\n', "Invalid \\[map\\] zoom"),
        ("[map]\nzoom = 12.5\n", "whole number"),
        ("[map]\npan_duration = -1\n", "pan_duration"),
        ("[popup]\nmax_width = 0\n", "max_width must be positive"),
        ("[popup]\nmin_width = true\n", "Invalid \\[popup\\] min_width"),
        ("[geolocation]\ntimeout_seconds = 0\n", "timeout_seconds"),
        ("[geolocation]\nmax_retries = 1.5\n", "max_retries"),
        ('map = "osm"\n', "\\[map\\] must be a table"),
    ],
)
def test_load_config_rejects_bad_values(tmp_path: Path, body: str, message: str) -> None:
    path = tmp_path / "config.toml"
    path.write_text(body)
    with pytest.raises(ConfigError, match=message):
        load_config(path)


def test_load_config_accepts_boundary_location(tmp_path: Path) -> None:
    path = tmp_path / "config.toml"
    path.write_text("[location]\nlatitude = -90\nlongitude = 180\n")
    assert configured_location(load_config(path)) == (-90.0, 180.0)
