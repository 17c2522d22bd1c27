"""Configuration loading and persistence."""

from __future__ import annotations

import copy
import json
import math
import os
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

try:  # Python 3.11+
    import tomllib  # type: ignore[attr-defined]
except ModuleNotFoundError:  # Python 3.9-3.10
    import tomli as tomllib  # type: ignore[no-redef]

from mapty.core.constants import (
    IP_GEOLOCATION_URL,
    MAP_ZOOM,
    PAN_DURATION_SECONDS,
    POPUP_MAX_WIDTH,
    POPUP_MIN_WIDTH,
    TILE_MAX_ZOOM,
    TILE_SUBDOMAINS,
    TILE_URL,
)


class ConfigError(RuntimeError):
    """Raised when config file parsing fails."""


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def expand_path(path_str: str) -> Path:
    """Expand user/env vars and return absolute path."""
    return Path(os.path.expandvars(path_str)).expanduser().resolve()


def default_data_dir() -> Path:
    """Resolve XDG-style data directory with env override."""
    raw = os.getenv("MAPTY_DATA_DIR", "~/.local/share/mapty")
    return expand_path(raw)


def default_config_path() -> Path:
    """Get default config file path."""
    raw = os.getenv("MAPTY_CONFIG_FILE", "~/.config/mapty/config.toml")
    return expand_path(raw)


def _default_config() -> Dict[str, Any]:
    data_dir = default_data_dir()
    return {
        "storage": {
            "path": str(data_dir / "storage.json"),
        },
        "map": {
            "zoom": MAP_ZOOM,
            "tile_url": TILE_URL,
            "max_zoom": TILE_MAX_ZOOM,
            "subdomains": list(TILE_SUBDOMAINS),
            "pan_duration": PAN_DURATION_SECONDS,
        },
        "popup": {
            "max_width": POPUP_MAX_WIDTH,
            "min_width": POPUP_MIN_WIDTH,
            "auto_close": False,
            "close_on_click": False,
        },
        "location": {
            "provider": "auto",
            "latitude": None,
            "longitude": None,
        },
        "geolocation": {
            "url": IP_GEOLOCATION_URL,
            "timeout_seconds": 10,
            "max_retries": 2,
        },
        "export": {
            "default_file": "./workouts.json",
        },
    }


def _read_config(path: Path) -> Dict[str, Any]:
    suffix = path.suffix.lower()
    text = path.read_text()
    try:
        if suffix in {".toml", ""}:
            loaded = tomllib.loads(text)
        else:
            loaded = json.loads(text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid JSON in config file {path}: {exc}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Invalid TOML in config file {path}: {exc}") from exc

    if not isinstance(loaded, dict):
        raise ConfigError(f"Config file {path} must contain an object/table at the root")
    return loaded


def _number(section: str, key: str, value: Any, path: Path) -> float:
    if isinstance(value, bool):
        raise ConfigError(f"Invalid [{section}] {key} {value!r} in {path}")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid [{section}] {key} {value!r} in {path}") from exc
    if not math.isfinite(number):
        raise ConfigError(f"Invalid [{section}] {key} {value!r} in {path}")
    return number


def _validate_config(cfg: Dict[str, Any], path: Path) -> None:
    for section in ("storage", "map", "popup", "location", "geolocation", "export"):
        if not isinstance(cfg.get(section), dict):
            raise ConfigError(f"[{section}] must be a table in {path}")

    location = cfg.get("location", {})
    provider = str(location.get("provider", "auto"))
    if provider not in {"auto", "static", "ip"}:
        raise ConfigError(f"Unknown location provider {provider!r} in {path}")

    for key, bound in (("latitude", 90.0), ("longitude", 180.0)):
        value = location.get(key)
        if value is not None and abs(_number("location", key, value, path)) > bound:
            raise ConfigError(f"[location] {key} {value!r} out of range in {path}")

    map_cfg = cfg.get("map", {})
    for key in ("zoom", "max_zoom"):
        value = map_cfg.get(key)
        if value is not None and not _number("map", key, value, path).is_integer():
            raise ConfigError(f"[map] {key} must be a whole number in {path}")
    pan_duration = map_cfg.get("pan_duration")
    if pan_duration is not None and _number("map", "pan_duration", pan_duration, path) < 0:
        raise ConfigError(f"[map] pan_duration must not be negative in {path}")

    popup_cfg = cfg.get("popup", {})
    for key in ("max_width", "min_width"):
        value = popup_cfg.get(key)
        if value is not None and _number("popup", key, value, path) <= 0:
            raise ConfigError(f"[popup] {key} must be positive in {path}")

    geo_cfg = cfg.get("geolocation", {})
    if _number("geolocation", "timeout_seconds", geo_cfg.get("timeout_seconds", 10), path) <= 0:
        raise ConfigError(f"[geolocation] timeout_seconds must be positive in {path}")
    retries = _number("geolocation", "max_retries", geo_cfg.get("max_retries", 2), path)
    if retries < 0 or not retries.is_integer():
        raise ConfigError(f"[geolocation] max_retries must be a non-negative whole number in {path}")


def load_config(path: Optional[Path] = None) -> Dict[str, Any]:
    """Load configuration from disk, merged with defaults."""
    cfg_path = path or default_config_path()
    cfg = _default_config()

    if cfg_path.exists():
        cfg = _deep_merge(cfg, _read_config(cfg_path))

    _validate_config(cfg, cfg_path)
    return cfg


def _toml_literal(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        escaped = value.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'
    if isinstance(value, list):
        items = ", ".join(_toml_literal(item) for item in value if item is not None)
        return f"[{items}]"
    raise TypeError(f"Unsupported TOML value type: {type(value)!r}")


def _dict_to_toml(data: Dict[str, Any], prefix: Optional[str] = None) -> str:
    lines = []
    plain_keys = []
    nested_keys = []

    for key, value in data.items():
        if value is None:
            continue
        if isinstance(value, dict):
            nested_keys.append((key, value))
        else:
            plain_keys.append((key, value))

    if prefix is not None:
        lines.append(f"[{prefix}]")

    for key, value in plain_keys:
        lines.append(f"{key} = {_toml_literal(value)}")

    if plain_keys and nested_keys:
        lines.append("")

    for index, (key, value) in enumerate(nested_keys):
        table_name = key if prefix is None else f"{prefix}.{key}"
        lines.append(_dict_to_toml(value, prefix=table_name))
        if index != len(nested_keys) - 1:
            lines.append("")

    return "\n".join(lines)


def save_config(config: Dict[str, Any], path: Optional[Path] = None) -> Path:
    """Save configuration to disk as TOML (default) or JSON."""
    cfg_path = path or default_config_path()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)

    if cfg_path.suffix.lower() == ".json":
        cfg_path.write_text(json.dumps(config, indent=2) + "\n")
        return cfg_path

    cfg_path.write_text(_dict_to_toml(config).strip() + "\n")
    return cfg_path


def resolve_storage_path(config: Dict[str, Any]) -> Path:
    """Resolve the workout storage file from env/config."""
    raw = os.getenv("MAPTY_STORAGE") or config.get("storage", {}).get("path")
    if not raw:
        raw = str(default_data_dir() / "storage.json")
    return expand_path(raw)


def resolve_output_path(config: Dict[str, Any], explicit: Optional[Path] = None) -> Path:
    """Resolve export file path with CLI override first."""
    if explicit is not None:
        return explicit.expanduser().resolve()
    raw = os.getenv("MAPTY_EXPORT_FILE") or config.get("export", {}).get(
        "default_file",
        "./workouts.json",
    )
    return expand_path(raw)


def configured_location(config: Dict[str, Any]) -> Optional[Tuple[float, float]]:
    """Return (lat, lng) from the [location] table when both are set."""
    location = config.get("location", {})
    lat, lng = location.get("latitude"), location.get("longitude")
    if lat is None or lng is None:
        return None
    try:
        return float(lat), float(lng)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"Invalid [location] coordinates: {lat!r}, {lng!r}") from exc
