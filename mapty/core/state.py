"""Runtime state container for CLI context."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from rich.console import Console


@dataclass
class CLIState:
    """Global options, loaded configuration and resolved paths."""

    json_output: bool
    plain_output: bool
    verbose: bool
    quiet: bool
    config_path: Path
    config: Dict[str, Any]
    console: Console
    storage_path: Path
    location: Optional[Tuple[float, float]] = None
