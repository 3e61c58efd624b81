"""JSON configuration loading shared by the server and the client."""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Union

DEFAULT_CONFIG_PATH = Path(__file__).resolve().parent.parent / "configs" / "defaults.json"


def load_config(path: Union[str, Path, None] = None) -> Dict[str, Any]:
    """Read a JSON config file; a missing file raises, a missing default path yields {}."""
    if path is None:
        try:
            with DEFAULT_CONFIG_PATH.open("r", encoding="utf-8") as handle:
                return json.load(handle)
        except FileNotFoundError:
            return {}
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def get(cfg: Dict[str, Any], path: str, default: Any = None) -> Any:
    """Return a config value using dotted paths, or default when missing."""
    if not path:
        return cfg

    current: Any = cfg
    for segment in path.split('.'):
        if isinstance(current, dict) and segment in current:
            current = current[segment]
        else:
            return default
    return current


def get_float(cfg: Dict[str, Any], path: str, default: float) -> float:
    value = get(cfg, path, default)
    try:
        return float(value)
    except (TypeError, ValueError):
        print(f"[config] {path}={value!r} is not a number; using {default}")
        return float(default)
