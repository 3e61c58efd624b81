"""Clip and mesh registry consumed read-only by the animation core."""
from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union


@dataclass(frozen=True)
class Clip:
    """A named skeletal animation sample with a fixed duration (seconds)."""
    name: str
    duration: float


@dataclass(frozen=True)
class ClipOptions:
    loopable: bool = True
    rotation: float = 0.0  # degrees, cosmetic model offset while the clip plays


class AssetRegistry:
    """
    Holds the clips and skinned meshes a client has loaded.

    The registry is constructed once at the application root and handed to
    every entity that needs it. Lookups of unknown names log and return None;
    callers treat that as "skip", never as a crash.
    """

    def __init__(self) -> None:
        self._clips: Dict[str, Tuple[Clip, ClipOptions]] = {}
        self._meshes: Dict[str, Any] = {}
        self._missing_logged: set[str] = set()

    # ---------- Registration ----------
    def register_clip(self, clip: Clip, options: Optional[ClipOptions] = None) -> None:
        self._clips[clip.name] = (clip, options or ClipOptions())

    def register_mesh(self, name: str, mesh: Any) -> None:
        self._meshes[name] = mesh

    def load_manifest(self, path: Union[str, Path], durations: Optional[Dict[str, float]] = None) -> int:
        """
        Register every clip listed in an animations manifest.

        Clip durations come from ``durations`` when given (e.g. measured on a
        loaded Actor) and otherwise from the manifest's ``duration`` field.
        Entries with neither are skipped. Returns the number registered.
        """
        with open(path, "r", encoding="utf-8") as handle:
            manifest = json.load(handle)
        count = 0
        for name, entry in manifest.get("animations", {}).items():
            duration = (durations or {}).get(name, entry.get("duration"))
            if duration is None:
                print(f"[assets] animation '{name}' has no duration; skipped")
                continue
            opts = entry.get("options", {})
            self.register_clip(
                Clip(name=name, duration=float(duration)),
                ClipOptions(
                    loopable=bool(opts.get("loopable", True)),
                    rotation=float(opts.get("rotation", 0.0)),
                ),
            )
            count += 1
        return count

    # ---------- Queries ----------
    def get_clip(self, name: str) -> Optional[Tuple[Clip, ClipOptions]]:
        found = self._clips.get(name)
        if found is None:
            self._log_missing("animation", name)
        return found

    def get_skinned_entity(self, name: str) -> Optional[Any]:
        mesh = self._meshes.get(name)
        if mesh is None:
            self._log_missing("mesh", name)
        return mesh

    def clip_names(self) -> list[str]:
        return list(self._clips)

    def _log_missing(self, kind: str, name: str) -> None:
        key = f"{kind}:{name}"
        if key not in self._missing_logged:
            self._missing_logged.add(key)
            print(f"[assets] {kind} '{name}' not found")
