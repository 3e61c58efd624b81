"""Keyboard state owned by the client app and read by the local player."""
from __future__ import annotations

from dataclasses import dataclass


@dataclass
class InputState:
    w: bool = False
    a: bool = False
    s: bool = False
    d: bool = False
    space: bool = False

    KEYS = ("w", "a", "s", "d", "space")

    def set_key(self, key: str, down: bool) -> None:
        if key == " ":
            key = "space"
        if key in self.KEYS:
            setattr(self, key, bool(down))
