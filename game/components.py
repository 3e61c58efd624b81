"""Plain state containers shared by entities, hooks and the server."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass
class Position:
    """Authoritative spatial state of an entity (Y up)."""
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def as_tuple(self) -> Tuple[float, float, float]:
        return (self.x, self.y, self.z)

    def set(self, x: float, y: float, z: float) -> None:
        self.x, self.y, self.z = float(x), float(y), float(z)

    def copy(self) -> "Position":
        return Position(self.x, self.y, self.z)


@dataclass
class JumpState:
    """Per-player jump timer and vertical velocity, owned by that player's jump hooks."""
    elapsed: float = 0.0
    velocity: float = 0.0
    active: bool = False
