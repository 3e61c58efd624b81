"""Client-side ball: a position mirrored from server snapshots."""
from __future__ import annotations

from typing import Any, Optional, Tuple

from game.components import Position
from game.constants import BALL_FLOOR, BALL_RADIUS
from game.jump import HitPayload


class Ball:
    def __init__(self, radius: float = BALL_RADIUS, mesh: Any = None) -> None:
        self.radius = radius
        self.mesh = mesh
        self.position = Position(0.0, BALL_FLOOR, 0.0)
        self.last_hit_by: Optional[str] = None

    def apply_snapshot(self, x: float, y: float, z: float) -> None:
        self.position.set(x, y, z)

    def apply_hit(self, pid: str, hit: HitPayload) -> None:
        # The server streams the flight; a hit only re-anchors the start point.
        self.position.set(*hit.ball_position)
        self.last_hit_by = pid

    def position_tuple(self) -> Tuple[float, float, float]:
        return self.position.as_tuple()
