# game/jump.py
"""Jump trajectory and ball-contact payloads sent by the controlling client."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .constants import (
    BALL_HEIGHT_CEILING, BALL_HIT_DEPTH, BALL_HIT_HORIZONTAL, BALL_HIT_VERTICAL,
    GRAVITY, HIT_RANGE, JUMP_FORWARD_DISTANCE, MAX_JUMP_VELOCITY, NO_ROTATION,
)
from .transform import distance3, facing_forward_xz, unit_toward

Vec3 = Tuple[float, float, float]


@dataclass(frozen=True)
class JumpTuning:
    gravity: float = GRAVITY
    max_jump_velocity: float = MAX_JUMP_VELOCITY
    jump_forward_distance: float = JUMP_FORWARD_DISTANCE
    hit_range: float = HIT_RANGE
    ball_height_ceiling: float = BALL_HEIGHT_CEILING

    @classmethod
    def from_config(cls, gameplay: Dict[str, Any]) -> "JumpTuning":
        return cls(
            gravity=float(gameplay.get("gravity", GRAVITY)),
            max_jump_velocity=float(gameplay.get("max_jump_velocity", MAX_JUMP_VELOCITY)),
            jump_forward_distance=float(gameplay.get("jump_forward_distance", JUMP_FORWARD_DISTANCE)),
            hit_range=float(gameplay.get("hit_range", HIT_RANGE)),
            ball_height_ceiling=float(gameplay.get("ball_height_ceiling", BALL_HEIGHT_CEILING)),
        )


@dataclass(frozen=True)
class JumpPayload:
    rotation: float          # radians; NO_ROTATION keeps the current facing
    jump_velocity: float
    ball_velocity: Optional[Vec3] = None

    @property
    def hits_ball(self) -> bool:
        return self.ball_velocity is not None

    def to_wire(self) -> Dict[str, float]:
        return {"rotation": self.rotation, "jumpVelocity": self.jump_velocity}

    @classmethod
    def from_wire(cls, obj: Dict[str, Any]) -> "JumpPayload":
        return cls(rotation=float(obj["rotation"]), jump_velocity=float(obj["jumpVelocity"]))


@dataclass(frozen=True)
class HitPayload:
    ball_position: Vec3
    initial_velocity: Vec3

    def to_wire(self) -> Dict[str, Any]:
        x, y, z = self.ball_position
        return {"ballPosition": {"x": x, "y": y, "z": z}, "initialVelocity": list(self.initial_velocity)}

    @classmethod
    def from_wire(cls, obj: Dict[str, Any]) -> "HitPayload":
        bp = obj["ballPosition"]
        vx, vy, vz = obj["initialVelocity"]
        return cls(
            ball_position=(float(bp["x"]), float(bp["y"]), float(bp["z"])),
            initial_velocity=(float(vx), float(vy), float(vz)),
        )


def jump_takeoff_point(position: Vec3, facing: float, forward: float) -> Vec3:
    fx, fz = facing_forward_xz(facing)
    return (position[0] + fx * forward, position[1], position[2] + fz * forward)


def required_jump_velocity(height: float, gravity: float) -> float:
    """Launch speed (per tick) whose apex under ``gravity`` reaches ``height``."""
    return math.sqrt(2.0 * gravity * max(0.0, height))


def calculate_jump_payload(
    position: Vec3,
    facing: float,
    ball_position: Optional[Vec3],
    team_direction: float = 1.0,
    tuning: JumpTuning = JumpTuning(),
) -> JumpPayload:
    """
    Decide how the controlling player jumps and whether the ball is struck.

    The player lunges ``jump_forward_distance`` along its facing. If the ball
    is within ``hit_range`` of that take-off point and not above the height
    ceiling, the player turns toward it, jumps just high enough to reach it
    (capped at ``max_jump_velocity``) and sends it over the net. Otherwise it
    is a plain maximum-height jump with no change of facing.
    """
    miss = JumpPayload(rotation=NO_ROTATION, jump_velocity=tuning.max_jump_velocity)
    if ball_position is None:
        return miss

    takeoff = jump_takeoff_point(position, facing, tuning.jump_forward_distance)
    if distance3(takeoff, ball_position) > tuning.hit_range:
        return miss
    if ball_position[1] > tuning.ball_height_ceiling:
        return miss

    ux, uy, uz = unit_toward(takeoff, ball_position)
    rotation = math.atan2(ux, uz)
    ball_velocity = (ux * BALL_HIT_HORIZONTAL, BALL_HIT_VERTICAL, -BALL_HIT_DEPTH * team_direction)
    needed = required_jump_velocity(ball_position[1] - takeoff[1], tuning.gravity)
    return JumpPayload(
        rotation=rotation,
        jump_velocity=min(needed, tuning.max_jump_velocity),
        ball_velocity=ball_velocity,
    )
