"""Player entity: input gating, movement, jumps and remote event application."""
from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from common.net import make_message, position_to_wire
from game.animation import ActionSpec, AnimationTable, ClipMixer, LinkHooks
from game.animation.chain import SleepFn
from game.animation.table import Spawn
from game.assets import AssetRegistry, Clip
from game.components import JumpState, Position
from game.constants import (
    ACTION_IDLE, ACTION_JUMP, ACTION_RUN, CROSS_FADE_DURATION, GROUND_HEIGHT,
    JUMP_DELAY_FRACTION, MOVE_SPEED, NO_ROTATION, REMOTE_MOVE_EPSILON,
)
from game.input_state import InputState
from game.jump import HitPayload, JumpPayload, JumpTuning, calculate_jump_payload
from game.transform import deg_to_rad, facing_forward_xz, facing_from_delta, move_direction

Vec3 = Tuple[float, float, float]

DEFAULT_ACTIONS: Dict[str, Dict[str, Any]] = {
    ACTION_IDLE: {"clips": [], "cross_fade_to_idle": True},
    ACTION_RUN: {"clips": [ACTION_RUN]},
    ACTION_JUMP: {"clips": [ACTION_JUMP]},
}


class MoveState(Enum):
    IDLE = "idle"
    MOVING = "moving"
    NON_INTERRUPTIBLE = "non_interruptible"


def _drop(msg: Dict[str, Any]) -> None:
    pass


@dataclass
class PlayerServices:
    """Collaborators every player receives from the application root."""
    assets: AssetRegistry
    send: Callable[[Dict[str, Any]], None] = _drop
    sleep: SleepFn = asyncio.sleep
    spawn: Optional[Spawn] = None
    cfg: Dict[str, Any] = field(default_factory=dict)

    def gameplay(self, key: str, default: float) -> float:
        return float(self.cfg.get("gameplay", {}).get(key, default))


class JumpHooks:
    """
    Link hooks for the jump clip.

    Lift-off waits until ``delay_fraction`` of the clip has played, then the
    vertical motion integrates once per tick: ``y += v; v -= gravity``.
    """

    def __init__(self, player: "Player", state: JumpState, clip: Clip, rotation_deg: float,
                 delay_fraction: float, gravity: float, forward: float, ground: float) -> None:
        self.player = player
        self.state = state
        self.delay = max(0.0, delay_fraction) * clip.duration
        self.rotation_offset = deg_to_rad(rotation_deg)
        self.gravity = gravity
        self.forward = forward
        self.ground = ground

    def on_enter(self) -> None:
        p = self.player
        fx, fz = facing_forward_xz(p.facing)
        p.position.x += fx * self.forward
        p.position.z += fz * self.forward
        p.model_rotation_offset = self.rotation_offset
        self.state.elapsed = 0.0
        self.state.active = True

    def on_tick(self, dt: float) -> None:
        if not self.state.active:
            return
        self.state.elapsed += dt
        if self.state.elapsed < self.delay:
            return
        pos = self.player.position
        pos.y += self.state.velocity
        self.state.velocity -= self.gravity
        if pos.y < self.ground:
            pos.y = self.ground

    def on_exit(self) -> None:
        self.state.active = False
        self.state.velocity = 0.0
        p = self.player
        p.model_rotation_offset = 0.0
        p.position.y = self.ground
        p._jump_finished()

    def link_hooks(self) -> LinkHooks:
        return LinkHooks(on_enter=self.on_enter, on_tick=self.on_tick, on_exit=self.on_exit)


class Player:
    """
    A player on the court.

    The local player reads :class:`InputState` each tick and sends its
    intents; remote players only apply server-relayed events. Both share the
    same animation table and jump hooks, so a remote jump replays exactly
    what the jumping client computed.
    """

    def __init__(self, pid: str, services: PlayerServices, local: bool = False,
                 position: Optional[Position] = None, team_direction: float = 1.0,
                 mixer: Optional[ClipMixer] = None, mesh: Any = None) -> None:
        self.pid = pid
        self.local = local
        self.services = services
        self.mesh = mesh
        self.mixer = mixer if mixer is not None else ClipMixer()
        self.position = position.copy() if position is not None else Position()
        self.facing = 0.0
        self.model_rotation_offset = 0.0
        self.team_direction = team_direction
        self.state = MoveState.IDLE
        self.jump = JumpState()

        self.move_speed = services.gameplay("move_speed", MOVE_SPEED)
        self.ground = services.gameplay("ground_height", GROUND_HEIGHT)
        self.remote_epsilon = services.gameplay("remote_move_epsilon", REMOTE_MOVE_EPSILON)
        self.tuning = JumpTuning.from_config(services.cfg.get("gameplay", {}))

        self.table = self._build_table()
        self.table.start_idle()

    # ---------- Construction ----------
    def _build_table(self) -> AnimationTable:
        anim_cfg = self.services.cfg.get("animation", {})
        actions_cfg = anim_cfg.get("actions", DEFAULT_ACTIONS)
        actions = {name: ActionSpec.from_config(entry) for name, entry in actions_cfg.items()}

        hooks: Dict[str, LinkHooks] = {}
        self.jump_hooks: Optional[JumpHooks] = None
        found = self.services.assets.get_clip(ACTION_JUMP)
        if found is not None:
            clip, options = found
            self.jump_hooks = JumpHooks(
                self, self.jump, clip, options.rotation,
                delay_fraction=self.services.gameplay("jump_delay_fraction", JUMP_DELAY_FRACTION),
                gravity=self.tuning.gravity,
                forward=self.tuning.jump_forward_distance,
                ground=self.ground,
            )
            hooks[ACTION_JUMP] = self.jump_hooks.link_hooks()

        return AnimationTable.build(
            self.mixer,
            self.services.assets,
            actions,
            hooks=hooks,
            idle_name=ACTION_IDLE,
            cross_fade=float(anim_cfg.get("cross_fade", CROSS_FADE_DURATION)),
            sleep=self.services.sleep,
            spawn=self.services.spawn,
        )

    # ---------- Per-tick ----------
    def update(self, dt: float, inputs: Optional[InputState] = None,
               ball_position: Optional[Vec3] = None) -> None:
        if self.local and inputs is not None:
            self._handle_input(dt, inputs, ball_position)
        self.table.update(dt)

    @property
    def interruptible(self) -> bool:
        return self.state is not MoveState.NON_INTERRUPTIBLE

    @property
    def heading(self) -> float:
        """Facing plus the cosmetic rotation of the clip being played."""
        return self.facing + self.model_rotation_offset

    # ---------- Local controller ----------
    def _handle_input(self, dt: float, inputs: InputState, ball_position: Optional[Vec3]) -> None:
        if not self.interruptible:
            return

        if inputs.space:
            self.trigger_jump(ball_position)
            return

        dx, dz = move_direction(inputs.a, inputs.d, inputs.w, inputs.s)
        if dx != 0.0 or dz != 0.0:
            self.position.x += dx * self.move_speed * dt
            self.position.z += dz * self.move_speed * dt
            self.facing = facing_from_delta(dx, dz)
            self._send("client_movement", **self._wire_position())
            if self.state is MoveState.IDLE:
                self.state = MoveState.MOVING
                self._play(ACTION_RUN)
        elif self.state is MoveState.MOVING:
            self.state = MoveState.IDLE
            self._play(ACTION_IDLE)

    def trigger_jump(self, ball_position: Optional[Vec3]) -> Optional[JumpPayload]:
        """Start a local jump; returns the payload sent, or None if it could not start."""
        if not self.interruptible:
            return None
        if not self.table.has(ACTION_JUMP):
            print(f"[anim] player {self.pid}: no jump animation; jump ignored")
            return None

        payload = calculate_jump_payload(
            self.position.as_tuple(), self.facing, ball_position,
            team_direction=self.team_direction, tuning=self.tuning,
        )
        self._begin_jump(payload)
        self._send("client_jump", **payload.to_wire())
        if payload.hits_ball and ball_position is not None:
            hit = HitPayload(ball_position=tuple(ball_position), initial_velocity=payload.ball_velocity)
            self._send("client_hit_ball", **hit.to_wire())
        return payload

    def _begin_jump(self, payload: JumpPayload) -> None:
        if payload.rotation != NO_ROTATION:
            self.facing = payload.rotation
        self.jump.velocity = payload.jump_velocity
        self.state = MoveState.NON_INTERRUPTIBLE
        # After a landing the jump chain is still live on its idle link.
        self.table.request(ACTION_JUMP, restart=True)

    def _jump_finished(self) -> None:
        self.state = MoveState.IDLE
        if self.local:
            self._send("client_movement", **self._wire_position())

    # ---------- Remote controller ----------
    def apply_snapshot(self, x: float, y: float, z: float) -> None:
        """Overwrite the position with a server snapshot; no smoothing."""
        dx = x - self.position.x
        dz = z - self.position.z
        self.position.set(x, y, z)
        if not self.interruptible:
            return
        if math.hypot(dx, dz) > self.remote_epsilon:
            self.facing = facing_from_delta(dx, dz)
            if self.state is MoveState.IDLE:
                self.state = MoveState.MOVING
                self.table.request(ACTION_RUN)

    def apply_remote_animation(self, name: str) -> None:
        if not self.interruptible:
            return
        if name == ACTION_JUMP:
            # Jumps only arrive through player_jump, which carries the trajectory.
            return
        if name == self.table.current_name and not self.table.in_transition:
            return
        if not self.table.has(name):
            print(f"[anim] player {self.pid}: unknown remote animation '{name}'")
            return
        self.state = MoveState.IDLE if name == ACTION_IDLE else MoveState.MOVING
        self.table.request(name)

    def apply_remote_jump(self, payload: JumpPayload) -> None:
        if not self.interruptible or not self.table.has(ACTION_JUMP):
            return
        self._begin_jump(payload)

    # ---------- Helpers ----------
    def _play(self, action: str) -> None:
        self.table.request(action)
        self._send("client_animation", name=action)

    def _send(self, kind: str, **fields: Any) -> None:
        if self.local:
            self.services.send(make_message(kind, **fields))

    def _wire_position(self) -> Dict[str, float]:
        return position_to_wire(self.position)
