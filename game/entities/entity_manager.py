"""Owns every player and the ball on one client and applies inbound events."""
from __future__ import annotations

from typing import Any, Callable, Dict, Optional, Tuple

from common.net import position_fields
from game.animation import ClipMixer
from game.components import Position
from game.constants import TEAM_DIRECTIONS
from game.event_bus import EventBus
from game.input_state import InputState
from game.jump import HitPayload, JumpPayload

from .ball import Ball
from .player import Player, PlayerServices

# Returns (mesh handle or None, mixer bound to it) for a new player.
BodyFactory = Callable[[str], Tuple[Any, ClipMixer]]


def _headless_body(pid: str) -> Tuple[Any, ClipMixer]:
    return None, ClipMixer()


class EntityManager:
    """
    Usage:
      manager = EntityManager(services)
      manager.bind(bus)          # subscribe to inbound message types
      manager.update(dt, input)  # once per frame
    """

    INBOUND = (
        "player_id", "initial_players", "player_connected", "player_disconnected",
        "position_update", "animation_update", "player_jump", "player_hit_ball",
        "ball_position", "error",
    )

    def __init__(self, services: PlayerServices, make_body: BodyFactory = _headless_body,
                 on_despawn: Optional[Callable[[Player], None]] = None) -> None:
        self.services = services
        self.make_body = make_body
        self.on_despawn = on_despawn
        self.main_player: Optional[Player] = None
        self.players: Dict[str, Player] = {}
        self.ball = Ball()
        self.error: Optional[str] = None

    # ---------- Wiring ----------
    def bind(self, bus: EventBus) -> None:
        for kind in self.INBOUND:
            bus.subscribe(kind, self.handle)

    def handle(self, msg: Dict[str, Any]) -> None:
        """Apply one decoded message; malformed payloads are logged and dropped."""
        kind = msg.get("type")
        if kind not in self.INBOUND:
            print(f"[net] ignoring message type {kind!r}")
            return
        try:
            getattr(self, f"on_{kind}")(msg)
        except (KeyError, TypeError, ValueError) as e:
            print(f"[net] bad {kind} payload: {e}")

    # ---------- Entities ----------
    def spawn_player(self, pid: str, position: Position, local: bool = False,
                     slot: Optional[int] = None) -> Optional[Player]:
        if pid in self.players:
            return self.players[pid]
        team_direction = TEAM_DIRECTIONS[slot % len(TEAM_DIRECTIONS)] if slot is not None else 1.0
        mesh, mixer = self.make_body(pid)
        try:
            player = Player(pid, self.services, local=local, position=position,
                            team_direction=team_direction, mixer=mixer, mesh=mesh)
        except KeyError as e:
            print(f"[assets] cannot build player {pid}: {e}")
            return None
        self.players[pid] = player
        if local:
            self.main_player = player
        print(f"[join] id={pid} local={local}")
        return player

    def despawn_player(self, pid: str) -> None:
        player = self.players.pop(pid, None)
        if player is None:
            return
        if player is self.main_player:
            self.main_player = None
        if self.on_despawn is not None:
            self.on_despawn(player)
        print(f"[leave] id={pid}")

    def remote(self, pid: str) -> Optional[Player]:
        player = self.players.get(pid)
        if player is None or player.local:
            return None
        return player

    def update(self, dt: float, inputs: Optional[InputState] = None) -> None:
        ball = self.ball.position_tuple()
        for player in list(self.players.values()):
            if player.local:
                player.update(dt, inputs, ball)
            else:
                player.update(dt)

    # ---------- Inbound handlers ----------
    def on_player_id(self, msg: Dict[str, Any]) -> None:
        self.spawn_player(str(msg["id"]), Position(*position_fields(msg["position"])),
                          local=True, slot=msg.get("slot"))

    def on_initial_players(self, msg: Dict[str, Any]) -> None:
        for pid, entry in msg.get("players", {}).items():
            if self.main_player is not None and pid == self.main_player.pid:
                continue
            self.spawn_player(str(pid), Position(*position_fields(entry["position"])),
                              slot=entry.get("slot"))

    def on_player_connected(self, msg: Dict[str, Any]) -> None:
        self.spawn_player(str(msg["id"]), Position(*position_fields(msg["position"])),
                          slot=msg.get("slot"))

    def on_player_disconnected(self, msg: Dict[str, Any]) -> None:
        self.despawn_player(str(msg["id"]))

    def on_position_update(self, msg: Dict[str, Any]) -> None:
        player = self.remote(str(msg["id"]))
        if player is not None:
            player.apply_snapshot(*position_fields(msg["position"]))

    def on_animation_update(self, msg: Dict[str, Any]) -> None:
        player = self.remote(str(msg["id"]))
        if player is not None:
            player.apply_remote_animation(str(msg["name"]))

    def on_player_jump(self, msg: Dict[str, Any]) -> None:
        player = self.remote(str(msg["id"]))
        if player is not None:
            player.apply_remote_jump(JumpPayload.from_wire(msg))

    def on_player_hit_ball(self, msg: Dict[str, Any]) -> None:
        self.ball.apply_hit(str(msg["id"]), HitPayload.from_wire(msg))

    def on_ball_position(self, msg: Dict[str, Any]) -> None:
        self.ball.apply_snapshot(*position_fields(msg["position"]))

    def on_error(self, msg: Dict[str, Any]) -> None:
        self.error = str(msg.get("message", "unknown error"))
        print(f"[net] server error: {self.error}")
