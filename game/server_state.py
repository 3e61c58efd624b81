# game/server_state.py
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from .components import Position
from .constants import BALL_DRAG, BALL_FLOOR, GRAVITY, NUM_PLAYER_SLOTS


@dataclass
class SlotPlayer:
    id: str
    position: Position
    slot: int = 0

    def to_wire(self) -> Dict:
        return {
            "id": self.id,
            "position": {"x": self.position.x, "y": self.position.y, "z": self.position.z},
            "slot": self.slot,
        }


class PlayerSlotTable:
    """Fixed-capacity seating for connected players, keyed by connection id."""

    def __init__(self, capacity: int = NUM_PLAYER_SLOTS):
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.capacity = capacity
        self._players: Dict[str, SlotPlayer] = {}

    def __len__(self) -> int:
        return len(self._players)

    def __contains__(self, pid: str) -> bool:
        return pid in self._players

    @property
    def full(self) -> bool:
        return len(self._players) >= self.capacity

    def add_player(self, pid: str, position: Position) -> bool:
        """Seat a player; False when every slot is taken or the id is already seated."""
        if self.full or pid in self._players:
            return False
        taken = {p.slot for p in self._players.values()}
        slot = next(i for i in range(self.capacity) if i not in taken)
        self._players[pid] = SlotPlayer(id=pid, position=position.copy(), slot=slot)
        return True

    def remove_player(self, pid: str) -> None:
        self._players.pop(pid, None)

    def update_player_position(self, pid: str, position: Position) -> None:
        p = self._players.get(pid)
        if p is not None:
            p.position = position.copy()

    def get_player(self, pid: str) -> Optional[SlotPlayer]:
        return self._players.get(pid)

    def get_all_players(self) -> Dict[str, SlotPlayer]:
        return dict(self._players)

    def slot_index(self, pid: str) -> Optional[int]:
        p = self._players.get(pid)
        return p.slot if p is not None else None


@dataclass
class BallState:
    position: Position = field(default_factory=lambda: Position(0.0, BALL_FLOOR, 0.0))
    velocity: Tuple[float, float, float] = (0.0, 0.0, 0.0)
    active: bool = False


class BallSimulator:
    """
    Explicit-Euler ball flight, one step per server tick.

    Velocities are per tick. Gravity is applied before the position update,
    drag after it; once the ball drops below the floor it comes to rest and
    the simulation stops until the next hit.
    """

    def __init__(self, gravity: float = GRAVITY, drag: float = BALL_DRAG, floor: float = BALL_FLOOR):
        self.gravity = gravity
        self.drag = drag
        self.floor = floor
        self.state = BallState(position=Position(0.0, floor, 0.0))

    @property
    def active(self) -> bool:
        return self.state.active

    def hit(self, position: Tuple[float, float, float], velocity: Tuple[float, float, float]) -> None:
        self.state.position = Position(*position)
        self.state.velocity = tuple(float(v) for v in velocity)
        self.state.active = True

    def step(self) -> bool:
        """Advance one tick; returns True while the ball is still in flight."""
        s = self.state
        if not s.active:
            return False
        vx, vy, vz = s.velocity
        vy -= self.gravity
        s.position.x += vx
        s.position.y += vy
        s.position.z += vz
        if s.position.y < self.floor:
            s.position.y = self.floor
            s.velocity = (0.0, 0.0, 0.0)
            s.active = False
            print("[ball] hit the ground")
            return False
        s.velocity = (vx * self.drag, vy * self.drag, vz * self.drag)
        return True
