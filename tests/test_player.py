import math

import pytest

from game.assets import AssetRegistry, Clip, ClipOptions
from game.components import Position
from game.entities import MoveState, Player, PlayerServices
from game.input_state import InputState
from game.jump import JumpPayload

DT = 1.0 / 60.0


def _run_jump_to_end(player, ball=None, max_ticks=300):
    peak = player.position.y
    for _ in range(max_ticks):
        player.update(DT, InputState(), ball)
        peak = max(peak, player.position.y)
        if player.state is MoveState.IDLE:
            return peak
    raise AssertionError("jump never finished")


def test_new_player_starts_idle(services):
    player = Player("p1", services, local=True)
    assert player.state is MoveState.IDLE
    assert player.table.current_name == "idle"


def test_local_movement_sends_position_and_run(services, recorder):
    player = Player("p1", services, local=True)
    inputs = InputState(w=True)
    player.update(0.1, inputs)
    assert player.position.z == pytest.approx(-0.6)
    assert player.facing == pytest.approx(math.pi)
    assert player.state is MoveState.MOVING
    assert player.table.current_name == "slow_run"
    assert recorder.types() == ["client_movement", "client_animation"]
    assert recorder.sent[1]["name"] == "slow_run"

    player.update(0.1, inputs)
    assert recorder.types().count("client_movement") == 2
    assert recorder.types().count("client_animation") == 1


def test_releasing_keys_returns_to_idle(services, recorder):
    player = Player("p1", services, local=True)
    player.update(0.1, InputState(d=True))
    player.update(0.1, InputState())
    assert player.state is MoveState.IDLE
    assert player.table.current_name == "idle"
    assert recorder.sent[-1] == {"type": "client_animation", "name": "idle"}


def test_jump_hitting_ball(services, recorder):
    player = Player("p1", services, local=True)
    ball = (0.0, 1.0, 1.0)
    player.update(DT, InputState(space=True), ball)

    assert player.state is MoveState.NON_INTERRUPTIBLE
    assert player.table.current_name == "jump"
    assert player.position.z == pytest.approx(0.5)
    assert player.model_rotation_offset == pytest.approx(math.radians(15))
    assert recorder.types() == ["client_jump", "client_hit_ball"]
    assert recorder.sent[0]["rotation"] == pytest.approx(0.0)
    assert recorder.sent[0]["jumpVelocity"] == pytest.approx(math.sqrt(0.03))
    assert recorder.sent[1]["ballPosition"] == {"x": 0.0, "y": 1.0, "z": 1.0}

    peak = _run_jump_to_end(player, ball)
    assert peak > 0.9
    assert player.position.y == 0.0
    assert player.model_rotation_offset == 0.0
    assert recorder.sent[-1]["type"] == "client_movement"


def test_input_is_gated_while_jumping(services, recorder):
    player = Player("p1", services, local=True)
    player.update(DT, InputState(space=True))
    sent = len(recorder.sent)
    x, z = player.position.x, player.position.z
    for _ in range(5):
        player.update(DT, InputState(w=True, space=True))
    assert (player.position.x, player.position.z) == (x, z)
    assert len(recorder.sent) == sent
    assert player.trigger_jump(None) is None


def test_jump_without_clip_is_ignored(recorder):
    assets = AssetRegistry()
    assets.register_clip(Clip("idle", 2.0))
    assets.register_clip(Clip("slow_run", 0.8))
    player = Player("p1", PlayerServices(assets=assets, send=recorder.send), local=True)
    assert player.trigger_jump((0.0, 1.0, 1.0)) is None
    assert player.state is MoveState.IDLE
    assert recorder.sent == []


def test_remote_snapshot_is_idempotent(services, recorder):
    player = Player("p2", services, position=Position(0.0, 0.0, 0.0))
    player.apply_snapshot(1.0, 0.0, 2.0)
    assert player.state is MoveState.MOVING
    assert player.table.current_name == "slow_run"
    player.apply_snapshot(1.0, 0.0, 2.0)
    assert player.position.as_tuple() == (1.0, 0.0, 2.0)
    assert recorder.sent == []


def test_remote_animation_switches(services):
    player = Player("p2", services)
    player.apply_remote_animation("slow_run")
    assert player.state is MoveState.MOVING
    player.apply_remote_animation("idle")
    assert player.state is MoveState.IDLE
    assert player.table.current_name == "idle"
    player.apply_remote_animation("moonwalk")
    assert player.table.current_name == "idle"


def test_remote_jump_ignores_late_events(services):
    player = Player("p2", services)
    player.apply_remote_jump(JumpPayload(rotation=1.0, jump_velocity=0.2))
    assert player.state is MoveState.NON_INTERRUPTIBLE
    assert player.facing == 1.0

    player.apply_remote_animation("idle")
    player.apply_remote_jump(JumpPayload(rotation=2.0, jump_velocity=0.2))
    assert player.table.current_name == "jump"
    assert player.facing == 1.0

    player.apply_snapshot(3.0, 0.0, 3.0)
    assert player.position.as_tuple() == (3.0, 0.0, 3.0)
    assert player.state is MoveState.NON_INTERRUPTIBLE

    for _ in range(300):
        player.update(DT)
        if player.state is MoveState.IDLE:
            break
    assert player.state is MoveState.IDLE


def test_remote_jump_without_rotation_keeps_facing(services):
    player = Player("p2", services)
    player.facing = 0.7
    player.apply_remote_jump(JumpPayload(rotation=-1, jump_velocity=0.2))
    assert player.facing == 0.7


def test_players_do_not_share_jump_state(services):
    a = Player("p1", services)
    b = Player("p2", services)
    a.apply_remote_jump(JumpPayload(rotation=0.0, jump_velocity=0.2))
    assert a.jump.active
    assert not b.jump.active
    assert a.jump is not b.jump


def test_back_to_back_local_jumps(services, recorder):
    player = Player("p1", services, local=True)
    for _ in range(2):
        player.update(DT, InputState(space=True))
        assert player.state is MoveState.NON_INTERRUPTIBLE
        _run_jump_to_end(player)
    assert recorder.types().count("client_jump") == 2
    assert player.position.y == 0.0


def test_holding_space_keeps_jumping(services, recorder):
    player = Player("p1", services, local=True)
    held = InputState(space=True)
    for _ in range(400):
        player.update(DT, held)
    assert recorder.types().count("client_jump") >= 3


def test_back_to_back_remote_jumps(services):
    player = Player("p2", services)
    for _ in range(2):
        player.apply_remote_jump(JumpPayload(rotation=0.3, jump_velocity=0.2))
        assert player.state is MoveState.NON_INTERRUPTIBLE
        for _tick in range(300):
            player.update(DT)
            if player.state is MoveState.IDLE:
                break
        assert player.state is MoveState.IDLE
    player.apply_remote_animation("slow_run")
    assert player.state is MoveState.MOVING
