from game.entities import EntityManager, MoveState
from game.event_bus import EventBus


def _pos(x=0.0, y=0.0, z=0.0):
    return {"x": x, "y": y, "z": z}


def _manager(services):
    manager = EntityManager(services)
    bus = EventBus()
    manager.bind(bus)
    return manager, bus


def test_player_id_spawns_local_player(services):
    manager, bus = _manager(services)
    assert bus.dispatch({"type": "player_id", "id": "p2", "position": _pos(), "slot": 1})
    me = manager.main_player
    assert me is not None and me.local
    assert me.team_direction == -1.0


def test_initial_players_skips_local_player(services):
    manager, bus = _manager(services)
    bus.dispatch({"type": "player_id", "id": "p2", "position": _pos(), "slot": 1})
    bus.dispatch({"type": "initial_players", "players": {
        "p1": {"id": "p1", "position": _pos(1.0), "slot": 0},
        "p2": {"id": "p2", "position": _pos(), "slot": 1},
    }})
    assert set(manager.players) == {"p1", "p2"}
    assert not manager.players["p1"].local
    assert manager.players["p1"].team_direction == 1.0


def test_remote_events_reach_remote_players(services):
    manager, bus = _manager(services)
    bus.dispatch({"type": "player_id", "id": "p1", "position": _pos(), "slot": 0})
    bus.dispatch({"type": "player_connected", "id": "p2", "position": _pos(), "slot": 1})
    other = manager.players["p2"]

    bus.dispatch({"type": "position_update", "id": "p2", "position": _pos(2.0, 0.0, 1.0)})
    bus.dispatch({"type": "position_update", "id": "p2", "position": _pos(2.0, 0.0, 1.0)})
    assert other.position.as_tuple() == (2.0, 0.0, 1.0)
    assert other.state is MoveState.MOVING

    bus.dispatch({"type": "player_jump", "id": "p2", "rotation": 0.5, "jumpVelocity": 0.2})
    assert other.state is MoveState.NON_INTERRUPTIBLE
    assert other.facing == 0.5

    bus.dispatch({"type": "position_update", "id": "p1", "position": _pos(9.0, 0.0, 9.0)})
    assert manager.main_player.position.as_tuple() == (0.0, 0.0, 0.0)


def test_disconnect_despawns(services):
    removed = []
    manager = EntityManager(services, on_despawn=removed.append)
    manager.handle({"type": "player_connected", "id": "p2", "position": _pos(), "slot": 1})
    manager.handle({"type": "player_disconnected", "id": "p2"})
    assert manager.players == {}
    assert [p.pid for p in removed] == ["p2"]
    manager.handle({"type": "player_disconnected", "id": "p2"})


def test_ball_messages_move_ball(services):
    manager, bus = _manager(services)
    bus.dispatch({"type": "player_hit_ball", "id": "p2",
                  "ballPosition": _pos(1.0, 2.0, 3.0), "initialVelocity": [0.1, 0.4, -0.6]})
    assert manager.ball.position_tuple() == (1.0, 2.0, 3.0)
    assert manager.ball.last_hit_by == "p2"
    bus.dispatch({"type": "ball_position", "position": _pos(1.5, 2.5, 2.0)})
    assert manager.ball.position_tuple() == (1.5, 2.5, 2.0)


def test_error_and_malformed_messages(services):
    manager, bus = _manager(services)
    bus.dispatch({"type": "error", "message": "The game is full"})
    assert manager.error == "The game is full"

    manager.handle({"type": "player_connected", "id": "p3", "position": {"x": 1.0}})
    manager.handle({"type": "animation_update", "id": "p9"})
    manager.handle({"type": "team_score"})
    assert "p3" not in manager.players
    assert not bus.dispatch({"type": "team_score"})
