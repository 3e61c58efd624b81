import pytest

from game.components import Position
from game.server_state import BallSimulator, PlayerSlotTable


def test_table_rejects_beyond_capacity():
    table = PlayerSlotTable(2)
    assert table.add_player("p1", Position())
    assert table.add_player("p2", Position())
    assert table.full
    assert not table.add_player("p3", Position())
    assert len(table) == 2

    table.remove_player("p1")
    assert table.add_player("p3", Position())
    assert not table.add_player("p4", Position())


def test_duplicate_id_is_rejected():
    table = PlayerSlotTable(2)
    assert table.add_player("p1", Position())
    assert not table.add_player("p1", Position(1.0, 0.0, 0.0))
    assert len(table) == 1


def test_freed_slot_is_reused():
    table = PlayerSlotTable(2)
    table.add_player("p1", Position())
    table.add_player("p2", Position())
    assert table.slot_index("p2") == 1
    table.remove_player("p1")
    table.add_player("p3", Position())
    assert table.slot_index("p3") == 0
    assert table.slot_index("p1") is None


def test_stored_positions_are_copies():
    table = PlayerSlotTable(1)
    spawn = Position(1.0, 0.0, 1.0)
    table.add_player("p1", spawn)
    spawn.x = 9.0
    assert table.get_player("p1").position.x == 1.0

    table.update_player_position("p1", Position(2.0, 0.0, 3.0))
    assert table.get_player("p1").to_wire() == {
        "id": "p1", "position": {"x": 2.0, "y": 0.0, "z": 3.0}, "slot": 0,
    }
    table.update_player_position("ghost", Position())
    assert list(table.get_all_players()) == ["p1"]


def test_capacity_must_be_positive():
    with pytest.raises(ValueError):
        PlayerSlotTable(0)


def test_ball_step_applies_gravity_then_drag():
    sim = BallSimulator(gravity=0.015, drag=0.99, floor=0.5)
    sim.hit((0.0, 2.0, 0.0), (0.1, 0.4, -0.6))
    assert sim.step()
    p = sim.state.position
    assert (p.x, p.y, p.z) == pytest.approx((0.1, 2.385, -0.6))
    assert sim.state.velocity == pytest.approx((0.099, 0.385 * 0.99, -0.594))


def test_ball_stops_below_floor():
    sim = BallSimulator(gravity=0.015, drag=0.99, floor=0.5)
    sim.hit((0.0, 1.0, 0.0), (0.0, 0.0, 0.0))
    steps = 0
    while sim.step():
        steps += 1
        assert steps < 1000
    assert not sim.active
    assert sim.state.position.y == 0.5
    assert not sim.step()


def test_idle_ball_does_not_move():
    sim = BallSimulator()
    before = sim.state.position.as_tuple()
    assert not sim.step()
    assert sim.state.position.as_tuple() == before
