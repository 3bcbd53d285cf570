import pytest

from shopfloor.movement import TimedMovement


def test_travel_takes_distance_over_speed():
    now = [0.0]
    m = TimedMovement(now=lambda: now[0], speed=2.0)

    assert not m.has_arrived()
    assert m.request_destination((6.0, 8.0))
    now[0] = 4.9
    assert not m.has_arrived()
    now[0] = 5.0
    assert m.has_arrived()
    assert m.position == (6.0, 8.0)


def test_speed_must_be_positive():
    with pytest.raises(ValueError):
        TimedMovement(now=lambda: 0.0, speed=0.0)


def test_new_destination_starts_from_where_the_agent_is():
    now = [0.0]
    m = TimedMovement(now=lambda: now[0], speed=2.0)
    m.request_destination((10.0, 0.0))

    now[0] = 2.5
    assert m.current_position() == pytest.approx((5.0, 0.0))
    assert m.request_destination((5.0, 10.0))
    assert m.position == pytest.approx((5.0, 0.0))

    now[0] = 7.4
    assert not m.has_arrived()
    assert m.current_position() == pytest.approx((5.0, 9.8))
    now[0] = 7.5
    assert m.has_arrived()
    assert m.position == (5.0, 10.0)


def test_current_position_before_any_destination():
    m = TimedMovement(now=lambda: 3.0, start=(1.0, 2.0))
    assert m.current_position() == (1.0, 2.0)
    assert not m.has_arrived()
