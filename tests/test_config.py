import pytest

from shopfloor.config import SimulationConfig


def test_defaults_are_valid():
    cfg = SimulationConfig().validate()
    assert cfg.close_hour - cfg.open_hour == 12.0
    assert cfg.restock_multiplier == 0.7


@pytest.mark.parametrize(
    "overrides",
    [
        {"tick": 0.0},
        {"arrival_rate": -1.0},
        {"max_customers": 0},
        {"budget_range": (100.0, 50.0)},
        {"purchase_probability_range": (0.2, 1.5)},
        {"shelf_switch_probability": 2.0},
        {"walking_speed": 0.0},
        {"starting_stock": -1},
        {"restock_batch_size": 0},
    ],
)
def test_impossible_values_raise(overrides):
    with pytest.raises(ValueError):
        SimulationConfig(**overrides).validate()


def test_customer_timing_mirrors_config():
    timing = SimulationConfig(queue_wait_timeout=12.0, scan_seconds=0.25).customer_timing()
    assert timing.queue_wait_timeout == 12.0
    assert timing.scan_seconds == 0.25
    assert timing.closing_hurry_factor == 0.7
