import pytest

from shopfloor.inventory import Inventory
from shopfloor.ledger import Ledger
from shopfloor.products import Catalog, ProductSpec, ProductState

PAINT = ProductSpec("Paint Pot", 10.0, "paint_pot")
DICE = ProductSpec("Dice Set", 12.0, "general")


@pytest.fixture
def inventory(ledger):
    return Inventory(ledger, Catalog((PAINT, DICE)), multiplier=0.7)


def test_starts_empty(inventory):
    assert inventory.is_empty()
    assert inventory.total_count == 0
    assert inventory.unique_count == 0
    assert not inventory.has_product("Paint Pot")


def test_add_product_counts_per_name(inventory, ledger):
    assert inventory.add_product(PAINT, 5)
    assert inventory.add_product(DICE, 2)

    assert inventory.get_product_count("Paint Pot") == 5
    assert inventory.has_product("Paint Pot", 5)
    assert not inventory.has_product("Paint Pot", 6)
    assert inventory.total_count == 7
    assert inventory.unique_count == 2
    assert inventory.status() == {"Paint Pot": 5, "Dice Set": 2}
    assert ledger.money == 1000.0


def test_add_product_rejects_non_positive_amount(inventory, recorder):
    assert not inventory.add_product(PAINT, 0)
    assert inventory.is_empty()
    assert recorder.of("rejected")[-1]["code"] == "invalid_quantity"


def test_purchase_pays_wholesale_through_ledger(inventory, ledger):
    assert inventory.restock_cost(PAINT, 4) == pytest.approx(28.0)
    assert inventory.purchase(PAINT, 4)

    assert ledger.money == pytest.approx(972.0)
    assert ledger.daily_expenses == pytest.approx(28.0)
    assert inventory.get_product_count("Paint Pot") == 4
    unit = inventory.take("Paint Pot")
    assert unit.cost_price == pytest.approx(7.0)
    assert unit.profit_margin() == pytest.approx(30.0)


def test_purchase_refused_without_funds(events, recorder):
    inventory = Inventory(Ledger(starting_money=10.0, events=events), Catalog((PAINT,)))
    assert not inventory.has_sufficient_funds_for_restock(PAINT, 2)
    assert not inventory.purchase(PAINT, 2)

    assert inventory.is_empty()
    assert inventory.ledger.money == 10.0
    assert recorder.of("rejected")[-1]["code"] == "insufficient_funds"


def test_take_is_first_in_first_out(inventory):
    inventory.add_product(PAINT, 2)
    first = inventory.take("Paint Pot")
    second = inventory.take("Paint Pot")
    assert first.product_id < second.product_id
    assert inventory.take("Paint Pot") is None


def test_put_back_returns_unit_to_the_front(inventory):
    inventory.add_product(PAINT, 2)
    unit = inventory.take("Paint Pot")
    assert inventory.put_back(unit)
    assert not inventory.put_back(unit)
    assert inventory.get_product_count("Paint Pot") == 2
    assert inventory.take("Paint Pot") is unit


def test_put_back_refuses_shelved_unit(inventory):
    inventory.add_product(PAINT, 1)
    unit = inventory.take("Paint Pot")
    unit.place_on_shelf("s1")
    assert not inventory.put_back(unit)
    assert inventory.is_empty()


def test_remove_product_writes_units_off(inventory):
    inventory.add_product(PAINT, 3)
    units = [inventory.take("Paint Pot") for _ in range(3)]
    for u in units:
        inventory.put_back(u)

    assert inventory.remove_product("Paint Pot", 2)
    assert inventory.get_product_count("Paint Pot") == 1
    assert sum(1 for u in units if u.state is ProductState.FORFEITED) == 2


def test_remove_more_than_stocked_changes_nothing(inventory, recorder):
    inventory.add_product(PAINT, 1)
    assert not inventory.remove_product("Paint Pot", 2)
    assert not inventory.remove_product("Dice Set")
    assert inventory.get_product_count("Paint Pot") == 1
    assert recorder.of("rejected")[-1]["code"] == "insufficient_stock"


def test_update_price_reaches_catalog_and_back_room(inventory):
    inventory.add_product(PAINT, 2)
    assert inventory.update_price("Paint Pot", 8.0)

    assert inventory.catalog.get("Paint Pot").price == 8.0
    assert inventory.take("Paint Pot").price == 8.0
    assert inventory.restock_cost(inventory.catalog.get("Paint Pot")) == pytest.approx(5.6)
    inventory.add_product(inventory.catalog.get("Paint Pot"))
    assert inventory.status() == {"Paint Pot": 2}


@pytest.mark.parametrize("price", [0.0, -3.0, float("nan"), float("inf"), 1e9])
def test_update_price_rejects_invalid_prices(inventory, recorder, price):
    inventory.add_product(PAINT, 1)
    assert not inventory.update_price("Paint Pot", price)
    assert inventory.catalog.get("Paint Pot").price == 10.0
    assert recorder.of("rejected")[-1]["code"] == "invalid_price"


def test_update_price_of_unknown_name_raises(inventory):
    with pytest.raises(KeyError):
        inventory.update_price("Tea Towel", 3.0)
