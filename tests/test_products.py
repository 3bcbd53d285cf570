import pytest
from conftest import make_product

from shopfloor.products import (
    MAX_PRICE,
    Catalog,
    ProductSpec,
    ProductState,
    calculate_profit_margin,
    validate_price,
)


def test_product_lifecycle():
    p = make_product()
    assert p.place_on_shelf("s1")
    assert not p.place_on_shelf("s2")
    assert p.reserve("alice")
    assert not p.mark_purchased("bob")
    assert p.mark_purchased("alice")
    assert p.is_purchased
    assert not p.forfeit()


def test_forfeit_clears_owners():
    p = make_product()
    p.place_on_shelf("s1")
    p.reserve("alice")
    assert p.forfeit()
    assert p.state is ProductState.FORFEITED
    assert p.holder is None
    assert p.shelf_id is None


def test_catalog_mints_unique_ids_and_filters_types():
    cat = Catalog()
    spec = cat.spec_for("paint_pot")
    assert spec.product_type == "paint_pot"
    a, b = cat.mint(spec), cat.mint(spec)
    assert a.product_id != b.product_id
    assert a.state is ProductState.AVAILABLE

    with pytest.raises(KeyError):
        cat.spec_for("spaceship")
    with pytest.raises(ValueError):
        Catalog(())


def test_spec_for_cycles_through_matches():
    cat = Catalog((ProductSpec("A", 1.0), ProductSpec("B", 2.0)))
    assert [cat.spec_for(None, i).name for i in range(3)] == ["A", "B", "A"]


@pytest.mark.parametrize(
    "price, ok",
    [(6.5, True), (1, True), (MAX_PRICE, True), (0.0, False), (-1.0, False), (float("nan"), False),
     (float("inf"), False), (MAX_PRICE + 1, False), (True, False), ("6.5", False)],
)
def test_validate_price(price, ok):
    assert validate_price(price) is ok


def test_profit_margin():
    assert calculate_profit_margin(10.0, 7.0) == pytest.approx(30.0)
    assert calculate_profit_margin(10.0, 12.0) == pytest.approx(-20.0)
    assert calculate_profit_margin(10.0, 0.0) == 100.0
    assert calculate_profit_margin(0.0, 5.0) == 0.0


def test_product_update_price_keeps_sold_units_tagged():
    p = make_product(price=30.0)
    p.cost_price = 21.0
    assert p.update_price(40.0)
    assert p.price == 40.0
    assert p.profit_margin() == pytest.approx(47.5)
    assert not p.update_price(-5.0)
    assert p.price == 40.0

    p.place_on_shelf("s1")
    p.reserve("alice")
    p.mark_purchased("alice")
    assert not p.update_price(50.0)
    assert p.price == 40.0


def test_catalog_update_price_affects_new_units_only():
    cat = Catalog((ProductSpec("A", 1.0), ProductSpec("B", 2.0)))
    before = cat.mint(cat.get("A"))

    spec = cat.update_price("A", 1.5)
    assert spec == ProductSpec("A", 1.5)
    assert cat.get("A") is spec
    assert [s.name for s in cat.specs] == ["A", "B"]
    assert cat.mint(spec).price == 1.5
    assert before.price == 1.0

    assert cat.update_price("A", 0) is None
    assert cat.get("A").price == 1.5
    with pytest.raises(KeyError):
        cat.update_price("C", 3.0)
