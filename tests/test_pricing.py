import random

import pytest

from chalicelib.pricing import LineItem, compute_subtotal, compute_totals, compute_food_totals, \
    resolve_marketplace_delivery_fee
from chalicelib.restaurants import Restaurant
from chalicelib.utils import exceptions


def make_line_item(unit_price, quantity, item_id=1):
    return LineItem(item_id=item_id, name=f'item {item_id}', image_url=None, unit_price=unit_price,
                    quantity=quantity)


def test_compute_subtotal_random_lines():
    randomizer = random.Random(7)
    for _ in range(50):
        line_items = [make_line_item(randomizer.randint(0, 100000), randomizer.randint(1, 20), item_id)
                      for item_id in range(randomizer.randint(1, 10))]
        expected = sum(line.unit_price * line.quantity for line in line_items)

        totals = compute_totals(line_items, delivery_fee=250)

        assert compute_subtotal(line_items) == expected
        assert totals.subtotal == expected
        assert totals.total == expected + 250


def test_compute_totals_below_minimum():
    with pytest.raises(exceptions.BelowMinimumOrder) as error:
        compute_totals([make_line_item(2000, 2)], delivery_fee=0, minimum_order=5000)
    assert str(error.value) == 'Minimum order amount is 5000. Current subtotal is 4000'


def test_compute_totals_at_minimum():
    totals = compute_totals([make_line_item(2500, 2)], delivery_fee=100, minimum_order=5000)

    assert totals == (5000, 100, 5100)


def test_compute_food_totals_uses_restaurant_fee_and_minimum():
    restaurant = Restaurant(1, name='Campus Pizza', slug='campus-pizza', delivery_fee=299, minimum_order=1000)

    totals = compute_food_totals([make_line_item(1200, 1)], restaurant)
    assert totals.delivery_fee == 299
    assert totals.total == 1499

    with pytest.raises(exceptions.BelowMinimumOrder):
        compute_food_totals([make_line_item(999, 1)], restaurant)


@pytest.mark.parametrize('requested, expected', [
    (None, 0),
    (0, 0),
    (350, 350),
    (-10, 0),
    (10001, 10000),
])
def test_resolve_marketplace_delivery_fee(requested, expected, monkeypatch):
    monkeypatch.delenv('MAX_DELIVERY_FEE', raising=False)

    assert resolve_marketplace_delivery_fee(requested) == expected
