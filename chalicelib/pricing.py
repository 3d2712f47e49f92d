from typing import Iterable, NamedTuple, Optional

from chalicelib.constants.constants import max_delivery_fee
from chalicelib.utils import exceptions
from chalicelib.utils.logger import logger


class LineItem(NamedTuple):
    """ A priced (item, quantity) pair resolved from the current catalog record """
    item_id: int
    name: str
    image_url: Optional[str]
    unit_price: int
    quantity: int

    @property
    def total_price(self) -> int:
        return self.unit_price * self.quantity


class Totals(NamedTuple):
    subtotal: int
    delivery_fee: int
    total: int


def compute_subtotal(line_items: Iterable[LineItem]) -> int:
    # amounts are integers in minor currency units
    return sum(line_item.total_price for line_item in line_items)


def compute_totals(line_items: Iterable[LineItem], delivery_fee: int, minimum_order: Optional[int] = None) -> Totals:
    subtotal = compute_subtotal(line_items)
    if minimum_order and subtotal < minimum_order:
        raise exceptions.BelowMinimumOrder(
            f'Minimum order amount is {minimum_order}. Current subtotal is {subtotal}')
    return Totals(subtotal=subtotal, delivery_fee=delivery_fee, total=subtotal + delivery_fee)


def resolve_marketplace_delivery_fee(requested_fee: Optional[int]) -> int:
    """
    Marketplace orders take the fee from the client, bounded to [0, MAX_DELIVERY_FEE]
    """
    if requested_fee is None:
        return 0
    fee = min(max(requested_fee, 0), max_delivery_fee())
    if fee != requested_fee:
        logger.warning(f'resolve_marketplace_delivery_fee ::: requested fee {requested_fee} clamped to {fee}')
    else:
        logger.info(f'resolve_marketplace_delivery_fee ::: client delivery fee {fee} accepted')
    return fee


def compute_food_totals(line_items: Iterable[LineItem], restaurant) -> Totals:
    """
    Food orders never take the fee from the client, both the fee and the minimum come from the restaurant
    """
    return compute_totals(line_items, delivery_fee=restaurant.delivery_fee, minimum_order=restaurant.minimum_order)
