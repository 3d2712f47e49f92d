from typing import Optional, Sequence

from chalicelib.constants.constants import strict_status_transitions
from chalicelib.utils import exceptions
from chalicelib.utils.logger import logger

PENDING = 'pending'
CONFIRMED = 'confirmed'
PREPARING = 'preparing'
READY = 'ready'
OUT_FOR_DELIVERY = 'out_for_delivery'
DELIVERED = 'delivered'
CANCELLED = 'cancelled'

# fulfillment sequence of a food order
FOOD_ORDER_FLOW = (PENDING, CONFIRMED, PREPARING, READY, OUT_FOR_DELIVERY, DELIVERED)
FOOD_ORDER_STATUSES = (*FOOD_ORDER_FLOW, CANCELLED)
ORDER_STATUSES = (PENDING, CANCELLED)

FOOD_ORDER_CANCELLABLE_FROM = (PENDING, CONFIRMED)
ORDER_CANCELLABLE_FROM = (PENDING,)

TERMINAL_STATUSES = (DELIVERED, CANCELLED)


def validate_status(status: str, statuses: Sequence[str] = FOOD_ORDER_STATUSES) -> None:
    if status not in statuses:
        raise exceptions.InvalidStatus(f'Invalid status. Must be one of: {", ".join(statuses)}')


def check_can_cancel(status: str, cancellable_from: Sequence[str]) -> None:
    if status == CANCELLED:
        raise exceptions.AlreadyCancelled()
    if status not in cancellable_from:
        logger.info(f'check_can_cancel ::: cancel rejected, current status {status}')
        raise exceptions.CannotCancel()


def next_status(status: str) -> Optional[str]:
    if status not in FOOD_ORDER_FLOW or status == DELIVERED:
        return None
    return FOOD_ORDER_FLOW[FOOD_ORDER_FLOW.index(status) + 1]


def check_transition(current: str, new: str, strict: Optional[bool] = None) -> None:
    """
    Validates a requested food order status change.
    Loose mode accepts any known status. Strict mode accepts the next step of the flow
    or a cancellation that would be legal through the cancel endpoint.
    """
    validate_status(new)
    if strict is None:
        strict = strict_status_transitions()
    if not strict:
        return
    if new == CANCELLED:
        check_can_cancel(current, FOOD_ORDER_CANCELLABLE_FROM)
        return
    if new != next_status(current):
        logger.info(f'check_transition ::: {current} -> {new} rejected')
        raise exceptions.InvalidStatusTransition(f'Cannot change status from {current} to {new}')
