"""
Request body contracts

Every body accepted by the API is parsed by one of the models below. Unknown
fields and mistyped values are rejected (ids and quantities must be JSON integers,
booleans and numeric strings are refused), the first problem found is reported
with the error code configured for the field in `error_map`.
"""
from typing import ClassVar, Dict, List, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError
from pydantic.alias_generators import to_camel, to_snake

from chalicelib.utils import exceptions

missing_error_types = ('missing', 'string_too_short', 'too_short')


class RequestContract(BaseModel):
    model_config = ConfigDict(extra='forbid', alias_generator=to_camel, str_strip_whitespace=True)

    # camelCase field -> (error when missing or empty, error when invalid)
    error_map: ClassVar[Dict[str, Tuple[Type[exceptions.ApiError], Type[exceptions.ApiError]]]] = {}

    @classmethod
    def parse(cls, body: Dict):
        try:
            return cls.model_validate(body)
        except ValidationError as validation_error:
            raise cls._to_api_error(validation_error.errors()[0])

    @classmethod
    def _to_api_error(cls, error: Dict) -> exceptions.ApiError:
        field_path = [part for part in error['loc'] if isinstance(part, str)]
        field = field_path[-1] if field_path else ''
        if error['type'] == 'extra_forbidden':
            return exceptions.UnknownField(f'Unknown field: {field}')
        if field in cls.error_map:
            missing_error, invalid_error = cls.error_map[field]
            if error['type'] in missing_error_types or error.get('input') in (None, ''):
                return missing_error()
            return invalid_error()
        return exceptions.ValidationException(
            f'Invalid value for {field}: {error["msg"]}',
            code=f'INVALID_{to_snake(field).upper()}'
        )


class AddCartItemRequest(RequestContract):
    error_map = {
        'productId': (exceptions.MissingProductId, exceptions.InvalidProductId),
        'quantity': (exceptions.InvalidQuantity, exceptions.InvalidQuantity)
    }

    product_id: StrictInt = Field(..., gt=0, description="Product to put in the cart")
    quantity: StrictInt = Field(..., ge=1, description="Units to add to the cart row")


class UpdateCartItemRequest(RequestContract):
    error_map = {
        'quantity': (exceptions.InvalidQuantity, exceptions.InvalidQuantity)
    }

    quantity: StrictInt = Field(..., ge=1, description="New quantity of the cart row")


class PlaceOrderRequest(RequestContract):
    error_map = {
        'deliveryAddress': (exceptions.MissingDeliveryAddress, exceptions.MissingDeliveryAddress),
        'deliveryPhone': (exceptions.MissingDeliveryPhone, exceptions.MissingDeliveryPhone)
    }

    delivery_address: str = Field(..., min_length=1)
    delivery_phone: str = Field(..., min_length=1)
    delivery_notes: Optional[str] = None
    delivery_fee: Optional[StrictInt] = Field(None, description="Client requested fee, bounded on the server")


class FoodOrderLine(RequestContract):
    menu_item_id: StrictInt = Field(..., gt=0)
    quantity: StrictInt = Field(..., ge=1)
    special_instructions: Optional[str] = None


class PlaceFoodOrderRequest(RequestContract):
    error_map = {
        'restaurantId': (exceptions.MissingRestaurantId, exceptions.InvalidRestaurantId),
        'items': (exceptions.InvalidItems, exceptions.InvalidItems),
        'menuItemId': (exceptions.InvalidMenuItemId, exceptions.InvalidMenuItemId),
        'quantity': (exceptions.InvalidQuantity, exceptions.InvalidQuantity),
        'deliveryAddress': (exceptions.MissingDeliveryAddress, exceptions.MissingDeliveryAddress),
        'phone': (exceptions.MissingPhone, exceptions.MissingPhone)
    }

    restaurant_id: StrictInt = Field(..., gt=0)
    items: List[FoodOrderLine] = Field(..., min_length=1)
    delivery_address: str = Field(..., min_length=1)
    phone: str = Field(..., min_length=1)
    delivery_instructions: Optional[str] = None
    payment_method: Optional[str] = None


class UpdateFoodOrderStatusRequest(RequestContract):
    error_map = {
        'status': (exceptions.MissingStatus, exceptions.InvalidStatus)
    }

    status: str = Field(..., min_length=1)


class AddWishlistItemRequest(RequestContract):
    error_map = {
        'productId': (exceptions.MissingProductId, exceptions.InvalidProductId)
    }

    product_id: StrictInt = Field(..., gt=0)


def reject_user_id(body: Dict) -> None:
    """
    Ownership always comes from the authenticated caller
    """
    if 'userId' in body or 'user_id' in body:
        raise exceptions.UserIdNotAllowed()
