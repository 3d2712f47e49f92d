from chalicelib.constants import status_codes


# DynamoDB exceptions
class RecordNotFound(Exception):
    pass


class ConditionFailed(Exception):
    pass


class TransactionCancelled(Exception):
    pass


class ApiError(Exception):
    """
    Base class for errors reported to the API caller as {error, code}
    """
    STATUS_CODE = status_codes.http400
    CODE = 'BAD_REQUEST'
    MESSAGE = 'Bad request'
    LEVEL = 'warning'

    def __init__(self, message=None, code=None):
        super().__init__(message or self.MESSAGE)
        self.code = code or self.CODE


# Authentication / authorization
class NotAuthenticated(ApiError):
    STATUS_CODE = status_codes.http401
    CODE = 'UNAUTHORIZED'
    MESSAGE = 'Authentication required'
    LEVEL = 'info'


class AccessDenied(ApiError):
    STATUS_CODE = status_codes.http403
    CODE = 'FORBIDDEN'
    MESSAGE = 'Access denied'


class Conflict(ApiError):
    STATUS_CODE = status_codes.http409
    CODE = 'CONFLICT'
    MESSAGE = 'The resource was modified by another request, please retry'


# Validation exceptions
class ValidationException(ApiError):
    CODE = 'VALIDATION_ERROR'
    MESSAGE = 'Validation error'


class InvalidRequestBody(ValidationException):
    CODE = 'INVALID_BODY'
    MESSAGE = 'Request body must be a valid JSON object'


class UnknownField(ValidationException):
    CODE = 'UNKNOWN_FIELD'


class InvalidId(ValidationException):
    CODE = 'INVALID_ID'
    MESSAGE = 'Valid ID is required'


class InvalidQueryParameter(ValidationException):
    CODE = 'INVALID_PARAMETER'


class UserIdNotAllowed(ValidationException):
    CODE = 'USER_ID_NOT_ALLOWED'
    MESSAGE = 'User ID cannot be provided in request body'


class MissingProductId(ValidationException):
    CODE = 'MISSING_PRODUCT_ID'
    MESSAGE = 'Product ID is required'


class InvalidProductId(ValidationException):
    CODE = 'INVALID_PRODUCT_ID'
    MESSAGE = 'Valid product ID is required'


class InvalidQuantity(ValidationException):
    CODE = 'INVALID_QUANTITY'
    MESSAGE = 'Valid quantity (>= 1) is required'


class MissingDeliveryAddress(ValidationException):
    CODE = 'MISSING_DELIVERY_ADDRESS'
    MESSAGE = 'Delivery address is required'


class MissingDeliveryPhone(ValidationException):
    CODE = 'MISSING_DELIVERY_PHONE'
    MESSAGE = 'Delivery phone is required'


class MissingPhone(ValidationException):
    CODE = 'MISSING_PHONE'
    MESSAGE = 'Phone number is required'


class MissingRestaurantId(ValidationException):
    CODE = 'MISSING_RESTAURANT_ID'
    MESSAGE = 'Restaurant ID is required'


class InvalidRestaurantId(ValidationException):
    CODE = 'INVALID_RESTAURANT_ID'
    MESSAGE = 'Valid restaurant ID is required'


class InvalidItems(ValidationException):
    CODE = 'INVALID_ITEMS'
    MESSAGE = 'Items array is required and must not be empty'


class InvalidMenuItemId(ValidationException):
    CODE = 'INVALID_MENU_ITEM_ID'
    MESSAGE = 'All menu item IDs must be valid integers'


class MissingStatus(ValidationException):
    CODE = 'MISSING_STATUS'
    MESSAGE = 'Status is required'


class InvalidStatus(ValidationException):
    CODE = 'INVALID_STATUS'
    MESSAGE = 'Invalid status'


# Not found
class NotFound(ApiError):
    STATUS_CODE = status_codes.http404
    CODE = 'NOT_FOUND'
    MESSAGE = 'Not found'


class ProductNotFound(NotFound):
    CODE = 'PRODUCT_NOT_FOUND'
    MESSAGE = 'Product not found'


class CartItemNotFound(NotFound):
    CODE = 'CART_ITEM_NOT_FOUND'
    MESSAGE = 'Cart item not found'


class WishlistItemNotFound(NotFound):
    CODE = 'WISHLIST_ITEM_NOT_FOUND'
    MESSAGE = 'Wishlist item not found'


class OrderNotFound(NotFound):
    CODE = 'ORDER_NOT_FOUND'
    MESSAGE = 'Order not found'


class RestaurantNotFound(NotFound):
    CODE = 'RESTAURANT_NOT_FOUND'
    MESSAGE = 'Restaurant not found'


class MenuItemNotFound(NotFound):
    CODE = 'NOT_FOUND'
    MESSAGE = 'Menu item not found or not available'


class InvalidMenuItems(NotFound):
    CODE = 'INVALID_MENU_ITEMS'
    MESSAGE = 'One or more menu items not found or do not belong to this restaurant'


# Business rules
class ProductUnavailable(ApiError):
    CODE = 'PRODUCT_NOT_ACTIVE'
    MESSAGE = 'Product is not available'


class ProductInactive(ApiError):
    CODE = 'PRODUCT_INACTIVE'
    MESSAGE = 'Product is not available'


class InsufficientStock(ApiError):
    CODE = 'INSUFFICIENT_STOCK'
    MESSAGE = 'Insufficient stock available'


class EmptyCart(ApiError):
    CODE = 'EMPTY_CART'
    MESSAGE = 'Cart is empty'


class CartTooLarge(ApiError):
    CODE = 'CART_TOO_LARGE'
    MESSAGE = 'Cart has too many distinct products to be ordered at once'


class DuplicateWishlistItem(ApiError):
    CODE = 'DUPLICATE_WISHLIST_ITEM'
    MESSAGE = 'Product already in wishlist'


class RestaurantClosed(ApiError):
    CODE = 'RESTAURANT_CLOSED'
    MESSAGE = 'Restaurant is currently closed'


class MenuItemUnavailable(ApiError):
    CODE = 'MENU_ITEM_UNAVAILABLE'
    MESSAGE = 'Menu item is currently unavailable'


class BelowMinimumOrder(ApiError):
    CODE = 'BELOW_MINIMUM_ORDER'
    MESSAGE = 'Order subtotal is below the restaurant minimum'


class AlreadyCancelled(ApiError):
    CODE = 'ALREADY_CANCELLED'
    MESSAGE = 'Order is already cancelled'


class CannotCancel(ApiError):
    CODE = 'CANNOT_CANCEL'
    MESSAGE = 'Order cannot be cancelled at this stage'


class InvalidStatusTransition(ApiError):
    CODE = 'INVALID_STATUS_TRANSITION'
    MESSAGE = 'Status transition is not allowed'
