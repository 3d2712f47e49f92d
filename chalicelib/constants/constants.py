import os

ORDER_NUMBER_PREFIX = 'ORD'
FOOD_ORDER_NUMBER_PREFIX = 'FO'

DEFAULT_PAYMENT_METHOD = 'cash'
DEFAULT_DELIVERY_MINUTES = 30
DEFAULT_MENU_CATEGORY = 'Other'

MAX_PAGE_SIZE = 50
PRODUCTS_PAGE_SIZE = 12
RESTAURANTS_PAGE_SIZE = 12
MENU_ITEMS_PAGE_SIZE = 20

PRODUCT_SORTS = ('price-asc', 'price-desc', 'rating', 'newest', 'popular')
RESTAURANT_SORTS = ('rating', 'deliveryFee', 'deliveryTime', 'newest')

# DynamoDB TransactWriteItems limit
MAX_TRANSACTION_ITEMS = 100


def max_delivery_fee() -> int:
    return int(os.environ.get('MAX_DELIVERY_FEE', '10000'))


def strict_status_transitions() -> bool:
    return os.environ.get('STRICT_STATUS_TRANSITIONS', 'false').lower() == 'true'
