from datetime import datetime, timedelta, timezone
from typing import Tuple, List, Dict, Optional

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib import order_status
from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import FOOD_ORDER_NUMBER_PREFIX, DEFAULT_PAYMENT_METHOD, \
    DEFAULT_DELIVERY_MINUTES, MAX_TRANSACTION_ITEMS
from chalicelib.constants.status_codes import http200, http201
from chalicelib.menu_items import MenuItem
from chalicelib.pricing import LineItem, compute_food_totals
from chalicelib.restaurants import Restaurant
from chalicelib.schemas import PlaceFoodOrderRequest, UpdateFoodOrderStatusRequest, FoodOrderLine, reject_user_id
from chalicelib.utils import auth as utils_auth, db as utils_db, app as utils_app, data as utils_data, exceptions
from chalicelib.utils.data import now_iso, to_int, parse_id, generate_order_number
from chalicelib.utils.logger import logger


class FoodOrderItem(EntityBase):
    pk = keys_structure.food_order_items_pk
    sk = keys_structure.food_order_items_sk
    counter_name = 'food_order_items'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'order_id': lambda x: isinstance(x, int),
        'menu_item_id': lambda x: isinstance(x, int),
        'quantity': lambda x: isinstance(x, int) and x >= 1,
        'price': lambda x: isinstance(x, int) and x >= 0,
        'total_price': lambda x: isinstance(x, int) and x >= 0,
        'created_at': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'special_instructions': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, to_int(id_, id_))
        self.order_id: int = to_int(kwargs.get('order_id'))
        self.menu_item_id: int = to_int(kwargs.get('menu_item_id'))
        self.quantity: int = to_int(kwargs.get('quantity'), 0)
        self.price: int = to_int(kwargs.get('price'), 0)
        self.total_price: int = to_int(kwargs.get('total_price'), 0)
        self.special_instructions: Optional[str] = kwargs.get('special_instructions') or None
        self.menu_item_name: Optional[str] = kwargs.get('menu_item_name')
        self.menu_item_description: Optional[str] = kwargs.get('menu_item_description')
        self.menu_item_image_url: Optional[str] = kwargs.get('menu_item_image_url')
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.record_type = 'food_order_item'

    @classmethod
    def get_by_order_id(cls, order_id: int) -> List['FoodOrderItem']:
        records = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.food_order_items_pk.format(order_id=order_id)))
        return [cls(**record) for record in records]

    def to_ui_with_menu_item(self, restaurant_id: int) -> Dict:
        return {
            **self._to_ui(),
            'menuItem': {
                'name': self.menu_item_name,
                'imageUrl': self.menu_item_image_url,
                'restaurantId': restaurant_id
            }
        }

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(order_id=self.order_id), self.sk.format(order_item_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'order_id': self.order_id,
            'menu_item_id': self.menu_item_id,
            'quantity': self.quantity,
            'price': self.price,
            'total_price': self.total_price,
            'special_instructions': self.special_instructions,
            'menu_item_name': self.menu_item_name,
            'menu_item_description': self.menu_item_description,
            'menu_item_image_url': self.menu_item_image_url,
            'created_at': self.created_at
        }


class FoodOrder(EntityBase):
    pk = keys_structure.food_orders_pk
    sk = keys_structure.food_orders_sk
    counter_name = 'food_orders'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'user_id': lambda x: isinstance(x, str),
        'restaurant_id': lambda x: isinstance(x, int),
        'order_number': lambda x: isinstance(x, str),
        'subtotal': lambda x: isinstance(x, int) and x >= 0,
        'delivery_fee': lambda x: isinstance(x, int) and x >= 0,
        'total': lambda x: isinstance(x, int) and x >= 0,
        'delivery_address': lambda x: isinstance(x, str) and len(x) > 0,
        'phone': lambda x: isinstance(x, str) and len(x) > 0,
        'payment_method': lambda x: isinstance(x, str),
        'created_at': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'status': lambda x: x in order_status.FOOD_ORDER_STATUSES,
        'updated_at': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'delivery_instructions': lambda x: isinstance(x, str),
        'estimated_delivery_time': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, to_int(id_, id_))
        self.user_id: str = kwargs.get('user_id')
        self.restaurant_id: int = to_int(kwargs.get('restaurant_id'))
        self.order_number: str = kwargs.get('order_number')
        self.status: str = kwargs.get('status', order_status.PENDING)
        self.subtotal: int = to_int(kwargs.get('subtotal'), 0)
        self.delivery_fee: int = to_int(kwargs.get('delivery_fee'), 0)
        self.total: int = to_int(kwargs.get('total'), 0)
        self.delivery_address: str = kwargs.get('delivery_address')
        self.delivery_instructions: Optional[str] = kwargs.get('delivery_instructions') or None
        self.phone: str = kwargs.get('phone')
        self.payment_method: str = kwargs.get('payment_method') or DEFAULT_PAYMENT_METHOD
        self.estimated_delivery_time: Optional[str] = kwargs.get('estimated_delivery_time')
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.updated_at: str = kwargs.get('updated_at') or self.created_at
        self.requested_lines: List[FoodOrderLine] = kwargs.get('requested_lines', [])
        self.requested_status: Optional[str] = kwargs.get('requested_status')
        self.order_items: List[FoodOrderItem] = []
        self.record_type = 'food_order'

    @classmethod
    def init_get_by_id(cls, order_id: int, user_id: str):
        """
        Orders of other users are reported as missing
        """
        c = cls(order_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.OrderNotFound()
        if c.user_id != user_id:
            logger.warning(f'init_get_by_id ::: user {user_id} requested food order {order_id} of another user')
            raise exceptions.OrderNotFound()
        c.order_items = FoodOrderItem.get_by_order_id(c.id_)
        return c

    @classmethod
    @utils_auth.authenticate_class
    def init_request_create(cls, request):
        logger.info("init_request_create ::: started")
        request_body = utils_data.parse_raw_body(request)
        reject_user_id(request_body)
        order_request = PlaceFoodOrderRequest.parse(request_body)
        return cls(
            user_id=request.auth_result['user_id'],
            restaurant_id=order_request.restaurant_id,
            delivery_address=order_request.delivery_address,
            delivery_instructions=order_request.delivery_instructions,
            phone=order_request.phone,
            payment_method=order_request.payment_method,
            requested_lines=order_request.items
        )

    @classmethod
    @utils_auth.authenticate_class
    def init_request_get_by_id(cls, request, order_id):
        logger.info("init_request_get_by_id ::: started")
        return cls.init_get_by_id(parse_id(order_id), request.auth_result['user_id'])

    @classmethod
    @utils_auth.authenticate_class
    def init_request_update_status(cls, request, order_id):
        logger.info("init_request_update_status ::: started")
        order_id = parse_id(order_id)
        status_request = UpdateFoodOrderStatusRequest.parse(utils_data.parse_raw_body(request))
        order_status.validate_status(status_request.status)
        food_order = cls.init_get_by_id(order_id, request.auth_result['user_id'])
        food_order.requested_status = status_request.status
        return food_order

    @classmethod
    def get_by_user_id(cls, user_id: str) -> List['FoodOrder']:
        records = utils_db.query_items_paged(
            Key('user_partkey').eq(keys_structure.gsi_user_pk.format(record_type='food_order', user_id=user_id)),
            index_name=keys_structure.gsi_user_index_name
        )
        food_orders = [cls(**record) for record in records]
        for food_order in food_orders:
            food_order.order_items = FoodOrderItem.get_by_order_id(food_order.id_)
        food_orders.sort(key=lambda order: (order.created_at, order.id_), reverse=True)
        return food_orders

    @classmethod
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_get_all(cls, request) -> Response:
        food_orders = cls.get_by_user_id(request.auth_result['user_id'])
        logger.info(f"endpoint_get_all ::: returning food orders={[order.id_ for order in food_orders]}")
        return Response(status_code=http200, body=[order.to_ui() for order in food_orders])

    @utils_app.log_start_finish
    def endpoint_create(self) -> Response:
        self.place_order()
        return Response(status_code=http201, body=self.to_ui())

    @utils_app.log_start_finish
    def endpoint_get_by_id(self) -> Response:
        try:
            restaurant = Restaurant.init_get_by_id(self.restaurant_id)
            restaurant_summary = {**restaurant.summary(), 'phone': restaurant.phone}
        except exceptions.RestaurantNotFound:
            logger.warning(f'endpoint_get_by_id ::: restaurant {self.restaurant_id} of order {self.id_} is missing')
            restaurant_summary = None
        return Response(status_code=http200, body={
            **self._to_ui(),
            'orderItems': [order_item.to_ui_with_menu_item(self.restaurant_id) for order_item in self.order_items],
            'restaurant': restaurant_summary
        })

    @utils_app.log_start_finish
    def endpoint_update_status(self) -> Response:
        order_status.check_transition(self.status, self.requested_status)
        self._set_status(self.requested_status)
        return Response(status_code=http200, body=self.to_ui())

    @utils_app.log_start_finish
    def endpoint_cancel(self) -> Response:
        order_status.check_can_cancel(self.status, order_status.FOOD_ORDER_CANCELLABLE_FROM)
        self._set_status(order_status.CANCELLED)
        return Response(status_code=http200, body=self.to_ui())

    def _set_status(self, status: str) -> None:
        """
        Compare-and-swap on the status read before, a concurrent change is reported as a conflict
        """
        previous_status = self.status
        self.status = status
        try:
            self._update_db_record(condition_expression=Attr('status').eq(previous_status))
        except exceptions.ConditionFailed:
            raise exceptions.Conflict('Order status was changed by another request, please retry')
        logger.info(f"_set_status ::: food order {self.id_} {previous_status} -> {status}")

    def _resolve_line_items(self, restaurant: Restaurant) -> List[Tuple[FoodOrderLine, MenuItem, LineItem]]:
        menu_items = MenuItem.get_by_ids([line.menu_item_id for line in self.requested_lines])
        if any(menu_item.restaurant_id != restaurant.id_ for menu_item in menu_items.values()) \
                or len(menu_items) != len({line.menu_item_id for line in self.requested_lines}):
            raise exceptions.InvalidMenuItems()
        for menu_item in menu_items.values():
            if menu_item.is_available != 1:
                raise exceptions.MenuItemUnavailable(f'Menu item "{menu_item.name}" is currently unavailable')
        resolved = []
        for line in self.requested_lines:
            menu_item = menu_items[line.menu_item_id]
            resolved.append((line, menu_item, LineItem(
                item_id=menu_item.id_,
                name=menu_item.name,
                image_url=menu_item.image_url,
                unit_price=menu_item.price,
                quantity=line.quantity
            )))
        return resolved

    def _estimate_delivery_time(self, restaurant: Restaurant) -> Optional[str]:
        if not restaurant.delivery_time:
            return None
        minutes = restaurant.upper_delivery_minutes() or DEFAULT_DELIVERY_MINUTES
        return (datetime.now(timezone.utc) + timedelta(minutes=minutes)).isoformat(timespec='milliseconds')

    def place_order(self) -> None:
        """
        Prices the requested lines from the restaurant menu and writes the order with its items in one transaction.
        Food orders never use the cart
        """
        if 1 + len(self.requested_lines) > MAX_TRANSACTION_ITEMS:
            raise exceptions.InvalidItems(f'At most {MAX_TRANSACTION_ITEMS - 1} items can be ordered at once')
        restaurant = Restaurant.init_get_by_id(self.restaurant_id)
        if restaurant.is_open != 1:
            raise exceptions.RestaurantClosed()
        resolved_lines = self._resolve_line_items(restaurant)

        self.subtotal, self.delivery_fee, self.total = compute_food_totals(
            [line_item for _, _, line_item in resolved_lines], restaurant)
        self.order_number = generate_order_number(FOOD_ORDER_NUMBER_PREFIX)
        self.status = order_status.PENDING
        self.estimated_delivery_time = self._estimate_delivery_time(restaurant)

        transact_items = [utils_db.put_op(self._prepare_db_record())]
        item_ids = utils_db.next_ids(FoodOrderItem.counter_name, len(resolved_lines))
        for item_id, (line, menu_item, line_item) in zip(item_ids, resolved_lines):
            self.order_items.append(FoodOrderItem(
                id_=item_id,
                order_id=self.id_,
                menu_item_id=menu_item.id_,
                quantity=line_item.quantity,
                price=line_item.unit_price,
                total_price=line_item.total_price,
                special_instructions=line.special_instructions,
                menu_item_name=menu_item.name,
                menu_item_description=menu_item.description,
                menu_item_image_url=menu_item.image_url
            ))
        transact_items += [utils_db.put_op(order_item._prepare_db_record()) for order_item in self.order_items]
        utils_db.transact_write(transact_items)
        logger.info(f"place_order ::: food order {self.id_} {self.order_number} created with "
                    f"{len(self.order_items)} items, total={self.total}")

    def to_ui(self) -> Dict:
        return {**self._to_ui(), 'orderItems': [order_item._to_ui() for order_item in self.order_items]}

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'restaurant_id': self.restaurant_id,
            'order_number': self.order_number,
            'status': self.status,
            'subtotal': self.subtotal,
            'delivery_fee': self.delivery_fee,
            'total': self.total,
            'delivery_address': self.delivery_address,
            'delivery_instructions': self.delivery_instructions,
            'phone': self.phone,
            'payment_method': self.payment_method,
            'estimated_delivery_time': self.estimated_delivery_time,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }
