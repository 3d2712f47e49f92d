from typing import Tuple, List, Dict, Optional

from boto3.dynamodb.conditions import Key
from chalice import Response

from chalicelib import order_status
from chalicelib.base_class_entity import EntityBase
from chalicelib.carts import Cart, CheckoutLine
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import ORDER_NUMBER_PREFIX, MAX_TRANSACTION_ITEMS
from chalicelib.constants.status_codes import http200, http201
from chalicelib.pricing import compute_totals, resolve_marketplace_delivery_fee
from chalicelib.products import Product
from chalicelib.schemas import PlaceOrderRequest, reject_user_id
from chalicelib.utils import auth as utils_auth, db as utils_db, app as utils_app, data as utils_data, exceptions
from chalicelib.utils.data import now_iso, to_int, parse_id, generate_order_number
from chalicelib.utils.logger import logger


class OrderItem(EntityBase):
    """
    Snapshot of a product at order time, later catalog edits do not change it
    """
    pk = keys_structure.order_items_pk
    sk = keys_structure.order_items_sk
    counter_name = 'order_items'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'order_id': lambda x: isinstance(x, int),
        'product_id': lambda x: isinstance(x, int),
        'product_name': lambda x: isinstance(x, str),
        'quantity': lambda x: isinstance(x, int) and x >= 1,
        'unit_price': lambda x: isinstance(x, int) and x >= 0,
        'total_price': lambda x: isinstance(x, int) and x >= 0,
        'created_at': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, to_int(id_, id_))
        self.order_id: int = to_int(kwargs.get('order_id'))
        self.product_id: int = to_int(kwargs.get('product_id'))
        self.product_name: str = kwargs.get('product_name')
        self.product_image: Optional[str] = kwargs.get('product_image')
        self.quantity: int = to_int(kwargs.get('quantity'), 0)
        self.unit_price: int = to_int(kwargs.get('unit_price'), 0)
        self.total_price: int = to_int(kwargs.get('total_price'), 0)
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.record_type = 'order_item'

    @classmethod
    def init_from_checkout_line(cls, id_: int, order_id: int, checkout_line: CheckoutLine):
        line_item = checkout_line.line_item
        return cls(
            id_=id_,
            order_id=order_id,
            product_id=line_item.item_id,
            product_name=line_item.name,
            product_image=line_item.image_url,
            quantity=line_item.quantity,
            unit_price=line_item.unit_price,
            total_price=line_item.total_price
        )

    @classmethod
    def get_by_order_id(cls, order_id: int) -> List['OrderItem']:
        records = utils_db.query_items_paged(Key('partkey').eq(keys_structure.order_items_pk.format(order_id=order_id)))
        return [cls(**record) for record in records]

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk.format(order_id=self.order_id), self.sk.format(order_item_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'order_id': self.order_id,
            'product_id': self.product_id,
            'product_name': self.product_name,
            'product_image': self.product_image,
            'quantity': self.quantity,
            'unit_price': self.unit_price,
            'total_price': self.total_price,
            'created_at': self.created_at
        }


class Order(EntityBase):
    pk = keys_structure.orders_pk
    sk = keys_structure.orders_sk
    counter_name = 'orders'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'user_id': lambda x: isinstance(x, str),
        'order_number': lambda x: isinstance(x, str),
        'subtotal': lambda x: isinstance(x, int) and x >= 0,
        'delivery_fee': lambda x: isinstance(x, int) and x >= 0,
        'total': lambda x: isinstance(x, int) and x >= 0,
        'delivery_address': lambda x: isinstance(x, str) and len(x) > 0,
        'delivery_phone': lambda x: isinstance(x, str) and len(x) > 0,
        'created_at': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'status': lambda x: x in order_status.ORDER_STATUSES,
        'updated_at': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'delivery_notes': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, to_int(id_, id_))
        self.user_id: str = kwargs.get('user_id')
        self.order_number: str = kwargs.get('order_number')
        self.status: str = kwargs.get('status', order_status.PENDING)
        self.subtotal: int = to_int(kwargs.get('subtotal'), 0)
        self.delivery_fee: int = to_int(kwargs.get('delivery_fee'), 0)
        self.total: int = to_int(kwargs.get('total'), 0)
        self.delivery_address: str = kwargs.get('delivery_address')
        self.delivery_phone: str = kwargs.get('delivery_phone')
        self.delivery_notes: Optional[str] = kwargs.get('delivery_notes') or None
        self.requested_delivery_fee: Optional[int] = kwargs.get('requested_delivery_fee')
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.updated_at: str = kwargs.get('updated_at') or self.created_at
        self.order_items: List[OrderItem] = []
        self.record_type = 'order'

    @classmethod
    def init_get_by_id(cls, order_id: int):
        c = cls(order_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.OrderNotFound()
        c.order_items = OrderItem.get_by_order_id(c.id_)
        return c

    @classmethod
    @utils_auth.authenticate_class
    def init_request_create(cls, request):
        logger.info("init_request_create ::: started")
        request_body = utils_data.parse_raw_body(request)
        reject_user_id(request_body)
        order_request = PlaceOrderRequest.parse(request_body)
        return cls(
            user_id=request.auth_result['user_id'],
            delivery_address=order_request.delivery_address,
            delivery_phone=order_request.delivery_phone,
            delivery_notes=order_request.delivery_notes,
            requested_delivery_fee=order_request.delivery_fee
        )

    @classmethod
    @utils_auth.authenticate_class
    def init_request_get_by_id(cls, request, order_id):
        logger.info("init_request_get_by_id ::: started")
        order = cls.init_get_by_id(parse_id(order_id))
        order.check_owner(request.auth_result['user_id'])
        return order

    @classmethod
    def get_by_user_id(cls, user_id: str) -> List['Order']:
        records = utils_db.query_items_paged(
            Key('user_partkey').eq(keys_structure.gsi_user_pk.format(record_type='order', user_id=user_id)),
            index_name=keys_structure.gsi_user_index_name
        )
        orders = [cls(**record) for record in records]
        for order in orders:
            order.order_items = OrderItem.get_by_order_id(order.id_)
        orders.sort(key=lambda order: (order.created_at, order.id_), reverse=True)
        return orders

    @classmethod
    @utils_auth.authenticate_class
    @utils_app.log_start_finish
    def endpoint_get_all(cls, request) -> Response:
        orders = cls.get_by_user_id(request.auth_result['user_id'])
        logger.info(f"endpoint_get_all ::: returning orders={[order.id_ for order in orders]}")
        return Response(status_code=http200, body=[order.to_ui() for order in orders])

    @utils_app.log_start_finish
    def endpoint_create(self) -> Response:
        self.place_order()
        return Response(status_code=http201, body=self.to_ui())

    @utils_app.log_start_finish
    def endpoint_get_by_id(self) -> Response:
        return Response(status_code=http200, body=self.to_ui())

    @utils_app.log_start_finish
    def endpoint_cancel(self) -> Response:
        self.cancel()
        return Response(status_code=http200, body=self.to_ui())

    def check_owner(self, user_id: str) -> None:
        if self.user_id != user_id:
            logger.warning(f'check_owner ::: user {user_id} tried to access order {self.id_}')
            raise exceptions.AccessDenied('Access denied to this order')

    def place_order(self) -> None:
        """
        Turns the caller's cart into an order.
        Order, items, stock decrements and cart removal are written in one transaction
        """
        cart = Cart(self.user_id)
        checkout_lines = cart.resolve_for_checkout()
        cart_items = [cart_item for line in checkout_lines for cart_item in line.cart_items]
        # order, then per product one item, one stock update and one marker delete, then one delete per cart row
        if 1 + 3 * len(checkout_lines) + len(cart_items) > MAX_TRANSACTION_ITEMS:
            raise exceptions.CartTooLarge()

        totals = compute_totals(
            [line.line_item for line in checkout_lines],
            delivery_fee=resolve_marketplace_delivery_fee(self.requested_delivery_fee)
        )
        self.subtotal, self.delivery_fee, self.total = totals
        self.order_number = generate_order_number(ORDER_NUMBER_PREFIX)
        self.status = order_status.PENDING

        transact_items = [utils_db.put_op(self._prepare_db_record())]
        item_ids = utils_db.next_ids(OrderItem.counter_name, len(checkout_lines))
        self.order_items = [OrderItem.init_from_checkout_line(item_id, self.id_, line)
                            for item_id, line in zip(item_ids, checkout_lines)]
        transact_items += [utils_db.put_op(order_item._prepare_db_record()) for order_item in self.order_items]
        transact_items += [line.product.stock_decrement_op(line.line_item.quantity) for line in checkout_lines]
        transact_items += [line.cart_items[0].marker_delete_op() for line in checkout_lines]
        transact_items += [cart_item.delete_op() for cart_item in cart_items]

        try:
            utils_db.transact_write(transact_items)
        except exceptions.TransactionCancelled:
            # stock or cart changed since it was read, report the precise reason if there is one
            cart.resolve_for_checkout()
            raise exceptions.Conflict('Cart or stock changed while placing the order, please retry')
        logger.info(f"place_order ::: order {self.id_} {self.order_number} created with "
                    f"{len(self.order_items)} items, total={self.total}")

    def cancel(self) -> None:
        """
        Cancels a pending order and puts its units back in stock, deleted products are skipped
        """
        order_status.check_can_cancel(self.status, order_status.ORDER_CANCELLABLE_FROM)
        previous_status = self.status
        self.status = order_status.CANCELLED
        self.updated_at = now_iso()
        transact_items = [utils_db.update_op(
            key=self._db_key(),
            update_expression='SET #status = :status, #updated_at = :updated_at',
            expr_attr_names={'#status': 'status', '#updated_at': 'updated_at'},
            expr_attr_values={':status': self.status, ':updated_at': self.updated_at,
                              ':previous_status': previous_status},
            condition_expression='#status = :previous_status'
        )]
        for order_item in self.order_items:
            try:
                product = Product.init_get_by_id(order_item.product_id)
            except exceptions.ProductNotFound:
                logger.warning(f"cancel ::: product {order_item.product_id} of order {self.id_} no longer exists, "
                               f"{order_item.quantity} units are not restocked")
                continue
            transact_items.append(product.stock_restore_op(order_item.quantity))
        try:
            utils_db.transact_write(transact_items)
        except exceptions.TransactionCancelled:
            raise exceptions.Conflict('Order was changed by another request, please retry')
        logger.info(f"cancel ::: order {self.id_} cancelled, {len(self.order_items)} items restocked or skipped")

    def to_ui(self) -> Dict:
        return {**self._to_ui(), 'orderItems': [order_item._to_ui() for order_item in self.order_items]}

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(order_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'order_number': self.order_number,
            'status': self.status,
            'subtotal': self.subtotal,
            'delivery_fee': self.delivery_fee,
            'total': self.total,
            'delivery_address': self.delivery_address,
            'delivery_phone': self.delivery_phone,
            'delivery_notes': self.delivery_notes,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }
