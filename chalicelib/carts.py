from typing import Tuple, List, Dict, NamedTuple, Optional

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import UserProductEntity
from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200, http201
from chalicelib.pricing import LineItem
from chalicelib.products import Product
from chalicelib.schemas import AddCartItemRequest, UpdateCartItemRequest
from chalicelib.utils import auth as utils_auth, db as utils_db, app as utils_app, data as utils_data, exceptions
from chalicelib.utils.data import now_iso, to_int, parse_id
from chalicelib.utils.logger import logger


class CartItem(UserProductEntity):
    pk = keys_structure.cart_items_pk
    sk = keys_structure.cart_items_sk
    marker_pk = keys_structure.cart_products_pk
    marker_sk = keys_structure.cart_products_sk
    counter_name = 'cart_items'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'user_id': lambda x: isinstance(x, str),
        'product_id': lambda x: isinstance(x, int),
        'created_at': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'quantity': lambda x: isinstance(x, int) and x >= 1,
        'updated_at': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        UserProductEntity.__init__(self, to_int(id_, id_))
        self.user_id: str = kwargs.get('user_id')
        self.product_id: int = to_int(kwargs.get('product_id'))
        self.quantity: int = to_int(kwargs.get('quantity'), 0)
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.updated_at: str = kwargs.get('updated_at') or self.created_at
        self.record_type = 'cart_item'

    @classmethod
    def init_get_by_id(cls, cart_item_id: int):
        c = cls(cart_item_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.CartItemNotFound()
        return c

    def check_owner(self, user_id: str) -> None:
        if self.user_id != user_id:
            logger.warning(f'check_owner ::: user {user_id} tried to access cart item {self.id_}')
            raise exceptions.AccessDenied('Unauthorized access to cart item')

    def set_quantity(self, quantity: int) -> None:
        """
        Compare-and-swap on the quantity read before, a concurrent change is reported as a conflict
        """
        previous_quantity = self.quantity
        self.quantity = quantity
        try:
            self._update_db_record(condition_expression=Attr('quantity').eq(previous_quantity))
        except exceptions.ConditionFailed:
            raise exceptions.Conflict('Cart item was changed by another request, please retry')

    def delete_op(self) -> Dict:
        """ Transaction delete which fails if the row quantity changed after it was read """
        return utils_db.delete_op(
            self._db_key(),
            condition_expression='#quantity = :quantity',
            expr_attr_names={'#quantity': 'quantity'},
            expr_attr_values={':quantity': self.quantity}
        )

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(cart_item_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'product_id': self.product_id,
            'quantity': self.quantity,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }


class CheckoutLine(NamedTuple):
    cart_items: List[CartItem]
    product: Product
    line_item: LineItem


class Cart:
    """
    All cart rows of one user
    """

    def __init__(self, user_id: str, request_body: Optional[Dict] = None):
        self.user_id = user_id
        self.request_body = request_body or {}

    @classmethod
    @utils_auth.authenticate_class
    def init_endpoint(cls, request):
        logger.info("init_endpoint ::: started")
        return cls(
            user_id=request.auth_result['user_id'],
            request_body=utils_data.parse_raw_body(request)
        )

    def get_items(self) -> List[CartItem]:
        records = utils_db.query_items_paged(
            Key('user_partkey').eq(keys_structure.gsi_user_pk.format(record_type='cart_item', user_id=self.user_id)),
            index_name=keys_structure.gsi_user_index_name
        )
        return [CartItem(**record) for record in records]

    def find_by_product(self, product_id: int) -> Optional[CartItem]:
        for cart_item in self.get_items():
            if cart_item.product_id == product_id:
                return cart_item
        return None

    def add_or_increment(self, product_id: int, quantity: int) -> Tuple[CartItem, bool]:
        if quantity < 1:
            raise exceptions.InvalidQuantity()
        product = Product.init_get_by_id(product_id)
        product.check_purchasable(quantity)

        cart_item = self.find_by_product(product_id)
        if cart_item is not None:
            combined_quantity = cart_item.quantity + quantity
            if product.stock_quantity < combined_quantity:
                raise exceptions.InsufficientStock(
                    f'Insufficient stock for combined quantity. Only {product.stock_quantity} items available')
            cart_item.set_quantity(combined_quantity)
            logger.info(f"add_or_increment ::: cart item {cart_item.id_} quantity set to {combined_quantity}")
            return cart_item, False

        cart_item = CartItem(user_id=self.user_id, product_id=product_id, quantity=quantity)
        try:
            cart_item._create_unique_record()
        except exceptions.TransactionCancelled:
            raise exceptions.Conflict('Product was added to the cart by another request, please retry')
        return cart_item, True

    def resolve_for_checkout(self) -> List[CheckoutLine]:
        """
        Prices the cart from the current product records, one line per product.
        Rows of the same product are merged before stock is checked.
        The whole checkout fails on the first line that can not be bought anymore
        """
        cart_items = self.get_items()
        if not cart_items:
            raise exceptions.EmptyCart()
        cart_items_by_product: Dict[int, List[CartItem]] = {}
        for cart_item in cart_items:
            cart_items_by_product.setdefault(cart_item.product_id, []).append(cart_item)

        checkout_lines = []
        for product_id, product_cart_items in cart_items_by_product.items():
            if len(product_cart_items) > 1:
                logger.warning(f'resolve_for_checkout ::: merging cart items '
                               f'{[cart_item.id_ for cart_item in product_cart_items]} of product {product_id}')
            quantity = sum(cart_item.quantity for cart_item in product_cart_items)
            try:
                product = Product.init_get_by_id(product_id)
            except exceptions.ProductNotFound:
                raise exceptions.ProductUnavailable(f'Product {product_id} is no longer available')
            product.check_purchasable(quantity, named=True)
            checkout_lines.append(CheckoutLine(
                cart_items=product_cart_items,
                product=product,
                line_item=LineItem(
                    item_id=product.id_,
                    name=product.name,
                    image_url=product.image_url,
                    unit_price=product.price,
                    quantity=quantity
                )
            ))
        return checkout_lines

    def _get_owned_item(self, cart_item_id) -> CartItem:
        cart_item = CartItem.init_get_by_id(parse_id(cart_item_id))
        cart_item.check_owner(self.user_id)
        return cart_item

    @utils_app.log_start_finish
    def endpoint_get_cart(self) -> Response:
        items = []
        for cart_item in self.get_items():
            try:
                product = Product.init_get_by_id(cart_item.product_id)
            except exceptions.ProductNotFound:
                logger.warning(f'endpoint_get_cart ::: product {cart_item.product_id} of cart item '
                               f'{cart_item.id_} is missing, skipping')
                continue
            items.append({
                **cart_item._to_ui(),
                'product': product.summary(),
                'subtotal': cart_item.quantity * product.price
            })
        return Response(status_code=http200, body={
            'items': items,
            'totalItems': sum(item['quantity'] for item in items),
            'subtotal': sum(item['subtotal'] for item in items)
        })

    @utils_app.log_start_finish
    def endpoint_add_item(self) -> Response:
        cart_request = AddCartItemRequest.parse(self.request_body)
        cart_item, created = self.add_or_increment(cart_request.product_id, cart_request.quantity)
        return Response(status_code=http201 if created else http200, body=cart_item._to_ui())

    @utils_app.log_start_finish
    def endpoint_update_item(self, cart_item_id) -> Response:
        cart_item_id = parse_id(cart_item_id)
        cart_request = UpdateCartItemRequest.parse(self.request_body)
        cart_item = self._get_owned_item(cart_item_id)
        product = Product.init_get_by_id(cart_item.product_id)
        if product.stock_quantity < cart_request.quantity:
            raise exceptions.InsufficientStock(
                f'Insufficient stock. Only {product.stock_quantity} items available')
        cart_item.set_quantity(cart_request.quantity)
        return Response(status_code=http200, body=cart_item._to_ui())

    @utils_app.log_start_finish
    def endpoint_delete_item(self, cart_item_id) -> Response:
        cart_item = self._get_owned_item(cart_item_id)
        cart_item._delete_unique_record()
        return Response(status_code=http200, body={
            'message': 'Cart item removed successfully',
            'deletedItem': cart_item._to_ui()
        })

