from typing import Tuple, List, Dict, Optional

from boto3.dynamodb.conditions import Key
from chalice import Response

from chalicelib.base_class_entity import UserProductEntity
from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200, http201
from chalicelib.products import Product
from chalicelib.schemas import AddWishlistItemRequest
from chalicelib.utils import auth as utils_auth, db as utils_db, app as utils_app, data as utils_data, exceptions
from chalicelib.utils.data import now_iso, to_int, parse_id
from chalicelib.utils.logger import logger
from chalicelib.utils.query_params import get_query_params


class WishlistItem(UserProductEntity):
    pk = keys_structure.wishlist_items_pk
    sk = keys_structure.wishlist_items_sk
    marker_pk = keys_structure.wishlist_products_pk
    marker_sk = keys_structure.wishlist_products_sk
    counter_name = 'wishlist_items'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'user_id': lambda x: isinstance(x, str),
        'product_id': lambda x: isinstance(x, int),
        'created_at': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        UserProductEntity.__init__(self, to_int(id_, id_))
        self.user_id: str = kwargs.get('user_id')
        self.product_id: int = to_int(kwargs.get('product_id'))
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.record_type = 'wishlist_item'

    @classmethod
    def init_get_by_id(cls, wishlist_item_id: int):
        c = cls(wishlist_item_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.WishlistItemNotFound()
        return c

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(wishlist_item_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'user_id': self.user_id,
            'product_id': self.product_id,
            'created_at': self.created_at
        }


class Wishlist:
    """
    Saved products of one user, a product is saved at most once
    """

    def __init__(self, user_id: str, request):
        self.user_id = user_id
        self.request = request

    @classmethod
    @utils_auth.authenticate_class
    def init_endpoint(cls, request):
        logger.info("init_endpoint ::: started")
        return cls(user_id=request.auth_result['user_id'], request=request)

    def get_items(self) -> List[WishlistItem]:
        records = utils_db.query_items_paged(
            Key('user_partkey').eq(
                keys_structure.gsi_user_pk.format(record_type='wishlist_item', user_id=self.user_id)),
            index_name=keys_structure.gsi_user_index_name
        )
        return [WishlistItem(**record) for record in records]

    def find_by_product(self, product_id: int) -> Optional[WishlistItem]:
        for wishlist_item in self.get_items():
            if wishlist_item.product_id == product_id:
                return wishlist_item
        return None

    def add(self, product_id: int) -> WishlistItem:
        product = Product.init_get_by_id(product_id)
        if product.in_stock != 1:
            raise exceptions.ProductInactive()
        if self.find_by_product(product_id) is not None:
            raise exceptions.DuplicateWishlistItem()
        wishlist_item = WishlistItem(user_id=self.user_id, product_id=product_id)
        try:
            wishlist_item._create_unique_record()
        except exceptions.TransactionCancelled:
            raise exceptions.DuplicateWishlistItem()
        return wishlist_item

    @utils_app.log_start_finish
    def endpoint_get_all(self) -> Response:
        items = []
        for wishlist_item in self.get_items():
            try:
                product = Product.init_get_by_id(wishlist_item.product_id)
            except exceptions.ProductNotFound:
                logger.warning(f'endpoint_get_all ::: product {wishlist_item.product_id} of wishlist item '
                               f'{wishlist_item.id_} is missing, skipping')
                continue
            items.append({**wishlist_item._to_ui(), 'product': product._to_ui()})
        return Response(status_code=http200, body=items)

    @utils_app.log_start_finish
    def endpoint_add_item(self) -> Response:
        wishlist_request = AddWishlistItemRequest.parse(utils_data.parse_raw_body(self.request))
        wishlist_item = self.add(wishlist_request.product_id)
        return Response(status_code=http201, body=wishlist_item._to_ui())

    @utils_app.log_start_finish
    def endpoint_remove_item(self) -> Response:
        """
        DELETE ?id=<id>, items of other users are reported as missing
        """
        wishlist_item_id = parse_id(get_query_params(self.request).get('id'))
        wishlist_item = WishlistItem.init_get_by_id(wishlist_item_id)
        if wishlist_item.user_id != self.user_id:
            raise exceptions.WishlistItemNotFound()
        wishlist_item._delete_unique_record()
        return Response(status_code=http200, body={
            'message': 'Wishlist item removed successfully',
            'item': wishlist_item._to_ui()
        })

    @utils_app.log_start_finish
    def endpoint_delete_item(self, wishlist_item_id) -> Response:
        wishlist_item = WishlistItem.init_get_by_id(parse_id(wishlist_item_id))
        if wishlist_item.user_id != self.user_id:
            logger.warning(f'endpoint_delete_item ::: user {self.user_id} tried to delete '
                           f'wishlist item {wishlist_item.id_}')
            raise exceptions.AccessDenied('You do not have permission to delete this wishlist item')
        wishlist_item._delete_unique_record()
        return Response(status_code=http200, body={
            'message': 'Wishlist item deleted successfully',
            'deletedItem': wishlist_item._to_ui()
        })
