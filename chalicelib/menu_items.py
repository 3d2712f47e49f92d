from typing import Tuple, Dict, List, Optional

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import MENU_ITEMS_PAGE_SIZE
from chalicelib.constants.status_codes import http200
from chalicelib.restaurants import Restaurant
from chalicelib.utils import db as utils_db, app as utils_app, exceptions, query_params
from chalicelib.utils.data import now_iso, to_int, parse_id
from chalicelib.utils.logger import logger, bind_request


class MenuItem(EntityBase):
    pk = keys_structure.menu_items_pk
    sk = keys_structure.menu_items_sk
    counter_name = 'menu_items'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'restaurant_id': lambda x: isinstance(x, int),
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'slug': lambda x: isinstance(x, str) and len(x) > 0,
        'created_at': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'price': lambda x: isinstance(x, int) and x >= 0,
        'is_available': lambda x: x in (0, 1)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'original_price': lambda x: isinstance(x, int),
        'image_url': lambda x: isinstance(x, str),
        'category': lambda x: isinstance(x, str),
        'badge': lambda x: isinstance(x, str),
        'preparation_time': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, to_int(id_, id_))
        self.restaurant_id: int = to_int(kwargs.get('restaurant_id'))
        self.name: str = kwargs.get('name')
        self.slug: str = kwargs.get('slug')
        self.description: Optional[str] = kwargs.get('description')
        self.price: int = to_int(kwargs.get('price'), 0)
        self.original_price: Optional[int] = to_int(kwargs.get('original_price'))
        self.image_url: Optional[str] = kwargs.get('image_url')
        # free text grouping label, not a reference
        self.category: Optional[str] = kwargs.get('category')
        self.is_available: int = to_int(kwargs.get('is_available'), 1)
        self.badge: Optional[str] = kwargs.get('badge')
        self.preparation_time: Optional[str] = kwargs.get('preparation_time')
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.record_type = 'menu_item'

    @classmethod
    def init_get_by_id(cls, menu_item_id: int):
        c = cls(menu_item_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.MenuItemNotFound()
        return c

    @classmethod
    def init_request_get_by_id(cls, request, menu_item_id):
        bind_request(request)
        menu_item = cls.init_get_by_id(parse_id(menu_item_id))
        if menu_item.is_available != 1:
            raise exceptions.MenuItemNotFound()
        return menu_item

    @classmethod
    def get_by_ids(cls, menu_item_ids: List[int]) -> Dict[int, 'MenuItem']:
        menu_items = {}
        for menu_item_id in set(menu_item_ids):
            try:
                menu_items[menu_item_id] = cls.init_get_by_id(menu_item_id)
            except exceptions.MenuItemNotFound:
                logger.info(f'get_by_ids ::: menu item {menu_item_id} not found')
        return menu_items

    @staticmethod
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        bind_request(request)
        params = query_params.get_query_params(request)
        restaurant_id = query_params.parse_int_param(params, 'restaurantId', 'INVALID_RESTAURANT_ID', minimum=1)
        category = params.get('category') or None
        search = query_params.parse_search_param(params)
        is_available = query_params.parse_bool_param(params, 'isAvailable', 'INVALID_IS_AVAILABLE', default=True)
        limit, offset = query_params.parse_pagination(params, MENU_ITEMS_PAGE_SIZE)

        filter_expression = Attr('is_available').eq(1 if is_available else 0)
        if restaurant_id is not None:
            filter_expression &= Attr('restaurant_id').eq(restaurant_id)
        if category is not None:
            filter_expression &= Attr('category').eq(category)

        records = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.menu_items_pk),
            filter_expression=filter_expression
        )
        menu_items = [MenuItem(**record) for record in records]
        if search:
            menu_items = [item for item in menu_items if item.matches(search)]

        restaurants = {restaurant.id_: restaurant for restaurant in Restaurant.get_all()}
        page = []
        for menu_item in menu_items[offset:offset + limit]:
            restaurant = restaurants.get(menu_item.restaurant_id)
            page.append({**menu_item._to_ui(), 'restaurant': restaurant.summary() if restaurant else None})
        logger.info(f"endpoint_get_all ::: returning {len(page)} of {len(menu_items)} menu items")
        return Response(status_code=http200, body={
            'menuItems': page,
            'total': len(menu_items),
            'limit': limit,
            'offset': offset
        })

    @utils_app.log_start_finish
    def endpoint_get_by_id(self) -> Response:
        try:
            restaurant = Restaurant.init_get_by_id(self.restaurant_id)
        except exceptions.RestaurantNotFound:
            raise exceptions.MenuItemNotFound()
        return Response(status_code=http200, body={
            **self._to_ui(),
            'restaurant': {
                **restaurant.summary(),
                'rating': restaurant._to_ui()['rating'],
                'deliveryTime': restaurant.delivery_time,
                'deliveryFee': restaurant.delivery_fee,
                'isOpen': restaurant.is_open
            }
        })

    def matches(self, search: str) -> bool:
        return any(search in (value or '').lower() for value in (self.name, self.description))

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(menu_item_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'restaurant_id': self.restaurant_id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'price': self.price,
            'original_price': self.original_price,
            'image_url': self.image_url,
            'category': self.category,
            'is_available': self.is_available,
            'badge': self.badge,
            'preparation_time': self.preparation_time,
            'created_at': self.created_at
        }
