import re
from typing import Tuple, Dict, List, Optional

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import RESTAURANT_SORTS, RESTAURANTS_PAGE_SIZE, DEFAULT_MENU_CATEGORY
from chalicelib.constants.status_codes import http200
from chalicelib.utils import db as utils_db, app as utils_app, exceptions, query_params
from chalicelib.utils.data import now_iso, to_int, to_ui_keys, parse_id
from chalicelib.utils.logger import logger, bind_request

delivery_time_pattern = re.compile(r'^\s*(\d+)\s*(?:-\s*(\d+))?')


def parse_delivery_time(delivery_time: Optional[str]) -> Optional[Tuple[int, int]]:
    """
    "20-30" -> (20, 30), "45" -> (45, 45), anything else -> None
    """
    match = delivery_time_pattern.match(delivery_time or '')
    if match is None:
        return None
    low = int(match.group(1))
    high = int(match.group(2)) if match.group(2) else low
    return low, high


def delivery_time_sort_key(restaurant: 'Restaurant'):
    # restaurants with an unreadable delivery time go last
    bounds = parse_delivery_time(restaurant.delivery_time)
    return (0, bounds[0]) if bounds else (1, 0)


restaurant_sort_keys = {
    'rating': (lambda r: r.rating or 0, True),
    'deliveryFee': (lambda r: r.delivery_fee, False),
    'deliveryTime': (delivery_time_sort_key, False),
    'newest': (lambda r: r.created_at or '', True),
}


class Restaurant(EntityBase):
    pk = keys_structure.restaurants_pk
    sk = keys_structure.restaurants_sk
    counter_name = 'restaurants'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'slug': lambda x: isinstance(x, str) and len(x) > 0,
        'created_at': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'cuisine': lambda x: isinstance(x, str),
        'delivery_fee': lambda x: isinstance(x, int) and x >= 0,
        'minimum_order': lambda x: isinstance(x, int) and x >= 0,
        'is_open': lambda x: x in (0, 1),
        'updated_at': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'image_url': lambda x: isinstance(x, str),
        'delivery_time': lambda x: isinstance(x, str),
        'location': lambda x: isinstance(x, str),
        'phone': lambda x: isinstance(x, str)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, to_int(id_, id_))
        self.name: str = kwargs.get('name')
        self.slug: str = kwargs.get('slug')
        self.description: Optional[str] = kwargs.get('description')
        self.cuisine: str = kwargs.get('cuisine')
        self.image_url: Optional[str] = kwargs.get('image_url')
        self.rating = kwargs.get('rating')
        self.delivery_time: Optional[str] = kwargs.get('delivery_time')
        self.delivery_fee: int = to_int(kwargs.get('delivery_fee'), 0)
        self.minimum_order: int = to_int(kwargs.get('minimum_order'), 0)
        self.is_open: int = to_int(kwargs.get('is_open'), 1)
        self.location: Optional[str] = kwargs.get('location')
        self.phone: Optional[str] = kwargs.get('phone')
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.updated_at: str = kwargs.get('updated_at') or self.created_at
        self.record_type = 'restaurant'

    @classmethod
    def init_get_by_id(cls, restaurant_id: int):
        logger.info("init_get_by_id ::: started")
        c = cls(restaurant_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.RestaurantNotFound()
        return c

    @classmethod
    def init_request_get_by_id(cls, request, restaurant_id):
        bind_request(request)
        restaurant = cls.init_get_by_id(parse_id(restaurant_id))
        if restaurant.is_open != 1:
            raise exceptions.RestaurantNotFound()
        return restaurant

    @classmethod
    def get_all(cls, filter_expression=None) -> List['Restaurant']:
        records = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.restaurants_pk),
            filter_expression=filter_expression
        )
        return [cls(**record) for record in records]

    @staticmethod
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        bind_request(request)
        params = query_params.get_query_params(request)
        cuisine = params.get('cuisine') or None
        is_open = query_params.parse_bool_param(params, 'isOpen', 'INVALID_IS_OPEN_PARAMETER')
        search = query_params.parse_search_param(params)
        sort = query_params.parse_choice_param(params, 'sort', 'INVALID_SORT_PARAMETER', RESTAURANT_SORTS, 'rating')
        limit, offset = query_params.parse_pagination(params, RESTAURANTS_PAGE_SIZE)

        filter_expression = None
        if cuisine is not None:
            filter_expression = Attr('cuisine').eq(cuisine)
        if is_open is not None:
            open_condition = Attr('is_open').eq(1 if is_open else 0)
            filter_expression = open_condition if filter_expression is None else filter_expression & open_condition

        restaurants = Restaurant.get_all(filter_expression=filter_expression)
        if search:
            restaurants = [restaurant for restaurant in restaurants if restaurant.matches(search)]
        sort_key, reverse = restaurant_sort_keys[sort]
        restaurants.sort(key=sort_key, reverse=reverse)

        page = [restaurant._to_ui() for restaurant in restaurants[offset:offset + limit]]
        logger.info(f"endpoint_get_all ::: returning restaurants={[rest['id'] for rest in page]}")
        return Response(status_code=http200, body={
            'restaurants': page,
            'total': len(restaurants),
            'limit': limit,
            'offset': offset
        })

    @utils_app.log_start_finish
    def endpoint_get_by_id(self) -> Response:
        menu_item_records = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.menu_items_pk),
            filter_expression=Attr('restaurant_id').eq(self.id_) & Attr('is_available').eq(1)
        )
        menu_items = [to_ui_keys(record) for record in menu_item_records]
        menu_by_category: Dict[str, List[Dict]] = {}
        for item in menu_items:
            menu_by_category.setdefault(item.get('category') or DEFAULT_MENU_CATEGORY, []).append(item)
        logger.info(f"endpoint_get_by_id ::: restaurant_id={self.id_}, {len(menu_items)} menu items")
        return Response(status_code=http200, body={
            **self._to_ui(),
            'menuItems': menu_items,
            'menuByCategory': menu_by_category
        })

    def matches(self, search: str) -> bool:
        return any(search in (value or '').lower()
                   for value in (self.name, self.description, self.cuisine, self.location))

    def upper_delivery_minutes(self) -> Optional[int]:
        bounds = parse_delivery_time(self.delivery_time)
        return bounds[1] if bounds else None

    def summary(self) -> Dict:
        return {
            'id': self.id_,
            'name': self.name,
            'slug': self.slug,
            'cuisine': self.cuisine,
            'imageUrl': self.image_url
        }

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(restaurant_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'cuisine': self.cuisine,
            'image_url': self.image_url,
            'rating': self.rating,
            'delivery_time': self.delivery_time,
            'delivery_fee': self.delivery_fee,
            'minimum_order': self.minimum_order,
            'is_open': self.is_open,
            'location': self.location,
            'phone': self.phone,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }
