from typing import Tuple, Dict, List, Optional

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.categories import Category
from chalicelib.constants import keys_structure
from chalicelib.constants.constants import PRODUCT_SORTS, PRODUCTS_PAGE_SIZE
from chalicelib.constants.status_codes import http200
from chalicelib.utils import db as utils_db, app as utils_app, exceptions, query_params
from chalicelib.utils.data import now_iso, to_int, parse_id
from chalicelib.utils.logger import logger, bind_request

product_sort_keys = {
    'newest': (lambda p: p.created_at or '', True),
    'price-asc': (lambda p: p.price or 0, False),
    'price-desc': (lambda p: p.price or 0, True),
    'rating': (lambda p: (p.rating or 0, p.review_count or 0), True),
    'popular': (lambda p: (p.review_count or 0, p.rating or 0), True),
}


class Product(EntityBase):
    pk = keys_structure.products_pk
    sk = keys_structure.products_sk
    counter_name = 'products'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'slug': lambda x: isinstance(x, str) and len(x) > 0,
        'created_at': lambda x: isinstance(x, str)
    }

    required_mutable_fields_validation = {
        'price': lambda x: isinstance(x, int) and x >= 0,
        'stock_quantity': lambda x: isinstance(x, int) and x >= 0,
        'in_stock': lambda x: x in (0, 1),
        'updated_at': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'description': lambda x: isinstance(x, str),
        'short_description': lambda x: isinstance(x, str),
        'original_price': lambda x: isinstance(x, int),
        'category_id': lambda x: isinstance(x, int),
        'image_url': lambda x: isinstance(x, str),
        'badge': lambda x: isinstance(x, str),
        'is_featured': lambda x: x in (0, 1)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, to_int(id_, id_))
        self.name: str = kwargs.get('name')
        self.slug: str = kwargs.get('slug')
        self.description: Optional[str] = kwargs.get('description')
        self.short_description: Optional[str] = kwargs.get('short_description')
        self.price: int = to_int(kwargs.get('price'), 0)
        self.original_price: Optional[int] = to_int(kwargs.get('original_price'))
        self.category_id: Optional[int] = to_int(kwargs.get('category_id'))
        self.image_url: Optional[str] = kwargs.get('image_url')
        self.additional_images = kwargs.get('additional_images')
        self.stock_quantity: int = to_int(kwargs.get('stock_quantity'), 0)
        self.in_stock: int = to_int(kwargs.get('in_stock'), 1)
        self.badge: Optional[str] = kwargs.get('badge')
        self.rating = kwargs.get('rating')
        self.review_count: int = to_int(kwargs.get('review_count'), 0)
        self.is_featured: int = to_int(kwargs.get('is_featured'), 0)
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.updated_at: str = kwargs.get('updated_at') or self.created_at
        self.record_type = 'product'

    @classmethod
    def init_get_by_id(cls, product_id: int):
        c = cls(product_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.ProductNotFound()
        return c

    @classmethod
    def init_request_get_by_id(cls, request, product_id):
        bind_request(request)
        product = cls.init_get_by_id(parse_id(product_id))
        # products taken off sale are hidden from the public catalog
        if product.in_stock != 1:
            raise exceptions.ProductNotFound()
        return product

    @classmethod
    def get_all(cls, filter_expression=None) -> List['Product']:
        records = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.products_pk),
            filter_expression=filter_expression
        )
        return [cls(**record) for record in records]

    @staticmethod
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        bind_request(request)
        params = query_params.get_query_params(request)
        category_id = query_params.parse_int_param(params, 'category', 'INVALID_CATEGORY', minimum=None)
        search = query_params.parse_search_param(params)
        min_price = query_params.parse_int_param(params, 'minPrice', 'INVALID_MIN_PRICE')
        max_price = query_params.parse_int_param(params, 'maxPrice', 'INVALID_MAX_PRICE')
        if min_price is not None and max_price is not None and min_price > max_price:
            raise exceptions.InvalidQueryParameter('minPrice cannot be greater than maxPrice',
                                                   code='INVALID_PRICE_RANGE')
        limit, offset = query_params.parse_pagination(params, PRODUCTS_PAGE_SIZE)
        sort = query_params.parse_choice_param(params, 'sort', 'INVALID_SORT', PRODUCT_SORTS, 'newest')

        filter_expression = Attr('in_stock').eq(1)
        if category_id is not None:
            filter_expression &= Attr('category_id').eq(category_id)
        if min_price is not None:
            filter_expression &= Attr('price').gte(min_price)
        if max_price is not None:
            filter_expression &= Attr('price').lte(max_price)

        products = Product.get_all(filter_expression=filter_expression)
        if search:
            products = [product for product in products if product.matches(search)]
        sort_key, reverse = product_sort_keys[sort]
        products.sort(key=sort_key, reverse=reverse)

        categories = Category.get_by_ids()
        page = []
        for product in products[offset:offset + limit]:
            category = categories.get(product.category_id)
            page.append({
                **product._to_ui(),
                'categoryName': category.name if category else None,
                'categorySlug': category.slug if category else None
            })
        logger.info(f"endpoint_get_all ::: returning {len(page)} of {len(products)} products")
        return Response(status_code=http200, body={
            'products': page,
            'total': len(products),
            'limit': limit,
            'offset': offset
        })

    @utils_app.log_start_finish
    def endpoint_get_by_id(self) -> Response:
        category = None
        if self.category_id is not None:
            try:
                category = Category.init_get_by_id(self.category_id).summary()
            except exceptions.NotFound:
                logger.warning(f'endpoint_get_by_id ::: category {self.category_id} of product {self.id_} is missing')
        return Response(status_code=http200, body={**self._to_ui(), 'category': category})

    def matches(self, search: str) -> bool:
        return any(search in (value or '').lower() for value in (self.name, self.description))

    def check_purchasable(self, quantity: int, named: bool = False) -> None:
        """
        A product can be bought only while it is in stock and has enough units left.
        `named` puts the product name into the messages, used when a whole cart is checked
        """
        if self.in_stock != 1:
            message = f'Product "{self.name}" is no longer available' if named else None
            raise exceptions.ProductUnavailable(message)
        if self.stock_quantity < quantity:
            if named:
                message = f'Insufficient stock for "{self.name}". Available: {self.stock_quantity}'
            else:
                message = f'Insufficient stock. Only {self.stock_quantity} items available'
            raise exceptions.InsufficientStock(message)

    def summary(self) -> Dict:
        return {
            'id': self.id_,
            'name': self.name,
            'price': self.price,
            'imageUrl': self.image_url,
            'stockQuantity': self.stock_quantity,
            'inStock': self.in_stock
        }

    def stock_decrement_op(self, quantity: int) -> Dict:
        return utils_db.update_op(
            key=self._db_key(),
            update_expression='SET #stock_quantity = #stock_quantity - :quantity, #updated_at = :updated_at',
            expr_attr_names={'#stock_quantity': 'stock_quantity', '#in_stock': 'in_stock',
                             '#updated_at': 'updated_at'},
            expr_attr_values={':quantity': quantity, ':one': 1, ':updated_at': now_iso()},
            condition_expression='#stock_quantity >= :quantity AND #in_stock = :one'
        )

    def stock_restore_op(self, quantity: int) -> Dict:
        return utils_db.update_op(
            key=self._db_key(),
            update_expression='SET #stock_quantity = #stock_quantity + :quantity, #updated_at = :updated_at',
            expr_attr_names={'#stock_quantity': 'stock_quantity', '#updated_at': 'updated_at',
                             '#partkey': 'partkey'},
            expr_attr_values={':quantity': quantity, ':updated_at': now_iso()},
            condition_expression='attribute_exists(#partkey)'
        )

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(product_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'category_id': self.category_id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'short_description': self.short_description,
            'price': self.price,
            'original_price': self.original_price,
            'image_url': self.image_url,
            'additional_images': self.additional_images,
            'stock_quantity': self.stock_quantity,
            'in_stock': self.in_stock,
            'badge': self.badge,
            'rating': self.rating,
            'review_count': self.review_count,
            'is_featured': self.is_featured,
            'created_at': self.created_at,
            'updated_at': self.updated_at
        }
