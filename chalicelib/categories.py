from collections import Counter
from typing import Tuple, Dict, List, Optional

from boto3.dynamodb.conditions import Key, Attr
from chalice import Response

from chalicelib.base_class_entity import EntityBase
from chalicelib.constants import keys_structure
from chalicelib.constants.status_codes import http200
from chalicelib.utils import db as utils_db, app as utils_app, exceptions
from chalicelib.utils.data import now_iso, to_int
from chalicelib.utils.logger import logger, bind_request


class Category(EntityBase):
    pk = keys_structure.categories_pk
    sk = keys_structure.categories_sk
    counter_name = 'categories'

    required_immutable_fields_validation = {
        'id_': lambda x: isinstance(x, int),
        'name': lambda x: isinstance(x, str) and len(x) > 0,
        'slug': lambda x: isinstance(x, str) and len(x) > 0,
        'created_at': lambda x: isinstance(x, str)
    }

    optional_fields_validation = {
        'icon': lambda x: isinstance(x, str),
        'description': lambda x: isinstance(x, str),
        'parent_id': lambda x: isinstance(x, int)
    }

    def __init__(self, id_=None, **kwargs):
        EntityBase.__init__(self, to_int(id_, id_))
        self.name: str = kwargs.get('name')
        self.slug: str = kwargs.get('slug')
        self.icon: Optional[str] = kwargs.get('icon')
        self.description: Optional[str] = kwargs.get('description')
        # shallow hierarchy by convention, cycles are not checked
        self.parent_id: Optional[int] = to_int(kwargs.get('parent_id'))
        self.created_at: str = kwargs.get('created_at') or now_iso()
        self.record_type = 'category'

    @classmethod
    def init_get_by_id(cls, category_id: int):
        c = cls(category_id)
        try:
            c.__init__(**c._get_db_item())
        except exceptions.RecordNotFound:
            raise exceptions.NotFound(f'Category {category_id} not found')
        return c

    @classmethod
    def get_all(cls) -> List['Category']:
        records = utils_db.query_items_paged(Key('partkey').eq(keys_structure.categories_pk))
        return [cls(**record) for record in records]

    @classmethod
    def get_by_ids(cls) -> Dict[int, 'Category']:
        return {category.id_: category for category in cls.get_all()}

    @staticmethod
    @utils_app.log_start_finish
    def endpoint_get_all(request) -> Response:
        bind_request(request)
        product_records = utils_db.query_items_paged(
            Key('partkey').eq(keys_structure.products_pk),
            filter_expression=Attr('in_stock').eq(1),
            projection_expression='#category_id',
            expr_attr_names={'#category_id': 'category_id'}
        )
        product_count = Counter(to_int(record.get('category_id')) for record in product_records)
        categories = sorted(Category.get_all(), key=lambda category: category.name or '')
        body = [{**category._to_ui(), 'productCount': product_count.get(category.id_, 0)}
                for category in categories]
        logger.info(f"endpoint_get_all ::: returning {len(body)} categories")
        return Response(status_code=http200, body=body)

    def summary(self) -> Dict:
        return {'id': self.id_, 'name': self.name, 'slug': self.slug, 'icon': self.icon,
                'description': self.description}

    def _get_pk_sk(self) -> Tuple[str, str]:
        return self.pk, self.sk.format(category_id=self.id_)

    def _to_dict(self) -> Dict:
        return {
            'id_': self.id_,
            'name': self.name,
            'slug': self.slug,
            'icon': self.icon,
            'description': self.description,
            'parent_id': self.parent_id,
            'created_at': self.created_at
        }
