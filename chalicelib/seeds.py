"""
Sample catalog data for local development.

Run against DynamoDB Local with
    GEN_TABLE_NAME=trovii-dev ENDPOINT_URL=http://localhost:8000 python -m chalicelib.seeds
"""
from typing import List

from botocore.exceptions import ClientError

from chalicelib.categories import Category
from chalicelib.utils import db as utils_db
from chalicelib.utils.logger import logger

SEED_CREATED_AT = '2024-01-01T00:00:00.000+00:00'

sample_categories = [
    {'name': 'Electronics', 'slug': 'electronics', 'icon': '💻',
     'description': 'Laptops, phones, headphones, and tech accessories'},
    {'name': 'Fashion', 'slug': 'fashion', 'icon': '👕',
     'description': 'Clothing, shoes, and style essentials'},
    {'name': 'Books & Supplies', 'slug': 'books-supplies', 'icon': '📚',
     'description': 'Textbooks, notebooks, and study materials'},
    {'name': 'Home & Living', 'slug': 'home-living', 'icon': '🏠',
     'description': 'Dorm essentials, furniture, and home decor'},
    {'name': 'Sports & Fitness', 'slug': 'sports-fitness', 'icon': '⚽',
     'description': 'Sports equipment, gym gear, and fitness accessories'},
    {'name': 'Beauty & Health', 'slug': 'beauty-health', 'icon': '💄',
     'description': 'Skincare, cosmetics, and wellness products'},
    {'name': 'Food & Snacks', 'slug': 'food-snacks', 'icon': '🍕',
     'description': 'Snacks, drinks, and food essentials'},
    {'name': 'Accessories', 'slug': 'accessories', 'icon': '👜',
     'description': 'Bags, watches, jewelry, and fashion accessories'}
]


def seed_categories() -> List[Category]:
    """
    Inserts the sample categories whose slug is not in the table yet, returns the inserted ones
    """
    existing_slugs = {category.slug for category in Category.get_all()}
    created = []
    for category_data in sample_categories:
        if category_data['slug'] in existing_slugs:
            logger.info(f"seed_categories ::: category {category_data['slug']} already exists, skipping")
            continue
        category = Category(created_at=SEED_CREATED_AT, **category_data)
        category._create_db_record()
        created.append(category)
    logger.info(f"seed_categories ::: {len(created)} categories created")
    return created


def ensure_gen_table() -> None:
    try:
        utils_db.create_gen_table()
    except ClientError as error:
        if error.response.get('Error', {}).get('Code') != 'ResourceInUseException':
            raise
        logger.info('ensure_gen_table ::: table already exists')


if __name__ == '__main__':
    ensure_gen_table()
    seed_categories()
