from chalicelib.categories import Category
from chalicelib.seeds import seed_categories, ensure_gen_table, sample_categories
from tests.utils.fixtures import create_test_category


def test_seed_categories(gen_table):
    created = seed_categories()

    assert len(created) == len(sample_categories)
    slugs = {category.slug for category in Category.get_all()}
    assert {'electronics', 'books-supplies', 'food-snacks', 'accessories'} <= slugs


def test_seed_categories_skips_existing_slugs(gen_table):
    create_test_category('Electronics', 'electronics')

    created = seed_categories()

    assert 'electronics' not in {category.slug for category in created}
    assert len(Category.get_all()) == len(sample_categories)

    assert seed_categories() == []


def test_ensure_gen_table_is_idempotent(gen_table):
    ensure_gen_table()

    assert Category.get_all() == []
