import pytest

from chalicelib.constants.status_codes import http200, http400, http404
from chalicelib.restaurants import parse_delivery_time
from tests.utils.fixtures import create_test_category, create_test_product, create_test_restaurant, \
    create_test_menu_item
from tests.utils.request_utils import make_request, assert_error


@pytest.fixture
def catalog(gen_table):
    electronics = create_test_category('Electronics', 'electronics')
    books = create_test_category('Books & Supplies', 'books-supplies')
    create_test_category('Accessories', 'accessories')
    products = {
        'earbuds': create_test_product(name='Wireless Earbuds', price=2500, category_id=electronics.id_,
                                       rating=4.5, review_count=120, created_at='2024-03-01T00:00:00.000+00:00'),
        'charger': create_test_product(name='USB Charger', price=900, category_id=electronics.id_,
                                       rating=4.1, review_count=300, created_at='2024-02-01T00:00:00.000+00:00'),
        'textbook': create_test_product(name='Calculus Textbook', price=4500, category_id=books.id_,
                                        description='Early transcendentals, used',
                                        rating=3.9, review_count=12, created_at='2024-04-01T00:00:00.000+00:00'),
        'hidden': create_test_product(name='Broken Radio', price=100, category_id=electronics.id_, in_stock=0)
    }
    return electronics, books, products


def get_product_names(response):
    assert response.status_code == http200, f"status code not as expected, {response.json_body}"
    return [product['name'] for product in response.json_body['products']]


def test_get_products_defaults(chalice_gateway, catalog):
    electronics, _, _ = catalog

    response = make_request(chalice_gateway, endpoint="/api/products", method="GET")

    assert get_product_names(response) == ['Calculus Textbook', 'Wireless Earbuds', 'USB Charger']
    body = response.json_body
    assert body['total'] == 3
    assert body['limit'] == 12
    assert body['offset'] == 0
    earbuds = body['products'][1]
    assert earbuds['categoryName'] == 'Electronics'
    assert earbuds['categorySlug'] == 'electronics'
    assert earbuds['rating'] == 4.5


@pytest.mark.parametrize('query, expected_names', [
    ('sort=price-asc', ['USB Charger', 'Wireless Earbuds', 'Calculus Textbook']),
    ('sort=price-desc', ['Calculus Textbook', 'Wireless Earbuds', 'USB Charger']),
    ('sort=rating', ['Wireless Earbuds', 'USB Charger', 'Calculus Textbook']),
    ('sort=popular', ['USB Charger', 'Wireless Earbuds', 'Calculus Textbook']),
    ('search=TRANSCENDENTAL', ['Calculus Textbook']),
    ('minPrice=1000&maxPrice=3000', ['Wireless Earbuds']),
    ('sort=price-asc&limit=1&offset=1', ['Wireless Earbuds']),
])
def test_get_products_filters(chalice_gateway, catalog, query, expected_names):
    response = make_request(chalice_gateway, endpoint="/api/products", method="GET", query=query)

    assert get_product_names(response) == expected_names


def test_get_products_by_category(chalice_gateway, catalog):
    electronics, _, _ = catalog

    response = make_request(chalice_gateway, endpoint="/api/products", method="GET",
                            query=f'category={electronics.id_}&sort=price-asc')

    assert get_product_names(response) == ['USB Charger', 'Wireless Earbuds']
    assert response.json_body['total'] == 2


def test_get_products_limit_is_capped(chalice_gateway, catalog):
    response = make_request(chalice_gateway, endpoint="/api/products", method="GET", query='limit=500')

    assert response.status_code == http200, f"status code not as expected"
    assert response.json_body['limit'] == 50


@pytest.mark.parametrize('query, code', [
    ('category=abc', 'INVALID_CATEGORY'),
    ('minPrice=-1', 'INVALID_MIN_PRICE'),
    ('maxPrice=abc', 'INVALID_MAX_PRICE'),
    ('minPrice=500&maxPrice=100', 'INVALID_PRICE_RANGE'),
    ('sort=cheapest', 'INVALID_SORT'),
    ('limit=0', 'INVALID_LIMIT'),
    ('offset=-5', 'INVALID_OFFSET'),
])
def test_get_products_invalid_parameters(chalice_gateway, catalog, query, code):
    response = make_request(chalice_gateway, endpoint="/api/products", method="GET", query=query)

    assert_error(response, http400, code)


def test_get_product_by_id(chalice_gateway, catalog):
    electronics, _, products = catalog

    response = make_request(chalice_gateway, endpoint=f"/api/products/{products['earbuds'].id_}", method="GET")

    assert response.status_code == http200, f"status code not as expected"
    assert response.json_body['name'] == 'Wireless Earbuds'
    assert response.json_body['category']['id'] == electronics.id_
    assert response.json_body['category']['slug'] == 'electronics'

    response = make_request(chalice_gateway, endpoint=f"/api/products/{products['hidden'].id_}", method="GET")
    assert_error(response, http404, 'PRODUCT_NOT_FOUND')

    response = make_request(chalice_gateway, endpoint="/api/products/abc", method="GET")
    assert_error(response, http400, 'INVALID_ID')


def test_get_categories_with_product_count(chalice_gateway, catalog):
    response = make_request(chalice_gateway, endpoint="/api/categories", method="GET")

    assert response.status_code == http200, f"status code not as expected"
    assert [(category['name'], category['productCount']) for category in response.json_body] == [
        ('Accessories', 0), ('Books & Supplies', 1), ('Electronics', 2)
    ]


@pytest.fixture
def restaurants(gen_table):
    pizzeria = create_test_restaurant(name='Campus Pizza', cuisine='Italian', rating=4.6, delivery_fee=299,
                                      delivery_time='25-35', created_at='2024-01-01T00:00:00.000+00:00')
    sushi = create_test_restaurant(name='Sushi Corner', cuisine='Japanese', rating=4.8, delivery_fee=499,
                                   delivery_time='15-20', location='Main street',
                                   created_at='2024-02-01T00:00:00.000+00:00')
    grill = create_test_restaurant(name='Night Grill', cuisine='American', rating=4.1, delivery_fee=0,
                                   delivery_time='soon', is_open=0, created_at='2024-03-01T00:00:00.000+00:00')
    return pizzeria, sushi, grill


def get_restaurant_names(response):
    assert response.status_code == http200, f"status code not as expected, {response.json_body}"
    return [restaurant['name'] for restaurant in response.json_body['restaurants']]


@pytest.mark.parametrize('query, expected_names', [
    (None, ['Sushi Corner', 'Campus Pizza', 'Night Grill']),
    ('sort=deliveryFee', ['Night Grill', 'Campus Pizza', 'Sushi Corner']),
    ('sort=deliveryTime', ['Sushi Corner', 'Campus Pizza', 'Night Grill']),
    ('sort=newest', ['Night Grill', 'Sushi Corner', 'Campus Pizza']),
    ('cuisine=Italian', ['Campus Pizza']),
    ('isOpen=false', ['Night Grill']),
    ('search=main%20street', ['Sushi Corner']),
])
def test_get_restaurants(chalice_gateway, restaurants, query, expected_names):
    response = make_request(chalice_gateway, endpoint="/api/restaurants", method="GET", query=query)

    assert get_restaurant_names(response) == expected_names


@pytest.mark.parametrize('query, code', [
    ('isOpen=maybe', 'INVALID_IS_OPEN_PARAMETER'),
    ('sort=distance', 'INVALID_SORT_PARAMETER'),
    ('limit=abc', 'INVALID_LIMIT'),
])
def test_get_restaurants_invalid_parameters(chalice_gateway, restaurants, query, code):
    response = make_request(chalice_gateway, endpoint="/api/restaurants", method="GET", query=query)

    assert_error(response, http400, code)


def test_get_restaurant_by_id_with_menu(chalice_gateway, restaurants):
    pizzeria, _, grill = restaurants
    create_test_menu_item(pizzeria.id_, name='Margherita', category='Pizza')
    create_test_menu_item(pizzeria.id_, name='Tiramisu', category=None)
    create_test_menu_item(pizzeria.id_, name='Calzone', category='Pizza', is_available=0)

    response = make_request(chalice_gateway, endpoint=f"/api/restaurants/{pizzeria.id_}", method="GET")

    assert response.status_code == http200, f"status code not as expected"
    body = response.json_body
    assert sorted(item['name'] for item in body['menuItems']) == ['Margherita', 'Tiramisu']
    assert [item['name'] for item in body['menuByCategory']['Pizza']] == ['Margherita']
    assert [item['name'] for item in body['menuByCategory']['Other']] == ['Tiramisu']

    response = make_request(chalice_gateway, endpoint=f"/api/restaurants/{grill.id_}", method="GET")
    assert_error(response, http404, 'RESTAURANT_NOT_FOUND')


def test_get_menu_items(chalice_gateway, restaurants):
    pizzeria, sushi, _ = restaurants
    create_test_menu_item(pizzeria.id_, name='Margherita', category='Pizza')
    create_test_menu_item(pizzeria.id_, name='Calzone', category='Pizza', is_available=0)
    create_test_menu_item(sushi.id_, name='Salmon Roll', category='Rolls', description='Fresh salmon and rice')

    response = make_request(chalice_gateway, endpoint="/api/menu-items", method="GET",
                            query=f'restaurantId={pizzeria.id_}')
    assert response.status_code == http200, f"status code not as expected"
    assert [item['name'] for item in response.json_body['menuItems']] == ['Margherita']
    assert response.json_body['menuItems'][0]['restaurant']['name'] == 'Campus Pizza'
    assert response.json_body['limit'] == 20

    response = make_request(chalice_gateway, endpoint="/api/menu-items", method="GET", query='isAvailable=false')
    assert [item['name'] for item in response.json_body['menuItems']] == ['Calzone']

    response = make_request(chalice_gateway, endpoint="/api/menu-items", method="GET", query='search=SALMON')
    assert [item['name'] for item in response.json_body['menuItems']] == ['Salmon Roll']

    response = make_request(chalice_gateway, endpoint="/api/menu-items", method="GET", query='restaurantId=0')
    assert_error(response, http400, 'INVALID_RESTAURANT_ID')

    response = make_request(chalice_gateway, endpoint="/api/menu-items", method="GET", query='isAvailable=yes')
    assert_error(response, http400, 'INVALID_IS_AVAILABLE')


def test_get_menu_item_by_id(chalice_gateway, restaurants):
    pizzeria, _, _ = restaurants
    margherita = create_test_menu_item(pizzeria.id_, name='Margherita')
    calzone = create_test_menu_item(pizzeria.id_, name='Calzone', is_available=0)

    response = make_request(chalice_gateway, endpoint=f"/api/menu-items/{margherita.id_}", method="GET")
    assert response.status_code == http200, f"status code not as expected"
    assert response.json_body['restaurant']['deliveryTime'] == '25-35'
    assert response.json_body['restaurant']['deliveryFee'] == 299

    response = make_request(chalice_gateway, endpoint=f"/api/menu-items/{calzone.id_}", method="GET")
    assert_error(response, http404, 'NOT_FOUND')


@pytest.mark.parametrize('delivery_time, bounds', [
    ('20-30', (20, 30)),
    ('45', (45, 45)),
    (' 15 - 25 min', (15, 25)),
    ('soon', None),
    (None, None),
])
def test_parse_delivery_time(delivery_time, bounds):
    assert parse_delivery_time(delivery_time) == bounds
