from datetime import datetime, timedelta, timezone

import pytest

from chalicelib.carts import Cart
from chalicelib.constants.status_codes import http200, http201, http400, http404
from chalicelib.food_orders import FoodOrder
from tests.utils.fixtures import create_test_restaurant, create_test_menu_item, create_test_product, \
    id_user, token_user, token_other_user
from tests.utils.request_utils import make_request, assert_error


def food_order_body(restaurant_id, items, **overrides):
    return {
        'restaurantId': restaurant_id,
        'items': items,
        'deliveryAddress': 'Dorm C, room 12',
        'phone': '+1 555 0142',
        **overrides
    }


def place_test_food_order(chalice_gateway, body, token=token_user):
    return make_request(chalice_gateway, endpoint="/api/food-orders", method="POST", json_body=body, token=token)


@pytest.fixture
def pizzeria(gen_table):
    restaurant = create_test_restaurant(name='Campus Pizza', delivery_fee=299, minimum_order=1000,
                                        delivery_time='20-30')
    margherita = create_test_menu_item(restaurant.id_, name='Margherita', price=1200)
    garlic_bread = create_test_menu_item(restaurant.id_, name='Garlic Bread', price=450, category='Sides')
    return restaurant, margherita, garlic_bread


@pytest.fixture
def placed_food_order(chalice_gateway, user, pizzeria):
    restaurant, margherita, _ = pizzeria
    response = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': margherita.id_, 'quantity': 1}]))
    assert response.status_code == http201, f"status code not as expected, {response.json_body}"
    return response.json_body


def set_test_food_order_status(order_id, status):
    food_order = FoodOrder.init_get_by_id(order_id, id_user)
    food_order.status = status
    food_order._update_db_record()


def test_place_food_order(chalice_gateway, user, pizzeria):
    restaurant, margherita, garlic_bread = pizzeria
    body = food_order_body(restaurant.id_, [
        {'menuItemId': margherita.id_, 'quantity': 2, 'specialInstructions': 'extra basil'},
        {'menuItemId': garlic_bread.id_, 'quantity': 1}
    ], deliveryInstructions='  ring twice  ')
    before = datetime.now(timezone.utc)

    response = place_test_food_order(chalice_gateway, body)

    assert response.status_code == http201, f"status code not as expected, {response.json_body}"
    order = response.json_body
    assert order['orderNumber'].startswith('FO-')
    assert order['status'] == 'pending'
    assert order['restaurantId'] == restaurant.id_
    assert order['subtotal'] == 2 * 1200 + 450
    assert order['deliveryFee'] == 299
    assert order['total'] == 2 * 1200 + 450 + 299
    assert order['paymentMethod'] == 'cash'
    assert order['deliveryInstructions'] == 'ring twice'
    estimated = datetime.fromisoformat(order['estimatedDeliveryTime'])
    assert before + timedelta(minutes=29) < estimated < datetime.now(timezone.utc) + timedelta(minutes=31)

    items_by_menu_item = {item['menuItemId']: item for item in order['orderItems']}
    assert items_by_menu_item[margherita.id_]['price'] == 1200
    assert items_by_menu_item[margherita.id_]['menuItemName'] == 'Margherita'
    assert items_by_menu_item[margherita.id_]['specialInstructions'] == 'extra basil'
    assert items_by_menu_item[garlic_bread.id_]['specialInstructions'] is None


def test_place_food_order_does_not_touch_cart(chalice_gateway, user, pizzeria):
    restaurant, margherita, _ = pizzeria
    product = create_test_product()
    Cart(id_user).add_or_increment(product.id_, 1)

    response = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': margherita.id_, 'quantity': 1}], paymentMethod='card'))

    assert response.status_code == http201, f"status code not as expected"
    assert response.json_body['paymentMethod'] == 'card'
    assert len(Cart(id_user).get_items()) == 1


def test_place_food_order_without_delivery_time(chalice_gateway, user):
    restaurant = create_test_restaurant(name='Noodle Bar', delivery_time=None, minimum_order=0, delivery_fee=0)
    noodles = create_test_menu_item(restaurant.id_, name='Ramen', price=900)

    response = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': noodles.id_, 'quantity': 1}]))

    assert response.status_code == http201, f"status code not as expected"
    assert response.json_body['estimatedDeliveryTime'] is None
    assert response.json_body['total'] == 900


@pytest.mark.parametrize('body_changes, code', [
    ({'userId': id_user}, 'USER_ID_NOT_ALLOWED'),
    ({'restaurantId': None}, 'MISSING_RESTAURANT_ID'),
    ({'restaurantId': 'abc'}, 'INVALID_RESTAURANT_ID'),
    ({'items': []}, 'INVALID_ITEMS'),
    ({'items': [{'menuItemId': 'abc', 'quantity': 1}]}, 'INVALID_MENU_ITEM_ID'),
    ({'items': [{'menuItemId': 1, 'quantity': 0}]}, 'INVALID_QUANTITY'),
    ({'items': [{'menuItemId': 1, 'quantity': True}]}, 'INVALID_QUANTITY'),
    ({'items': [{'menuItemId': '1', 'quantity': 1}]}, 'INVALID_MENU_ITEM_ID'),
    ({'restaurantId': '1'}, 'INVALID_RESTAURANT_ID'),
    ({'deliveryAddress': '   '}, 'MISSING_DELIVERY_ADDRESS'),
    ({'phone': ''}, 'MISSING_PHONE'),
])
def test_place_food_order_validation(chalice_gateway, user, pizzeria, body_changes, code):
    restaurant, margherita, _ = pizzeria
    body = {**food_order_body(restaurant.id_, [{'menuItemId': margherita.id_, 'quantity': 1}]), **body_changes}

    response = place_test_food_order(chalice_gateway, body)

    assert_error(response, http400, code)


def test_place_food_order_restaurant_errors(chalice_gateway, user, pizzeria):
    _, margherita, _ = pizzeria
    closed = create_test_restaurant(name='Night Grill', is_open=0)
    grill_item = create_test_menu_item(closed.id_, name='Burger', price=1500)

    response = place_test_food_order(chalice_gateway, food_order_body(
        999999, [{'menuItemId': margherita.id_, 'quantity': 1}]))
    assert_error(response, http404, 'RESTAURANT_NOT_FOUND')

    response = place_test_food_order(chalice_gateway, food_order_body(
        closed.id_, [{'menuItemId': grill_item.id_, 'quantity': 1}]))
    assert_error(response, http400, 'RESTAURANT_CLOSED')


def test_place_food_order_menu_item_errors(chalice_gateway, user, pizzeria):
    restaurant, margherita, _ = pizzeria
    other_restaurant = create_test_restaurant(name='Sushi Corner')
    sushi = create_test_menu_item(other_restaurant.id_, name='Salmon Roll', price=1100)
    calzone = create_test_menu_item(restaurant.id_, name='Calzone', price=1300, is_available=0)

    response = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': margherita.id_, 'quantity': 1}, {'menuItemId': sushi.id_, 'quantity': 1}]))
    assert_error(response, http404, 'INVALID_MENU_ITEMS')

    response = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': 999999, 'quantity': 1}]))
    assert_error(response, http404, 'INVALID_MENU_ITEMS')

    response = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': calzone.id_, 'quantity': 1}]))
    body = assert_error(response, http400, 'MENU_ITEM_UNAVAILABLE')
    assert body['error'] == 'Menu item "Calzone" is currently unavailable'


def test_place_food_order_below_minimum(chalice_gateway, user):
    restaurant = create_test_restaurant(name='Steak House', minimum_order=5000)
    steak = create_test_menu_item(restaurant.id_, name='Steak', price=2000)

    response = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': steak.id_, 'quantity': 2}]))

    body = assert_error(response, http400, 'BELOW_MINIMUM_ORDER')
    assert body['error'] == 'Minimum order amount is 5000. Current subtotal is 4000'
    assert FoodOrder.get_by_user_id(id_user) == []


def test_get_food_orders(chalice_gateway, user, other_user, pizzeria):
    restaurant, margherita, garlic_bread = pizzeria
    first = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': margherita.id_, 'quantity': 1}])).json_body
    second = place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': garlic_bread.id_, 'quantity': 3}])).json_body
    place_test_food_order(chalice_gateway, food_order_body(
        restaurant.id_, [{'menuItemId': margherita.id_, 'quantity': 1}]), token=token_other_user)

    response = make_request(chalice_gateway, endpoint="/api/food-orders", method="GET", token=token_user)

    assert response.status_code == http200, f"status code not as expected"
    assert [order['id'] for order in response.json_body] == [second['id'], first['id']]
    assert response.json_body[0]['orderItems'][0]['quantity'] == 3


def test_get_food_order_by_id(chalice_gateway, other_user, pizzeria, placed_food_order):
    restaurant, margherita, _ = pizzeria
    order_id = placed_food_order['id']

    response = make_request(chalice_gateway, endpoint=f"/api/food-orders/{order_id}", method="GET",
                            token=token_user)

    assert response.status_code == http200, f"status code not as expected"
    body = response.json_body
    assert body['restaurant'] == {
        'id': restaurant.id_, 'name': 'Campus Pizza', 'slug': 'campus-pizza', 'cuisine': 'Italian',
        'imageUrl': None, 'phone': '+1 555 0100'
    }
    assert body['orderItems'][0]['menuItem'] == {
        'name': 'Margherita', 'imageUrl': margherita.image_url, 'restaurantId': restaurant.id_
    }

    response = make_request(chalice_gateway, endpoint=f"/api/food-orders/{order_id}", method="GET",
                            token=token_other_user)
    assert_error(response, http404, 'ORDER_NOT_FOUND')

    response = make_request(chalice_gateway, endpoint="/api/food-orders/abc", method="GET", token=token_user)
    assert_error(response, http400, 'INVALID_ID')
