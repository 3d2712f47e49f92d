from chalice import Chalice

from chalicelib import products, categories, restaurants, menu_items, carts, orders, food_orders, wishlist
from chalicelib.utils import app as utils_app

app = Chalice(app_name='trovii-marketplace')

app.debug = False


# CATALOG
@app.route('/api/products', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_products():
    return products.Product.endpoint_get_all(app.current_request)


@app.route('/api/products/{product_id}', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_product_by_id(product_id):
    return products.Product.init_request_get_by_id(app.current_request, product_id).endpoint_get_by_id()


@app.route('/api/categories', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_categories():
    return categories.Category.endpoint_get_all(app.current_request)


@app.route('/api/restaurants', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_restaurants():
    return restaurants.Restaurant.endpoint_get_all(app.current_request)


@app.route('/api/restaurants/{restaurant_id}', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_restaurant_by_id(restaurant_id):
    return restaurants.Restaurant.init_request_get_by_id(app.current_request, restaurant_id).\
        endpoint_get_by_id()


@app.route('/api/menu-items', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_menu_items():
    return menu_items.MenuItem.endpoint_get_all(app.current_request)


@app.route('/api/menu-items/{menu_item_id}', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_menu_item_by_id(menu_item_id):
    return menu_items.MenuItem.init_request_get_by_id(app.current_request, menu_item_id).endpoint_get_by_id()


# CART
@app.route('/api/cart', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_cart():
    return carts.Cart.init_endpoint(app.current_request).endpoint_get_cart()


@app.route('/api/cart', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def add_item_to_cart():
    return carts.Cart.init_endpoint(app.current_request).endpoint_add_item()


@app.route('/api/cart/{cart_item_id}', methods=['PUT'], cors=True)
@utils_app.request_exception_handler
def update_cart_item(cart_item_id):
    return carts.Cart.init_endpoint(app.current_request).endpoint_update_item(cart_item_id)


@app.route('/api/cart/{cart_item_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def remove_item_from_cart(cart_item_id):
    return carts.Cart.init_endpoint(app.current_request).endpoint_delete_item(cart_item_id)


# WISHLIST
@app.route('/api/wishlist', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_wishlist():
    return wishlist.Wishlist.init_endpoint(app.current_request).endpoint_get_all()


@app.route('/api/wishlist', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def add_item_to_wishlist():
    return wishlist.Wishlist.init_endpoint(app.current_request).endpoint_add_item()


@app.route('/api/wishlist', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def remove_item_from_wishlist():
    """
    the item id comes in the query string, ?id=<wishlist_item_id>
    """
    return wishlist.Wishlist.init_endpoint(app.current_request).endpoint_remove_item()


@app.route('/api/wishlist/{wishlist_item_id}', methods=['DELETE'], cors=True)
@utils_app.request_exception_handler
def delete_wishlist_item(wishlist_item_id):
    return wishlist.Wishlist.init_endpoint(app.current_request).endpoint_delete_item(wishlist_item_id)


# ORDERS
@app.route('/api/orders', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_orders():
    """
    user can get only his orders
    """
    return orders.Order.endpoint_get_all(app.current_request)


@app.route('/api/orders', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def create_order():
    """
    order details are taken from user's cart, the cart is emptied
    """
    return orders.Order.init_request_create(app.current_request).endpoint_create()


@app.route('/api/orders/{order_id}', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_order_by_id(order_id):
    return orders.Order.init_request_get_by_id(app.current_request, order_id).endpoint_get_by_id()


@app.route('/api/orders/{order_id}/cancel', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def cancel_order(order_id):
    return orders.Order.init_request_get_by_id(app.current_request, order_id).endpoint_cancel()


# FOOD ORDERS
@app.route('/api/food-orders', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_food_orders():
    return food_orders.FoodOrder.endpoint_get_all(app.current_request)


@app.route('/api/food-orders', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def create_food_order():
    """
    items are priced from the restaurant menu, the cart is not used
    """
    return food_orders.FoodOrder.init_request_create(app.current_request).endpoint_create()


@app.route('/api/food-orders/{order_id}', methods=['GET'], cors=True)
@utils_app.request_exception_handler
def get_food_order_by_id(order_id):
    return food_orders.FoodOrder.init_request_get_by_id(app.current_request, order_id).endpoint_get_by_id()


@app.route('/api/food-orders/{order_id}', methods=['PATCH'], cors=True)
@utils_app.request_exception_handler
def update_food_order_status(order_id):
    return food_orders.FoodOrder.init_request_update_status(app.current_request, order_id).\
        endpoint_update_status()


@app.route('/api/food-orders/{order_id}/cancel', methods=['POST'], cors=True)
@utils_app.request_exception_handler
def cancel_food_order(order_id):
    return food_orders.FoodOrder.init_request_get_by_id(app.current_request, order_id).endpoint_cancel()
