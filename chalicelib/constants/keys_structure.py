# numeric ids are zero padded so that sortkey order follows id order
counters_pk = 'counters'
counters_sk = '{entity}'

users_pk = 'users'
users_sk = '{user_id}'

sessions_pk = 'sessions'
sessions_sk = '{token}'

categories_pk = 'categories'
categories_sk = '{category_id:010d}'

products_pk = 'products'
products_sk = '{product_id:010d}'

cart_items_pk = 'cart_items'
cart_items_sk = '{cart_item_id:010d}'

# one marker per (user, product) keeps a product in a cart or wishlist at most once
cart_products_pk = 'cart_products_{user_id}'
cart_products_sk = '{product_id:010d}'

wishlist_items_pk = 'wishlist_items'
wishlist_items_sk = '{wishlist_item_id:010d}'

wishlist_products_pk = 'wishlist_products_{user_id}'
wishlist_products_sk = '{product_id:010d}'

orders_pk = 'orders'
orders_sk = '{order_id:010d}'

order_items_pk = 'order_items_{order_id}'
order_items_sk = '{order_item_id:010d}'

restaurants_pk = 'restaurants'
restaurants_sk = '{restaurant_id:010d}'

menu_items_pk = 'menu_items'
menu_items_sk = '{menu_item_id:010d}'

food_orders_pk = 'food_orders'
food_orders_sk = '{order_id:010d}'

food_order_items_pk = 'food_order_items_{order_id}'
food_order_items_sk = '{order_item_id:010d}'

# records owned by a user are also indexed by owner
gsi_user_index_name = 'user-index'
gsi_user_pk = '{record_type}_{user_id}'
