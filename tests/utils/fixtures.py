from datetime import datetime, timedelta, timezone
from typing import Optional

from chalicelib.categories import Category
from chalicelib.menu_items import MenuItem
from chalicelib.products import Product
from chalicelib.restaurants import Restaurant
from chalicelib.users import User, Session

id_user = 'b6c1f0de-6f47-4c36-9d54-1c1f0b2f8a11'
id_other_user = '4a7e2d19-0b55-4c0e-a3a6-93c2f7d4e5b2'

token_user = 'session-token-user'
token_other_user = 'session-token-other-user'


def create_test_user(user_id: str = id_user, token: Optional[str] = token_user,
                     expires_in: timedelta = timedelta(hours=1)) -> User:
    user = User(id_=user_id, email=f'{user_id}@campus.test', name='Test Student')
    user._create_db_record()
    if token is not None:
        create_test_session(token, user_id, expires_in)
    return user


def create_test_session(token: str, user_id: str, expires_in: timedelta = timedelta(hours=1)) -> Session:
    session = Session(token, user_id=user_id,
                      expires_at=(datetime.now(timezone.utc) + expires_in).isoformat())
    session._create_db_record()
    return session


def create_test_category(name: str = 'Electronics', slug: str = 'electronics') -> Category:
    category = Category(name=name, slug=slug, icon='💻', description=f'{name} for students')
    category._create_db_record()
    return category


def create_test_product(name: str = 'Wireless Earbuds', price: int = 2500, stock_quantity: int = 10,
                        in_stock: int = 1, category_id: Optional[int] = None, **kwargs) -> Product:
    product = Product(
        name=name,
        slug=name.lower().replace(' ', '-'),
        description=kwargs.pop('description', f'{name} description'),
        price=price,
        stock_quantity=stock_quantity,
        in_stock=in_stock,
        category_id=category_id,
        image_url=f'https://img.test/{name.lower().replace(" ", "-")}.jpg',
        **kwargs
    )
    product._create_db_record()
    return product


def create_test_restaurant(name: str = 'Campus Pizza', delivery_fee: int = 299, minimum_order: int = 1000,
                           is_open: int = 1, delivery_time: Optional[str] = '20-30', **kwargs) -> Restaurant:
    restaurant = Restaurant(
        name=name,
        slug=name.lower().replace(' ', '-'),
        description=kwargs.pop('description', f'{name} near the library'),
        cuisine=kwargs.pop('cuisine', 'Italian'),
        delivery_fee=delivery_fee,
        minimum_order=minimum_order,
        is_open=is_open,
        delivery_time=delivery_time,
        phone=kwargs.pop('phone', '+1 555 0100'),
        **kwargs
    )
    restaurant._create_db_record()
    return restaurant


def create_test_menu_item(restaurant_id: int, name: str = 'Margherita', price: int = 1200,
                          is_available: int = 1, category: Optional[str] = 'Pizza', **kwargs) -> MenuItem:
    menu_item = MenuItem(
        restaurant_id=restaurant_id,
        name=name,
        slug=name.lower().replace(' ', '-'),
        description=kwargs.pop('description', f'{name} from the oven'),
        price=price,
        is_available=is_available,
        category=category,
        image_url=f'https://img.test/{name.lower().replace(" ", "-")}.jpg',
        **kwargs
    )
    menu_item._create_db_record()
    return menu_item
