from decimal import Decimal

import pytest
from rest_framework.test import APIClient

from apps.accounts.models import Role, User
from apps.accounts.services import AuthService
from apps.cart.models import Cart, CartItem
from apps.catalog.models import Category, Product
from apps.core.config import get_store_config
from tests.fakes import FakeImageStore


@pytest.fixture(autouse=True)
def image_store():
    FakeImageStore.reset()
    yield FakeImageStore
    FakeImageStore.reset()


@pytest.fixture
def config():
    return get_store_config()


def make_user(email="ana@example.com", password="secret123", role=Role.USER, **extra):
    user = User(email=email, full_name=extra.pop("full_name", "Ana Mora"), role=role, **extra)
    user.set_password(password)
    user.save()
    return user


@pytest.fixture
def user(db):
    return make_user()


@pytest.fixture
def other_user(db):
    return make_user(email="luis@example.com", full_name="Luis Vega")


@pytest.fixture
def admin_user(db):
    return make_user(email="admin@example.com", full_name="Admin", role=Role.ADMIN)


@pytest.fixture
def api_client():
    return APIClient()


def client_for(user, config):
    client = APIClient()
    token = AuthService(config).issue_token(user)
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def user_client(user, config):
    return client_for(user, config)


@pytest.fixture
def admin_client(admin_user, config):
    return client_for(admin_user, config)


@pytest.fixture
def category(db):
    return Category.objects.create(name="Anillos", description="Rings")


@pytest.fixture
def make_product(category):
    def _make(name="Anillo", price="1000.00", stock=10, **extra):
        return Product.objects.create(
            name=name,
            price=Decimal(price),
            stock=stock,
            category=extra.pop("category", category),
            **extra
        )
    return _make


@pytest.fixture
def make_cart():
    def _make(owner, lines):
        cart = Cart.objects.create(user=owner)
        for product, quantity in lines:
            CartItem.objects.create(cart=cart, product=product, quantity=quantity, unit_price=product.price)
        return cart
    return _make
