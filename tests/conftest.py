"""
Pytest configuration and fixtures for the eyewear storefront tests.
"""
import json
from datetime import timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.test import Client
from django.utils import timezone

from category.models import Brand, Category
from coupons.models import Coupon, DiscountType
from products.models import Product, ProductImage, ProductVariant
from user.models import Address

User = get_user_model()


class JSONClient(Client):
    """Test client that sends dict bodies as JSON."""

    def _json(self, method, path, data=None, **extra):
        body = json.dumps(data if data is not None else {})
        return getattr(super(), method)(path, body, content_type="application/json", **extra)

    def post_json(self, path, data=None, **extra):
        return self._json("post", path, data, **extra)

    def put_json(self, path, data=None, **extra):
        return self._json("put", path, data, **extra)

    def patch_json(self, path, data=None, **extra):
        return self._json("patch", path, data, **extra)


@pytest.fixture
def user(db):
    return User.objects.create_user(username="asha", email="asha@example.com", password="pass12345")


@pytest.fixture
def other_user(db):
    return User.objects.create_user(username="ravi", email="ravi@example.com", password="pass12345")


@pytest.fixture
def staff(db):
    return User.objects.create_user(
        username="admin", email="admin@example.com", password="pass12345", is_staff=True,
    )


@pytest.fixture
def anon_client():
    return JSONClient()


@pytest.fixture
def user_client(user):
    client = JSONClient()
    client.force_login(user)
    return client


@pytest.fixture
def staff_client(staff):
    client = JSONClient()
    client.force_login(staff)
    return client


@pytest.fixture
def category(db):
    return Category.objects.create(name="Eyeglasses")


@pytest.fixture
def brand(db):
    return Brand.objects.create(name="Vincent Chase")


def make_product(name="Round Classic", price="1000", stock=20, category=None, brand=None, **kwargs):
    defaults = {
        "sku": name.upper().replace(" ", "-"),
        "shape": "ROUND",
        "material": "METAL",
    }
    defaults.update(kwargs)
    return Product.objects.create(
        name=name, price=Decimal(price), stock=stock, category=category, brand=brand, **defaults
    )


@pytest.fixture
def product(category, brand):
    p = make_product(category=category, brand=brand)
    ProductImage.objects.create(product=p, url="https://cdn.example.com/round-1.jpg", position=0)
    return p


@pytest.fixture
def variant(product):
    return ProductVariant.objects.create(product=product, color="Black", color_code="#000000", stock=10)


@pytest.fixture
def address(user):
    return Address.objects.create(
        user=user,
        name="Asha Menon",
        phone="9876543210",
        address="12 MG Road, Near Metro Station",
        city="Kochi",
        state="Kerala",
        pincode="682001",
        is_default=True,
    )


@pytest.fixture
def coupon(db):
    return Coupon.objects.create(
        code="SAVE10",
        discount_type=DiscountType.PERCENTAGE,
        discount_value=Decimal("10"),
        max_discount=Decimal("150"),
        start_date=timezone.now() - timedelta(days=1),
        end_date=timezone.now() + timedelta(days=30),
    )
