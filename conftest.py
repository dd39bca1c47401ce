from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from apps.catalog.models import Category, Product


@pytest.fixture(autouse=True)
def _shop_settings(settings):
    settings.SHOP_NOTIFY_ASYNC = False
    settings.PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]
    settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"


@pytest.fixture
def admin_user(db):
    return get_user_model().objects.create_superuser("admin@test.com", "pw123456", name="Admin")


@pytest.fixture
def customer(db):
    return get_user_model().objects.create_user("u@test.com", "pw123456", name="Cliente")


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_login(admin_user)
    return client


@pytest.fixture
def customer_client(customer):
    client = APIClient()
    client.force_login(customer)
    return client


@pytest.fixture
def category(db):
    return Category.objects.create(name="Cerâmica", slug="ceramica")


@pytest.fixture
def product_factory(db):
    counter = {"n": 0}

    def make(name=None, price="10.00", **kwargs):
        counter["n"] += 1
        name = name or f"Produto {counter['n']}"
        kwargs.setdefault("slug", f"produto-{counter['n']}")
        return Product.objects.create(name=name, price=Decimal(price), **kwargs)

    return make
