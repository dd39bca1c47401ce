import uuid
from decimal import Decimal

import pytest

from apps.cart.cart import Cart
from apps.core.errors import NotFound, ValidationError

pytestmark = pytest.mark.django_db


@pytest.fixture
def session():
    return {}


def test_add_snapshots_price_and_increments(session, product_factory):
    p = product_factory("Vaso", price="10.00", sku="V1")
    cart = Cart(session)

    cart.add(p.pk)
    p.price = Decimal("99.00")
    p.save()
    cart.add(p.pk, 2)

    (line,) = cart.lines()
    assert line.quantity == 3
    assert line.price == Decimal("10.00")
    assert line.sku == "V1"
    assert session["cart"][str(p.pk)]["price"] == "10.00"


def test_add_unknown_or_inactive_product(session, product_factory):
    cart = Cart(session)
    with pytest.raises(NotFound):
        cart.add(uuid.uuid4())
    with pytest.raises(NotFound):
        cart.add(product_factory(is_active=False).pk)
    assert cart.is_empty


def test_add_rejects_non_positive_quantity(session, product_factory):
    with pytest.raises(ValidationError):
        Cart(session).add(product_factory().pk, 0)


def test_set_quantity(session, product_factory):
    a, b = product_factory(), product_factory()
    cart = Cart(session)
    cart.add(a.pk)
    cart.add(b.pk)

    cart.set_quantity(a.pk, 5)
    cart.set_quantity(b.pk, 0)
    cart.set_quantity(uuid.uuid4(), 3)

    assert [(line.product_id, line.quantity) for line in cart.lines()] == [(str(a.pk), 5)]


def test_remove_and_clear_are_idempotent(session, product_factory):
    p = product_factory()
    cart = Cart(session)
    cart.add(p.pk)

    cart.remove(p.pk)
    cart.remove(p.pk)
    cart.clear()
    cart.clear()

    assert cart.is_empty
    assert session["cart"] == {}


def test_total_and_counts(session, product_factory):
    cart = Cart(session)
    cart.add(product_factory(price="10.00").pk, 2)
    cart.add(product_factory(price="25.00").pk, 1)

    assert cart.total() == Decimal("45.00")
    assert len(cart) == 2
    assert cart.item_count() == 3


def test_cart_survives_reload_from_session(session, product_factory):
    Cart(session).add(product_factory(price="7.50").pk, 2)
    assert Cart(session).total() == Decimal("15.00")


def test_snapshot_is_immutable(session, product_factory):
    cart = Cart(session)
    cart.add(product_factory().pk)
    snap = cart.snapshot()
    cart.clear()
    assert len(snap) == 1
    with pytest.raises(AttributeError):
        snap[0].quantity = 9


# ---------------------------------------------------------------- http

def test_cart_endpoints(api_client, product_factory):
    p = product_factory(price="12.00")

    res = api_client.post(f"/cart/add/{p.pk}/", {"quantity": 2}, format="json")
    assert res.status_code == 200
    assert res.json()["cart"]["total"] == "24.00"

    res = api_client.put(f"/cart/update/{p.pk}/", {"quantity": 3}, format="json")
    assert res.json()["cart"]["count"] == 3

    res = api_client.delete(f"/cart/remove/{p.pk}/")
    assert res.json()["cart"]["items"] == []


def test_cart_update_via_form_override(api_client, product_factory):
    p = product_factory()
    api_client.post(f"/cart/add/{p.pk}/")
    res = api_client.post(f"/cart/update/{p.pk}/?_method=PUT", {"quantity": 4})
    assert res.status_code == 200
    assert res.json()["cart"]["items"][0]["quantity"] == 4


def test_add_missing_product_over_http(api_client):
    res = api_client.post(f"/cart/add/{uuid.uuid4()}/")
    assert res.status_code == 404
    assert res.json() == {"success": False, "message": "Produto não encontrado"}
