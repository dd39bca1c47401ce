import pytest
import requests

from apps.orders.models import Order

pytestmark = pytest.mark.django_db(transaction=True)

CHECKOUT = {
    "name": "João Souza",
    "email": "joao@test.com",
    "phone": "21988887777",
    "address": "Av. Atlântica, 500",
    "city": "Rio de Janeiro",
    "state": "RJ",
    "zip_code": "22010-000",
}


class FakeResponse:
    def __init__(self, body, status_code=200):
        self.body = body
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.body


@pytest.fixture
def placed_order(api_client, product_factory):
    a = product_factory("Vaso", price="10.00")
    b = product_factory("Prato", price="25.00")
    api_client.post(f"/cart/add/{a.pk}/", {"quantity": 2}, format="json")
    api_client.post(f"/cart/add/{b.pk}/", {"quantity": 1}, format="json")
    res = api_client.post("/orders/checkout/", CHECKOUT, format="json")
    assert res.status_code == 201, res.json()
    return Order.objects.get(pk=res.json()["order"]["id"])


def test_checkout_over_http_clears_session_cart(api_client, placed_order):
    assert placed_order.total_amount == 45
    assert api_client.get("/cart/").json()["items"] == []


def test_checkout_get_with_empty_cart(api_client):
    res = api_client.get("/orders/checkout/")
    assert res.status_code == 400
    assert res.json()["success"] is False


def test_checkout_missing_field_is_400(api_client, product_factory):
    api_client.post(f"/cart/add/{product_factory().pk}/", format="json")
    res = api_client.post("/orders/checkout/", {**CHECKOUT, "city": ""}, format="json")
    assert res.status_code == 400
    assert Order.objects.count() == 0


def test_public_tracking(api_client, placed_order):
    res = api_client.get(f"/orders/track/{placed_order.order_number}/")
    assert res.status_code == 200
    assert res.json()["status"] == "pending"
    assert api_client.get("/orders/track/ORD-0-nope/").status_code == 404


def test_status_update_requires_admin(customer_client, placed_order):
    res = customer_client.put(f"/orders/{placed_order.pk}/status/", {"status": "paid"}, format="json")
    assert res.status_code == 403


def test_admin_status_update_via_method_override(admin_client, placed_order):
    res = admin_client.post(
        f"/admin/orders/{placed_order.pk}/status/?_method=PUT", {"status": "paid"}, format="json"
    )
    assert res.status_code == 200
    placed_order.refresh_from_db()
    assert placed_order.status == "paid"


def test_invalid_transition_is_409(admin_client, placed_order):
    res = admin_client.put(f"/orders/{placed_order.pk}/status/", {"status": "delivered"}, format="json")
    assert res.status_code == 409
    assert res.json()["success"] is False


def test_webhook_is_idempotent(api_client, placed_order, settings):
    settings.MERCADOPAGO_WEBHOOK_SECRET = "s3cret"
    body = {"external_reference": placed_order.order_number, "payment_id": "555", "status": "approved"}

    first = api_client.post("/webhooks/mercadopago/", body, format="json", HTTP_X_WEBHOOK_SECRET="s3cret")
    second = api_client.post("/webhooks/mercadopago/", body, format="json", HTTP_X_WEBHOOK_SECRET="s3cret")

    assert first.status_code == second.status_code == 200
    assert second.json()["status"] == "paid"
    assert placed_order.payment_notifications.count() == 1


@pytest.mark.parametrize("headers", [{}, {"HTTP_X_WEBHOOK_SECRET": "guess"}])
def test_unsigned_direct_body_is_checked_against_gateway(api_client, placed_order, settings, monkeypatch, headers):
    settings.MERCADOPAGO_ACCESS_TOKEN = "TEST-token"
    settings.MERCADOPAGO_WEBHOOK_SECRET = "s3cret"
    looked_up = []

    def fake_request(method, url, **kwargs):
        looked_up.append(url)
        return FakeResponse({"id": 77, "status": "pending", "external_reference": placed_order.order_number})

    monkeypatch.setattr("apps.orders.payments.requests.request", fake_request)
    body = {"external_reference": placed_order.order_number, "payment_id": "77", "status": "approved"}
    res = api_client.post("/webhooks/mercadopago/", body, format="json", **headers)

    assert res.status_code == 200
    assert looked_up == ["https://api.mercadopago.com/v1/payments/77"]
    placed_order.refresh_from_db()
    assert placed_order.status == "pending"
    assert placed_order.payment_status == "pending"


def test_forged_body_without_payment_id_is_403(api_client, placed_order):
    body = {"external_reference": placed_order.order_number, "status": "approved"}

    res = api_client.post("/webhooks/mercadopago/", body, format="json")

    assert res.status_code == 403
    placed_order.refresh_from_db()
    assert placed_order.status == "pending"
    assert not placed_order.payment_notifications.exists()


def test_forged_body_without_gateway_is_not_applied(api_client, placed_order, settings):
    settings.MERCADOPAGO_ACCESS_TOKEN = ""
    body = {"external_reference": placed_order.order_number, "payment_id": "x", "status": "approved"}

    res = api_client.post("/webhooks/mercadopago/", body, format="json")

    assert res.status_code == 502
    placed_order.refresh_from_db()
    assert placed_order.status == "pending"


def test_webhook_gateway_lookup(api_client, placed_order, settings, monkeypatch):
    settings.MERCADOPAGO_ACCESS_TOKEN = "TEST-token"
    calls = []

    def fake_request(method, url, **kwargs):
        calls.append((method, url, kwargs["timeout"]))
        return FakeResponse({"id": 42, "status": "approved", "external_reference": placed_order.order_number})

    monkeypatch.setattr("apps.orders.payments.requests.request", fake_request)
    res = api_client.post("/webhooks/mercadopago/", {"type": "payment", "data": {"id": "42"}}, format="json")

    assert res.status_code == 200
    assert calls == [("GET", "https://api.mercadopago.com/v1/payments/42", settings.MERCADOPAGO_TIMEOUT)]
    placed_order.refresh_from_db()
    assert placed_order.payment_id == "42"
    assert placed_order.payment_status == "paid"


def test_webhook_gateway_failure_is_502(api_client, placed_order, settings, monkeypatch):
    settings.MERCADOPAGO_ACCESS_TOKEN = "TEST-token"

    def timeout(*args, **kwargs):
        raise requests.Timeout("slow")

    monkeypatch.setattr("apps.orders.payments.requests.request", timeout)
    res = api_client.post("/webhooks/mercadopago/", {"type": "payment", "data": {"id": "1"}}, format="json")

    assert res.status_code == 502
    placed_order.refresh_from_db()
    assert placed_order.payment_status == "pending"


def test_webhook_rejects_garbage(api_client):
    assert api_client.post("/webhooks/mercadopago/", {"hello": "world"}, format="json").status_code == 400


def test_payment_preference_for_own_order(customer, customer_client, product_factory, settings, monkeypatch):
    settings.MERCADOPAGO_ACCESS_TOKEN = "TEST-token"
    sent = {}

    def fake_request(method, url, **kwargs):
        sent.update(kwargs["json"])
        return FakeResponse({"id": "pref-1", "init_point": "https://mp.test/pay"})

    monkeypatch.setattr("apps.orders.payments.requests.request", fake_request)
    customer_client.post(f"/cart/add/{product_factory(price='12.50').pk}/", format="json")
    order_id = customer_client.post("/orders/checkout/", CHECKOUT, format="json").json()["order"]["id"]

    res = customer_client.post(f"/orders/{order_id}/payment/")

    assert res.status_code == 200
    assert res.json()["init_point"] == "https://mp.test/pay"
    order = Order.objects.get(pk=order_id)
    assert sent["external_reference"] == order.order_number
    assert sent["items"][0]["unit_price"] == 12.5


def test_customer_order_pages(customer_client, customer, placed_order):
    assert customer_client.get("/orders/").json() == []
    assert customer_client.get(f"/orders/{placed_order.pk}/").status_code == 403


def test_anonymous_order_list_is_denied(api_client):
    assert api_client.get("/orders/").status_code == 403


def test_admin_dashboard(admin_client, placed_order):
    res = admin_client.get("/admin/")
    assert res.status_code == 200
    body = res.json()
    assert body["total_orders"] == 1
    assert body["month_sales"] == "45.00"
    assert body["recent_orders"][0]["order_number"] == placed_order.order_number


def test_admin_order_list_and_detail(admin_client, placed_order):
    assert len(admin_client.get("/admin/orders/").json()) == 1
    assert admin_client.get("/admin/orders/?status=paid").json() == []
    detail = admin_client.get(f"/admin/orders/{placed_order.pk}/").json()
    assert len(detail["items"]) == 2
