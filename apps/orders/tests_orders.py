from decimal import Decimal

import pytest
from django.db.models import QuerySet

from apps.cart.cart import Cart
from apps.core.context import RequestContext
from apps.core.errors import InvalidTransition, NotFound, PermissionDenied, ValidationError
from apps.orders import services
from apps.orders.models import Order, OrderItem, PaymentNotification

pytestmark = pytest.mark.django_db(transaction=True)

CUSTOMER = {
    "name": "Maria Silva",
    "email": "maria@test.com",
    "phone": "11999990000",
    "address": "Rua das Flores, 10",
    "city": "São Paulo",
    "state": "SP",
    "zip_code": "01000-000",
}


def make_ctx(user=None, session=None):
    return RequestContext(session_key=None, current_user=user, cart=Cart(session if session is not None else {}))


@pytest.fixture
def two_line_cart(product_factory):
    a = product_factory("Vaso", price="10.00", sku="VASO-1")
    b = product_factory("Prato", price="25.00", sku="PRATO-1")
    ctx = make_ctx()
    ctx.cart.add(a.pk, 2)
    ctx.cart.add(b.pk, 1)
    return ctx, a, b


def test_checkout_scenario_totals(two_line_cart):
    ctx, a, b = two_line_cart

    order = services.place_order(ctx, CUSTOMER)

    order.refresh_from_db()
    assert order.subtotal == Decimal("45.00")
    assert order.total_amount == Decimal("45.00")
    assert order.shipping_amount == Decimal("0.00")
    assert order.tax_amount == Decimal("0.00")
    assert order.status == Order.Status.PENDING
    assert order.payment_status == Order.PaymentStatus.PENDING
    totals = sorted(i.total_price for i in order.items.all())
    assert totals == [Decimal("20.00"), Decimal("25.00")]
    assert order.order_number.startswith("ORD-")


def test_place_order_creates_one_item_per_line_and_empties_cart(two_line_cart):
    ctx, _, _ = two_line_cart
    lines = len(ctx.cart)

    order = services.place_order(ctx, CUSTOMER)

    assert Order.objects.count() == 1
    assert OrderItem.objects.filter(order=order).count() == lines
    assert ctx.cart.is_empty


def test_items_keep_snapshot_after_product_changes(two_line_cart):
    ctx, a, _ = two_line_cart
    order = services.place_order(ctx, CUSTOMER)

    a.name = "Vaso Renomeado"
    a.price = Decimal("99.00")
    a.save()
    a.delete()

    item = OrderItem.objects.get(order=order, product_sku="VASO-1")
    assert item.product is None
    assert item.product_name == "Vaso"
    assert item.unit_price == Decimal("10.00")


def test_empty_cart_is_rejected():
    with pytest.raises(ValidationError):
        services.place_order(make_ctx(), CUSTOMER)
    assert Order.objects.count() == 0


def test_blank_customer_field_rejected_and_cart_kept(two_line_cart):
    ctx, _, _ = two_line_cart

    with pytest.raises(ValidationError):
        services.place_order(ctx, {**CUSTOMER, "name": "   "})

    assert Order.objects.count() == 0
    assert len(ctx.cart) == 2


def test_failed_item_insert_rolls_back_the_order(two_line_cart, monkeypatch):
    ctx, _, _ = two_line_cart

    def boom(*args, **kwargs):
        raise RuntimeError("db down")

    monkeypatch.setattr(QuerySet, "bulk_create", boom)
    with pytest.raises(RuntimeError):
        services.place_order(ctx, CUSTOMER)

    assert Order.objects.count() == 0
    assert not ctx.cart.is_empty


def test_order_is_linked_to_logged_in_user(customer, product_factory):
    ctx = make_ctx(user=customer)
    ctx.cart.add(product_factory().pk)

    order = services.place_order(ctx, CUSTOMER)

    assert order.user == customer


def test_order_numbers_are_unique():
    numbers = {services.generate_order_number() for _ in range(200)}
    assert len(numbers) == 200


def test_order_number_collision_draws_a_new_number(product_factory, monkeypatch):
    numbers = iter(["ORD-1-aaaaaaaaa", "ORD-1-aaaaaaaaa", "ORD-1-bbbbbbbbb"])
    monkeypatch.setattr(services, "generate_order_number", lambda: next(numbers))
    p = product_factory()

    first = make_ctx()
    first.cart.add(p.pk)
    services.place_order(first, CUSTOMER)
    second = make_ctx()
    second.cart.add(p.pk)
    order = services.place_order(second, CUSTOMER)

    assert order.order_number == "ORD-1-bbbbbbbbb"
    assert Order.objects.count() == 2
    assert order.items.count() == 1


# ---------------------------------------------------------------- status

@pytest.fixture
def order(two_line_cart):
    ctx, _, _ = two_line_cart
    return services.place_order(ctx, CUSTOMER)


def walk(order, admin, *statuses):
    for s in statuses:
        order = services.update_status(order.pk, s, admin)
    return order


def test_delivered_order_cannot_go_back_to_shipped(order, admin_user):
    walk(order, admin_user, "paid", "processing", "shipped", "delivered")

    with pytest.raises(InvalidTransition):
        services.update_status(order.pk, "shipped", admin_user)

    order.refresh_from_db()
    assert order.status == Order.Status.DELIVERED
    assert order.delivered_at is not None


def test_skipping_a_step_is_invalid(order, admin_user):
    with pytest.raises(InvalidTransition):
        services.update_status(order.pk, "shipped", admin_user)
    order.refresh_from_db()
    assert order.status == Order.Status.PENDING


@pytest.mark.parametrize("terminal", ["cancelled", "refunded"])
def test_cancel_and_refund_are_terminal(order, admin_user, terminal):
    services.update_status(order.pk, terminal, admin_user)
    with pytest.raises(InvalidTransition):
        services.update_status(order.pk, "paid", admin_user)


def test_only_admin_may_change_status(order, customer):
    with pytest.raises(PermissionDenied):
        services.update_status(order.pk, "paid", customer)


def test_unknown_status_is_validation_error(order, admin_user):
    with pytest.raises(ValidationError):
        services.update_status(order.pk, "lost", admin_user)


def test_shipping_sends_email_with_tracking(order, admin_user, mailoutbox):
    walk(order, admin_user, "paid", "processing")
    services.update_status(order.pk, "shipped", admin_user, tracking_number="BR123")

    assert len(mailoutbox) == 1
    assert mailoutbox[0].subject == "Seu pedido foi enviado!"
    assert mailoutbox[0].to == ["maria@test.com"]
    assert "BR123" in mailoutbox[0].alternatives[0][0]


def test_mail_failure_does_not_undo_status(order, admin_user, monkeypatch, caplog):
    def broken(*args, **kwargs):
        raise ConnectionRefusedError("smtp down")

    monkeypatch.setattr("apps.core.mail.send_mail", broken)
    walk(order, admin_user, "paid", "processing")

    updated = services.update_status(order.pk, "shipped", admin_user)

    assert updated.status == Order.Status.SHIPPED
    order.refresh_from_db()
    assert order.status == Order.Status.SHIPPED
    assert "background task send_status_email failed" in caplog.text


# ---------------------------------------------------------------- payments

def test_payment_approval_advances_pending_to_paid(order):
    updated = services.record_payment_notification(order.order_number, "approved", payment_id="123")

    assert updated.status == Order.Status.PAID
    assert updated.payment_status == Order.PaymentStatus.PAID
    assert updated.payment_id == "123"


def test_payment_notification_replay_is_ignored(order, admin_user):
    services.record_payment_notification(order.order_number, "approved", payment_id="123")
    walk(order, admin_user, "processing")

    again = services.record_payment_notification(order.order_number, "approved", payment_id="123")

    assert again.status == Order.Status.PROCESSING
    assert PaymentNotification.objects.filter(order=order).count() == 1


def test_rejected_payment_leaves_status_pending(order):
    updated = services.record_payment_notification(order.order_number, "rejected", payment_id="9")
    assert updated.status == Order.Status.PENDING
    assert updated.payment_status == Order.PaymentStatus.FAILED


def test_payment_after_shipping_does_not_move_status(order, admin_user):
    walk(order, admin_user, "paid", "processing", "shipped")
    updated = services.record_payment_notification(order.order_number, "approved", payment_id="77")
    assert updated.status == Order.Status.SHIPPED


def test_payment_for_unknown_order():
    with pytest.raises(NotFound):
        services.record_payment_notification("ORD-0-missing", "approved")


@pytest.mark.parametrize("state,expected", [
    ("approved", "paid"),
    ("rejected", "failed"),
    ("charged_back", "refunded"),
    ("in_process", "pending"),
])
def test_payment_state_mapping(state, expected):
    assert services.map_payment_state(state) == expected


@pytest.mark.parametrize("late", ["in_process", "pending", "authorized", "rejected"])
def test_late_notification_does_not_undo_approval(order, late):
    services.record_payment_notification(order.order_number, "approved", payment_id="1")

    updated = services.record_payment_notification(order.order_number, late, payment_id="1")

    assert updated.payment_status == Order.PaymentStatus.PAID
    assert updated.status == Order.Status.PAID
    order.refresh_from_db()
    assert order.payment_status == Order.PaymentStatus.PAID


def test_refund_after_approval_is_applied(order):
    services.record_payment_notification(order.order_number, "approved", payment_id="1")
    updated = services.record_payment_notification(order.order_number, "refunded", payment_id="1")
    assert updated.payment_status == Order.PaymentStatus.REFUNDED

    later = services.record_payment_notification(order.order_number, "approved", payment_id="2")
    assert later.payment_status == Order.PaymentStatus.REFUNDED


def test_approval_after_rejection_is_applied(order):
    services.record_payment_notification(order.order_number, "rejected", payment_id="1")
    updated = services.record_payment_notification(order.order_number, "approved", payment_id="2")
    assert updated.payment_status == Order.PaymentStatus.PAID
    assert updated.status == Order.Status.PAID


# ---------------------------------------------------------------- reads

def test_customer_sees_only_own_orders(customer, admin_user, product_factory):
    mine = make_ctx(user=customer)
    mine.cart.add(product_factory().pk)
    own = services.place_order(mine, CUSTOMER)
    guest = make_ctx()
    guest.cart.add(product_factory().pk)
    other = services.place_order(guest, CUSTOMER)

    assert list(services.list_orders_for(make_ctx(user=customer))) == [own]
    assert services.list_orders_for(make_ctx(user=admin_user)).count() == 2
    with pytest.raises(PermissionDenied):
        services.get_order_for(make_ctx(user=customer), other.pk)
    with pytest.raises(PermissionDenied):
        services.list_orders_for(make_ctx())


def test_dashboard_stats(order):
    stats = services.dashboard_stats()
    assert stats["total_orders"] == 1
    assert stats["today_orders"] == 1
    assert stats["month_sales"] == Decimal("45.00")
    assert stats["recent_orders"] == [order]
