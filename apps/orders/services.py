import logging
import secrets
import string
import time
import uuid

from django.db import IntegrityError, transaction
from django.db.models import Sum
from django.utils import timezone

from apps.catalog.models import Product
from apps.core.errors import InvalidTransition, NotFound, PermissionDenied, ValidationError
from apps.core.tx import retry_on_tx_failure
from apps.users.models import User

from . import notifications
from .models import Order, OrderItem, PaymentNotification
from .pricing import ZERO, get_shipping_policy, get_tax_policy, quantize

logger = logging.getLogger(__name__)

S = Order.Status

TRANSITIONS = {
    "pending": {"paid", "cancelled", "refunded"},
    "paid": {"processing", "cancelled", "refunded"},
    "processing": {"shipped", "cancelled", "refunded"},
    "shipped": {"delivered", "cancelled", "refunded"},
    "delivered": set(),
    "cancelled": set(),
    "refunded": set(),
}
TERMINAL = frozenset(s for s, nxt in TRANSITIONS.items() if not nxt)

REQUIRED_CUSTOMER_FIELDS = ("name", "email", "address", "city", "state", "zip_code", "phone")

PAYMENT_STATES = {
    "approved": Order.PaymentStatus.PAID,
    "paid": Order.PaymentStatus.PAID,
    "rejected": Order.PaymentStatus.FAILED,
    "cancelled": Order.PaymentStatus.FAILED,
    "failed": Order.PaymentStatus.FAILED,
    "refunded": Order.PaymentStatus.REFUNDED,
    "charged_back": Order.PaymentStatus.REFUNDED,
}

_BASE36 = string.digits + string.ascii_lowercase
ORDER_NUMBER_ATTEMPTS = 5


def can_transition(current, new) -> bool:
    return new in TRANSITIONS.get(current, set())


def map_payment_state(payment_state) -> str:
    return PAYMENT_STATES.get(str(payment_state or "").lower(), Order.PaymentStatus.PENDING)


def next_payment_status(current, incoming) -> str:
    """Payment status after a notification; stale or out-of-order states never undo a settled one."""
    P = Order.PaymentStatus
    if current == P.REFUNDED:
        return current
    if incoming == P.PENDING and current in (P.PAID, P.FAILED):
        return current
    if incoming == P.FAILED and current == P.PAID:
        return current
    return incoming


def generate_order_number() -> str:
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"ORD-{int(time.time() * 1000)}-{suffix}"


def _create_order(**fields) -> Order:
    for attempt in range(1, ORDER_NUMBER_ATTEMPTS + 1):
        number = generate_order_number()
        try:
            with transaction.atomic():
                return Order.objects.create(order_number=number, **fields)
        except IntegrityError:
            if attempt == ORDER_NUMBER_ATTEMPTS or not Order.objects.filter(order_number=number).exists():
                raise
            logger.warning("order number %s already taken, drawing another", number)


def _clean_customer_info(info):
    info = {k: (str(v).strip() if v is not None else "") for k, v in (info or {}).items()}
    missing = [f for f in REQUIRED_CUSTOMER_FIELDS if not info.get(f)]
    if missing:
        raise ValidationError(f"Campos obrigatórios não preenchidos: {', '.join(missing)}")
    return info


# ---------------------------------------------------------------- checkout

@transaction.atomic
def _persist_order(*, user, info, lines) -> Order:
    subtotal = quantize(sum((line.line_total for line in lines), ZERO))
    shipping = quantize(get_shipping_policy()(subtotal, lines))
    tax = quantize(get_tax_policy()(subtotal, lines))
    discount = ZERO
    total = subtotal + tax + shipping - discount

    order = _create_order(
        user=user,
        customer_name=info["name"],
        customer_email=info["email"],
        customer_phone=info["phone"],
        shipping_address=info["address"],
        shipping_city=info["city"],
        shipping_state=info["state"],
        shipping_zip_code=info["zip_code"],
        billing_address=info.get("billing_address") or None,
        notes=info.get("notes") or None,
        payment_method=info.get("payment_method") or None,
        subtotal=subtotal,
        shipping_amount=shipping,
        tax_amount=tax,
        discount_amount=discount,
        total_amount=total,
    )

    live = Product.objects.in_bulk([line.product_id for line in lines])
    items = []
    for line in lines:
        product = live.get(uuid.UUID(line.product_id))
        items.append(OrderItem(
            order=order,
            product=product,
            product_name=product.name if product else line.name,
            product_sku=(product.sku if product else line.sku) or None,
            quantity=line.quantity,
            unit_price=line.price,
            total_price=quantize(line.line_total),
        ))
    OrderItem.objects.bulk_create(items)
    return order


def place_order(ctx, customer_info) -> Order:
    """Turn the caller's cart into an Order; the cart is emptied once it is stored."""
    lines = ctx.cart.snapshot()
    if not lines:
        raise ValidationError("Seu carrinho está vazio")
    info = _clean_customer_info(customer_info)

    order = _persist_order(user=ctx.current_user, info=info, lines=lines)
    ctx.cart.clear()
    logger.info("order placed: %s total=%s items=%d", order.order_number, order.total_amount, len(lines))
    return order


# ---------------------------------------------------------------- status

@retry_on_tx_failure(max_attempts=3, backoff=0.05)
@transaction.atomic
def update_status(order_id, new_status, actor, tracking_number=None, tracking_url=None) -> Order:
    if actor is None or not getattr(actor, "is_admin", False):
        raise PermissionDenied("Apenas administradores podem alterar o status do pedido")
    if new_status not in S.values:
        raise ValidationError("Status inválido")

    order = Order.objects.select_for_update().filter(pk=order_id).first()
    if order is None:
        raise NotFound("Pedido não encontrado")
    if order.status in TERMINAL:
        raise InvalidTransition(f"Pedido com status {order.status} não pode ser alterado")
    if not can_transition(order.status, new_status):
        raise InvalidTransition(f"Transição de status inválida: {order.status} -> {new_status}")

    previous = order.status
    order.status = new_status
    fields = ["status", "updated_at"]
    now = timezone.now()
    if new_status == S.SHIPPED:
        order.shipped_at = now
        fields.append("shipped_at")
    elif new_status == S.DELIVERED:
        order.delivered_at = now
        fields.append("delivered_at")
    if tracking_number:
        order.tracking_number = tracking_number
        fields.append("tracking_number")
    if tracking_url:
        order.tracking_url = tracking_url
        fields.append("tracking_url")
    order.save(update_fields=fields)

    logger.info("order %s status %s -> %s by %s", order.order_number, previous, new_status, actor.email)
    notifications.notify_status_change(order, new_status)
    return order


# ---------------------------------------------------------------- payments

@retry_on_tx_failure(max_attempts=3, backoff=0.05)
@transaction.atomic
def record_payment_notification(external_reference, payment_state, payment_id=None, payload=None) -> Order:
    order = Order.objects.select_for_update().filter(order_number=external_reference).first()
    if order is None:
        raise NotFound("Pedido não encontrado")

    state = str(payment_state or "").lower()
    # notifications without a gateway id dedupe on the order number
    key = str(payment_id) if payment_id else order.order_number
    try:
        with transaction.atomic():
            PaymentNotification.objects.create(order=order, payment_id=key, status=state, payload=payload or {})
    except IntegrityError:
        logger.info("payment notification %s/%s for %s already applied", key, state, order.order_number)
        return order

    incoming = map_payment_state(state)
    order.payment_status = next_payment_status(order.payment_status, incoming)
    if order.payment_status != incoming:
        logger.info("payment %s for %s ignored, already %s", state, order.order_number, order.payment_status)
    fields = ["payment_status", "updated_at"]
    if payment_id:
        order.payment_id = str(payment_id)
        fields.append("payment_id")
    if order.payment_status == Order.PaymentStatus.PAID and order.status == S.PENDING:
        order.status = S.PAID
        fields.append("status")
    order.save(update_fields=fields)
    logger.info(
        "payment notification applied: %s payment=%s status=%s",
        order.order_number, order.payment_status, order.status,
    )
    return order


# ---------------------------------------------------------------- reads

def _orders():
    return Order.objects.select_related("user").prefetch_related("items")


def get_order_for(ctx, order_id) -> Order:
    order = _orders().filter(pk=order_id).first()
    if order is None:
        raise NotFound("Pedido não encontrado")
    if ctx.is_admin:
        return order
    if ctx.current_user is None or order.user_id != ctx.current_user.pk:
        raise PermissionDenied("Acesso negado")
    return order


def list_orders_for(ctx):
    if ctx.current_user is None:
        raise PermissionDenied("Você precisa estar logado para acessar esta página")
    if ctx.is_admin:
        return _orders()
    return _orders().filter(user=ctx.current_user)


def track_order(order_number) -> Order:
    order = _orders().filter(order_number=order_number).first()
    if order is None:
        raise NotFound("Pedido não encontrado")
    return order


def dashboard_stats():
    now = timezone.localtime()
    start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    start_of_month = start_of_day.replace(day=1)
    month_sales = Order.objects.filter(created_at__gte=start_of_month).aggregate(total=Sum("total_amount"))["total"]
    return {
        "total_products": Product.objects.count(),
        "total_users": User.objects.count(),
        "total_orders": Order.objects.count(),
        "today_orders": Order.objects.filter(created_at__gte=start_of_day).count(),
        "month_sales": quantize(month_sales or ZERO),
        "recent_orders": list(Order.objects.order_by("-created_at")[:10]),
        "top_products": list(Product.objects.filter(is_bestseller=True)[:5]),
    }
