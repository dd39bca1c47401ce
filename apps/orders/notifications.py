import logging

from django.conf import settings

from apps.core import background
from apps.core.mail import send_email

from .models import Order

logger = logging.getLogger(__name__)

STATUS_EMAILS = {
    "shipped": ("Seu pedido foi enviado!", "enviado"),
    "delivered": ("Seu pedido foi entregue!", "entregue"),
}


def render_status_email(order, status):
    subject, verb = STATUS_EMAILS[status]
    html = (
        f"<h2>{subject}</h2>"
        f"<p>Olá {order.customer_name},</p>"
        f"<p>Seu pedido #{order.order_number} foi {verb}.</p>"
    )
    if status == Order.Status.SHIPPED and order.tracking_number:
        html += f"<p>Código de rastreio: {order.tracking_number}</p>"
        if order.tracking_url:
            html += f'<p><a href="{order.tracking_url}">Acompanhe a entrega</a></p>'
    html += f"<p>Obrigado por escolher a {settings.SHOP_STORE_NAME}!</p>"
    return subject, html


def send_status_email(order_id, status):
    order = Order.objects.filter(pk=order_id).first()
    if order is None:
        logger.warning("status email skipped, order %s is gone", order_id)
        return
    subject, html = render_status_email(order, status)
    send_email(order.customer_email, subject, html)


def notify_status_change(order, status):
    """Queue the customer email for statuses that have one; no-op otherwise."""
    if status not in STATUS_EMAILS:
        return
    background.on_commit(send_status_email, order.pk, status)
