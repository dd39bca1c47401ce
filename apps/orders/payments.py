import hmac
import logging
from datetime import timedelta

import requests
from django.conf import settings
from django.utils import timezone

from apps.core.errors import ExternalServiceError, PermissionDenied, ValidationError

logger = logging.getLogger(__name__)

PREFERENCE_TTL = timedelta(hours=24)


class MercadoPagoClient:
    """Thin wrapper over the Mercado Pago REST API (checkout preferences, payments)."""

    def __init__(self, access_token=None, base_url=None, timeout=None):
        self.access_token = access_token if access_token is not None else settings.MERCADOPAGO_ACCESS_TOKEN
        self.base_url = (base_url or settings.MERCADOPAGO_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.MERCADOPAGO_TIMEOUT

    @property
    def headers(self):
        return {
            "Authorization": f"Bearer {self.access_token}",
            "Content-Type": "application/json",
        }

    def _request(self, method, path, **kwargs):
        if not self.access_token:
            raise ExternalServiceError("Mercado Pago não configurado")
        try:
            resp = requests.request(
                method, f"{self.base_url}{path}", headers=self.headers, timeout=self.timeout, **kwargs
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("mercadopago %s %s failed: %s", method, path, e)
            raise ExternalServiceError("Erro ao processar pagamento") from e
        return resp.json()

    def build_preference(self, order):
        base = settings.BASE_URL.rstrip("/")
        expires = timezone.now() + PREFERENCE_TTL
        return {
            "items": [
                {
                    "title": item.product_name,
                    "unit_price": float(item.unit_price),
                    "quantity": item.quantity,
                }
                for item in order.items.all()
            ],
            "payer": {
                "name": order.customer_name,
                "email": order.customer_email,
                "phone": {"number": order.customer_phone},
            },
            "back_urls": {
                "success": f"{base}/orders/success",
                "failure": f"{base}/orders/failure",
                "pending": f"{base}/orders/pending",
            },
            "auto_return": "approved",
            "external_reference": order.order_number,
            "notification_url": f"{base}/webhooks/mercadopago/",
            "expires": True,
            "expiration_date_to": expires.isoformat(),
            "shipments": {"cost": float(order.shipping_amount), "mode": "not_specified"},
        }

    def create_preference(self, order):
        body = self._request("POST", "/checkout/preferences", json=self.build_preference(order))
        logger.info("payment preference %s created for %s", body.get("id"), order.order_number)
        return body

    def get_payment(self, payment_id):
        return self._request("GET", f"/v1/payments/{payment_id}")


def _trusted_sender(signature):
    secret = settings.MERCADOPAGO_WEBHOOK_SECRET
    return bool(secret) and bool(signature) and hmac.compare_digest(str(signature), secret)


def resolve_notification(payload, client=None, signature=None):
    """Normalize a webhook body to ``(external_reference, state, payment_id)``.

    The gateway's ``{"type": "payment", "data": {"id": ...}}`` form is always
    looked up through the API. A direct ``{external_reference, payment_id,
    status}`` body is taken as-is only when ``signature`` matches
    ``MERCADOPAGO_WEBHOOK_SECRET``; otherwise its payment id is looked up like
    the gateway form and the body's own reference and status are ignored.
    """
    payload = payload or {}
    data = payload.get("data") or {}
    if payload.get("type") == "payment" and data.get("id"):
        payment_id = data["id"]
    elif payload.get("external_reference"):
        if _trusted_sender(signature):
            return (
                str(payload["external_reference"]),
                str(payload.get("status") or "pending"),
                str(payload["payment_id"]) if payload.get("payment_id") else None,
            )
        if not payload.get("payment_id"):
            logger.warning("unsigned payment notification for %s rejected", payload["external_reference"])
            raise PermissionDenied("Notificação de pagamento não autenticada")
        payment_id = payload["payment_id"]
    else:
        raise ValidationError("Notificação de pagamento inválida")

    payment = (client or MercadoPagoClient()).get_payment(payment_id)
    if not payment.get("external_reference"):
        raise ValidationError("Pagamento sem referência de pedido")
    return str(payment["external_reference"]), str(payment.get("status") or "pending"), str(payment["id"])
