from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from apps.catalog.serializers import ProductOut
from apps.core.context import RequestContext
from apps.users.permissions import IsActiveUser, IsShopAdmin
from apps.users.services import current_user

from . import services
from .payments import MercadoPagoClient, resolve_notification
from .serializers import CheckoutIn, OrderOut, OrderSummaryOut, StatusIn, TrackingOut


def _prefill(user):
    if user is None:
        return {}
    return {
        "name": user.name,
        "email": user.email,
        "phone": user.phone or "",
        "address": user.address or "",
        "city": user.city or "",
        "state": user.state or "",
        "zip_code": user.zip_code or "",
    }


@api_view(["GET", "POST"])
def checkout(request):
    ctx = RequestContext.from_request(request)
    if request.method == "GET":
        if ctx.cart.is_empty:
            return Response({"success": False, "message": "Seu carrinho está vazio"}, status=status.HTTP_400_BAD_REQUEST)
        return Response({
            "items": [
                {"product_id": line.product_id, "name": line.name, "quantity": line.quantity,
                 "price": str(line.price), "line_total": str(line.line_total)}
                for line in ctx.cart.lines()
            ],
            "total": str(ctx.cart.total()),
            "customer": _prefill(ctx.current_user),
        })

    ser = CheckoutIn(data=request.data)
    ser.is_valid(raise_exception=True)
    order = services.place_order(ctx, ser.validated_data)
    return Response(
        {"success": True, "message": "Pedido realizado com sucesso!", "order": OrderOut(order).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET"])
@permission_classes([IsActiveUser])
def order_list(request):
    orders = services.list_orders_for(RequestContext.from_request(request))
    return Response(OrderSummaryOut(orders, many=True).data)


@api_view(["GET"])
@permission_classes([IsActiveUser])
def order_detail(request, order_id):
    order = services.get_order_for(RequestContext.from_request(request), order_id)
    return Response(OrderOut(order).data)


@api_view(["GET"])
def order_track(request, order_number):
    return Response(TrackingOut(services.track_order(order_number)).data)


@api_view(["POST"])
@permission_classes([IsActiveUser])
def order_payment(request, order_id):
    order = services.get_order_for(RequestContext.from_request(request), order_id)
    preference = MercadoPagoClient().create_preference(order)
    return Response({
        "success": True,
        "preference_id": preference.get("id"),
        "init_point": preference.get("init_point"),
    })


@api_view(["PUT"])
@permission_classes([IsShopAdmin])
def order_status(request, order_id):
    ser = StatusIn(data=request.data)
    ser.is_valid(raise_exception=True)
    data = ser.validated_data
    services.update_status(
        order_id,
        data["status"],
        current_user(request),
        tracking_number=data.get("tracking_number") or None,
        tracking_url=data.get("tracking_url") or None,
    )
    return Response({"success": True, "message": "Status atualizado com sucesso"})


@api_view(["POST"])
def mercadopago_webhook(request):
    data = request.data
    payload = data.dict() if hasattr(data, "dict") else dict(data or {})
    # the gateway also sends ?type=payment&data.id=... query-only pings
    if not payload and request.query_params.get("data.id"):
        payload = {"type": request.query_params.get("type"), "data": {"id": request.query_params["data.id"]}}
    external_reference, state, payment_id = resolve_notification(
        payload, signature=request.headers.get("X-Webhook-Secret")
    )
    order = services.record_payment_notification(external_reference, state, payment_id=payment_id, payload=payload)
    return Response({"success": True, "status": order.status, "payment_status": order.payment_status})


# ---------------------------------------------------------------- admin

@api_view(["GET"])
@permission_classes([IsShopAdmin])
def admin_dashboard(request):
    stats = services.dashboard_stats()
    return Response({
        **{k: v for k, v in stats.items() if k not in ("recent_orders", "top_products")},
        "month_sales": str(stats["month_sales"]),
        "recent_orders": OrderSummaryOut(stats["recent_orders"], many=True).data,
        "top_products": ProductOut(stats["top_products"], many=True).data,
    })


@api_view(["GET"])
@permission_classes([IsShopAdmin])
def admin_orders(request):
    orders = services.list_orders_for(RequestContext.from_request(request))
    status_filter = request.query_params.get("status")
    if status_filter:
        orders = orders.filter(status=status_filter)
    return Response(OrderSummaryOut(orders, many=True).data)


@api_view(["GET"])
@permission_classes([IsShopAdmin])
def admin_order_detail(request, order_id):
    order = services.get_order_for(RequestContext.from_request(request), order_id)
    return Response(OrderOut(order).data)
