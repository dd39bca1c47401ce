from rest_framework import serializers
from rest_framework.decorators import api_view
from rest_framework.response import Response

from .cart import Cart


class QuantityIn(serializers.Serializer):
    quantity = serializers.IntegerField(required=False, default=1)


def _cart_payload(cart):
    return {
        "items": [
            {
                "product_id": line.product_id,
                "name": line.name,
                "sku": line.sku,
                "price": str(line.price),
                "image": line.image,
                "quantity": line.quantity,
                "line_total": str(line.line_total),
            }
            for line in cart.lines()
        ],
        "count": cart.item_count(),
        "total": str(cart.total()),
    }


@api_view(["GET"])
def cart_detail(request):
    return Response(_cart_payload(Cart(request.session)))


@api_view(["POST"])
def cart_add(request, product_id):
    ser = QuantityIn(data=request.data)
    ser.is_valid(raise_exception=True)
    cart = Cart(request.session)
    cart.add(product_id, ser.validated_data["quantity"])
    return Response({"success": True, "message": "Produto adicionado ao carrinho!", "cart": _cart_payload(cart)})


@api_view(["PUT"])
def cart_update(request, product_id):
    ser = QuantityIn(data=request.data)
    ser.is_valid(raise_exception=True)
    cart = Cart(request.session)
    cart.set_quantity(product_id, ser.validated_data["quantity"])
    return Response({"success": True, "cart": _cart_payload(cart)})


@api_view(["DELETE"])
def cart_remove(request, product_id):
    cart = Cart(request.session)
    cart.remove(product_id)
    return Response({"success": True, "message": "Produto removido do carrinho", "cart": _cart_payload(cart)})


@api_view(["DELETE"])
def cart_clear(request):
    cart = Cart(request.session)
    cart.clear()
    return Response({"success": True, "cart": _cart_payload(cart)})
