from rest_framework import serializers

from .models import Order, OrderItem


class CheckoutIn(serializers.Serializer):
    name = serializers.CharField(max_length=100, allow_blank=True)
    email = serializers.EmailField(max_length=100)
    phone = serializers.CharField(max_length=20, allow_blank=True)
    address = serializers.CharField(allow_blank=True)
    city = serializers.CharField(max_length=100, allow_blank=True)
    state = serializers.CharField(max_length=50, allow_blank=True)
    zip_code = serializers.CharField(max_length=10, allow_blank=True)
    billing_address = serializers.CharField(required=False, allow_blank=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    payment_method = serializers.CharField(max_length=50, required=False, allow_blank=True)


class StatusIn(serializers.Serializer):
    status = serializers.ChoiceField(choices=Order.Status.choices)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    tracking_url = serializers.URLField(max_length=500, required=False, allow_blank=True)


class OrderItemOut(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["id", "product", "product_name", "product_sku", "quantity", "unit_price", "total_price"]


class OrderOut(serializers.ModelSerializer):
    items = OrderItemOut(many=True, read_only=True)

    class Meta:
        model = Order
        fields = [
            "id", "order_number", "user", "customer_name", "customer_email", "customer_phone",
            "shipping_address", "shipping_city", "shipping_state", "shipping_zip_code",
            "billing_address", "notes", "subtotal", "shipping_amount", "tax_amount",
            "discount_amount", "total_amount", "status", "payment_status", "payment_method",
            "tracking_number", "tracking_url", "shipped_at", "delivered_at", "created_at",
            "updated_at", "items",
        ]


class OrderSummaryOut(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "id", "order_number", "customer_name", "total_amount", "status",
            "payment_status", "created_at",
        ]


class TrackingOut(serializers.ModelSerializer):
    class Meta:
        model = Order
        fields = [
            "order_number", "status", "payment_status", "tracking_number", "tracking_url",
            "shipped_at", "delivered_at", "created_at",
        ]
