from rest_framework import serializers
from rest_framework.fields import empty

from .models import Category, Product

money = dict(max_digits=10, decimal_places=2, min_value=0)


class FormBoolean(serializers.BooleanField):
    # an unchecked box is simply absent from a multipart form; leave the field untouched
    default_empty_html = empty


class ProductIn(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    slug = serializers.CharField(max_length=200, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True)
    short_description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    price = serializers.DecimalField(**money)
    compare_price = serializers.DecimalField(required=False, allow_null=True, **money)
    cost_price = serializers.DecimalField(required=False, allow_null=True, **money)
    sku = serializers.CharField(max_length=100, required=False, allow_blank=True, allow_null=True)
    stock_quantity = serializers.IntegerField(min_value=0, required=False)
    weight = serializers.DecimalField(max_digits=8, decimal_places=2, min_value=0, required=False, allow_null=True)
    dimensions = serializers.CharField(max_length=50, required=False, allow_blank=True, allow_null=True)
    category = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_active = FormBoolean(required=False)
    is_featured = FormBoolean(required=False)
    is_bestseller = FormBoolean(required=False)
    meta_title = serializers.CharField(max_length=60, required=False, allow_blank=True, allow_null=True)
    meta_description = serializers.CharField(max_length=160, required=False, allow_blank=True, allow_null=True)
    sort_order = serializers.IntegerField(required=False)


class CategoryIn(serializers.Serializer):
    name = serializers.CharField(max_length=100)
    slug = serializers.CharField(max_length=100, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    is_active = FormBoolean(required=False)
    sort_order = serializers.IntegerField(required=False)


class CategoryOut(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug", "description", "is_active", "sort_order", "created_at", "updated_at"]


class CategoryRef(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ["id", "name", "slug"]


class ProductOut(serializers.ModelSerializer):
    category = CategoryRef(read_only=True)
    images = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id", "name", "slug", "description", "short_description", "price",
            "compare_price", "sku", "stock_quantity", "weight", "dimensions",
            "is_active", "is_featured", "is_bestseller", "meta_title",
            "meta_description", "sort_order", "category", "images",
            "created_at", "updated_at",
        ]

    def get_images(self, obj):
        urls = []
        for position in obj.image_positions():
            suffix = "" if position == 1 else f"{position}/"
            urls.append(f"/products/{obj.pk}/image/{suffix}")
        return urls


class AdminProductOut(ProductOut):
    class Meta(ProductOut.Meta):
        fields = ProductOut.Meta.fields + ["cost_price"]
