from django.http import HttpResponse
from rest_framework import status
from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.response import Response

from apps.users.permissions import IsShopAdmin

from . import services
from .serializers import AdminProductOut, CategoryIn, CategoryOut, ProductIn, ProductOut


@api_view(["GET"])
def home(request):
    return Response({
        "featured": ProductOut(services.featured_products(), many=True).data,
        "bestsellers": ProductOut(services.bestsellers(), many=True).data,
        "categories": CategoryOut(services.list_categories(), many=True).data,
    })


@api_view(["GET"])
def search(request):
    query = request.query_params.get("q", "").strip()
    category = request.query_params.get("category") or None
    products = services.list_active_products(category=category, query=query or None)
    return Response({"query": query, "products": ProductOut(products, many=True).data})


@api_view(["GET"])
def category_list(request):
    return Response(CategoryOut(services.list_categories(), many=True).data)


@api_view(["GET"])
def product_list(request):
    products = services.list_active_products(category=request.query_params.get("category") or None)
    return Response(ProductOut(products, many=True).data)


@api_view(["GET"])
def product_detail(request, id_or_slug):
    product = services.get_product(id_or_slug, active_only=True)
    return Response(ProductOut(product).data)


@api_view(["GET"])
def product_image(request, product_id, position=1):
    data, content_type = services.product_image(product_id, position)
    resp = HttpResponse(data, content_type=content_type)
    resp["Cache-Control"] = "public, max-age=86400"
    return resp


# ---------------------------------------------------------------- admin

@api_view(["GET", "POST"])
@permission_classes([IsShopAdmin])
@parser_classes([JSONParser, FormParser, MultiPartParser])
def admin_products(request):
    if request.method == "GET":
        return Response(AdminProductOut(services.list_all_products(), many=True).data)
    ser = ProductIn(data=request.data)
    ser.is_valid(raise_exception=True)
    images = services.read_images(request.FILES.getlist("images"))
    product = services.create_product(ser.validated_data, images=images)
    return Response(
        {"success": True, "message": "Produto criado com sucesso!", "product": AdminProductOut(product).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(["GET", "PUT", "DELETE"])
@permission_classes([IsShopAdmin])
@parser_classes([JSONParser, FormParser, MultiPartParser])
def admin_product_detail(request, product_id):
    if request.method == "GET":
        return Response(AdminProductOut(services.get_product(product_id)).data)
    if request.method == "DELETE":
        services.delete_product(product_id)
        return Response({"success": True, "message": "Produto excluído com sucesso!"})
    ser = ProductIn(data=request.data, partial=True)
    ser.is_valid(raise_exception=True)
    images = services.read_images(request.FILES.getlist("images"))
    product = services.update_product(product_id, ser.validated_data, images=images)
    return Response({"success": True, "message": "Produto atualizado com sucesso!", "product": AdminProductOut(product).data})


@api_view(["GET", "POST"])
@permission_classes([IsShopAdmin])
def admin_categories(request):
    if request.method == "GET":
        return Response(CategoryOut(services.list_categories(active_only=False), many=True).data)
    ser = CategoryIn(data=request.data)
    ser.is_valid(raise_exception=True)
    category = services.create_category(ser.validated_data)
    return Response(
        {"success": True, "message": "Categoria criada com sucesso!", "category": CategoryOut(category).data},
        status=status.HTTP_201_CREATED,
    )


@api_view(["PUT", "DELETE"])
@permission_classes([IsShopAdmin])
def admin_category_detail(request, category_id):
    if request.method == "DELETE":
        services.delete_category(category_id)
        return Response({"success": True, "message": "Categoria excluída com sucesso!"})
    ser = CategoryIn(data=request.data, partial=True)
    ser.is_valid(raise_exception=True)
    category = services.update_category(category_id, ser.validated_data)
    return Response({"success": True, "message": "Categoria atualizada com sucesso!", "category": CategoryOut(category).data})


@api_view(["PUT"])
@permission_classes([IsShopAdmin])
def admin_category_toggle(request, category_id):
    category = services.toggle_category(category_id)
    state = "ativada" if category.is_active else "desativada"
    return Response({"success": True, "message": f"Categoria {state} com sucesso", "is_active": category.is_active})
