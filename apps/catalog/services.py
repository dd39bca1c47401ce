import logging
import uuid

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Q

from apps.core.errors import Conflict, NotFound, ValidationError

from .models import Category, Product
from .slugs import derive_slug

logger = logging.getLogger(__name__)


def _as_uuid(value):
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


def _by_id_or_slug(qs, id_or_slug):
    pk = _as_uuid(id_or_slug)
    return qs.filter(Q(pk=pk) if pk else Q(slug=id_or_slug)).first()


def _slug_for(model, name, slug=None):
    value = derive_slug(slug) if slug else derive_slug(name)
    value = value[: model._meta.get_field("slug").max_length].strip("-")
    if not value:
        raise ValidationError("Não foi possível gerar um slug a partir do nome")
    return value


def _save(obj, conflict_message):
    try:
        with transaction.atomic():
            obj.save()
    except IntegrityError:
        raise Conflict(conflict_message)
    return obj


# ---------------------------------------------------------------- reads

def list_active_products(category=None, query=None):
    qs = Product.objects.filter(is_active=True).select_related("category")
    if category:
        pk = _as_uuid(category)
        qs = qs.filter(Q(category_id=pk) if pk else Q(category__slug=category))
    if query:
        qs = qs.filter(Q(name__icontains=query) | Q(description__icontains=query))
    return qs.order_by("-created_at")


def list_all_products():
    return Product.objects.select_related("category").order_by("-created_at")


def featured_products(limit=8):
    return list(list_active_products().filter(is_featured=True)[:limit])


def bestsellers(limit=4):
    return list(list_active_products().filter(is_bestseller=True)[:limit])


def get_product(id_or_slug, active_only=False) -> Product:
    qs = Product.objects.select_related("category")
    if active_only:
        qs = qs.filter(is_active=True)
    product = _by_id_or_slug(qs, id_or_slug)
    if product is None:
        raise NotFound("Produto não encontrado")
    return product


def list_categories(active_only=True):
    qs = Category.objects.all()
    if active_only:
        qs = qs.filter(is_active=True)
    return qs


def get_category(id_or_slug) -> Category:
    category = _by_id_or_slug(Category.objects.all(), id_or_slug)
    if category is None:
        raise NotFound("Categoria não encontrada")
    return category


def product_image(product_id, position=1):
    if position not in range(1, len(Product.IMAGE_SLOTS) + 1):
        raise NotFound("Imagem não encontrada")
    product = Product.objects.filter(pk=_as_uuid(product_id)).first()
    if product is None:
        raise NotFound("Imagem não encontrada")
    data, mime = product.get_image(position)
    if not data:
        raise NotFound("Imagem não encontrada")
    return bytes(data), mime or "image/jpeg"


# ---------------------------------------------------------------- admin: products

PRODUCT_FIELDS = (
    "name", "description", "short_description", "price", "compare_price", "cost_price",
    "sku", "stock_quantity", "weight", "dimensions", "is_active", "is_featured",
    "is_bestseller", "meta_title", "meta_description", "sort_order",
)


def validate_image(upload):
    """Check one upload against the allowed types and size; returns ``(bytes, mime)``."""
    if upload.content_type not in settings.SHOP_ALLOWED_IMAGE_TYPES:
        raise ValidationError("Tipo de arquivo não suportado. Use apenas JPEG, PNG ou WebP.")
    if upload.size > settings.SHOP_MAX_IMAGE_BYTES:
        raise ValidationError("Imagem muito grande")
    return upload.read(), upload.content_type


def read_images(files):
    """Validate uploads and return ``(bytes, mime)`` pairs for the carousel."""
    files = list(files or ())
    if len(files) > settings.SHOP_MAX_PRODUCT_IMAGES:
        raise ValidationError(f"Máximo de {settings.SHOP_MAX_PRODUCT_IMAGES} imagens por produto")
    return [validate_image(f) for f in files]


def _apply_product_fields(product, data):
    for field in PRODUCT_FIELDS:
        if field in data:
            setattr(product, field, data[field])
    if "sku" in data and not data["sku"]:
        product.sku = None
    if "category" in data:
        category = data["category"]
        product.category = get_category(category) if category else None


@transaction.atomic
def create_product(data, images=()) -> Product:
    if data.get("sku") and Product.objects.filter(sku=data["sku"]).exists():
        raise Conflict("Já existe um produto com este SKU")
    product = Product()
    _apply_product_fields(product, data)
    product.slug = _slug_for(Product, product.name, data.get("slug"))
    if images:
        product.set_images(images)
    _save(product, "Já existe um produto com este SKU ou slug")
    logger.info("product created: %s (%s)", product.slug, product.pk)
    return product


@transaction.atomic
def update_product(product_id, data, images=()) -> Product:
    product = Product.objects.select_for_update().filter(pk=_as_uuid(product_id)).first()
    if product is None:
        raise NotFound("Produto não encontrado")
    if data.get("sku") and Product.objects.filter(sku=data["sku"]).exclude(pk=product.pk).exists():
        raise Conflict("Já existe um produto com este SKU")

    old_name = product.name
    _apply_product_fields(product, data)
    explicit_slug = data.get("slug")
    if explicit_slug:
        product.slug = _slug_for(Product, product.name, explicit_slug)
    elif product.name != old_name:
        product.slug = _slug_for(Product, product.name)
    if images:
        product.set_images(images)
    return _save(product, "Já existe um produto com este SKU ou slug")


@transaction.atomic
def delete_product(product_id) -> None:
    product = Product.objects.filter(pk=_as_uuid(product_id)).first()
    if product is None:
        raise NotFound("Produto não encontrado")
    # order items keep their snapshot; the FK is nulled
    product.delete()
    logger.info("product deleted: %s", product_id)


# ---------------------------------------------------------------- admin: categories

@transaction.atomic
def create_category(data) -> Category:
    name = (data.get("name") or "").strip()
    if not name:
        raise ValidationError("Nome é obrigatório")
    if Category.objects.filter(name=name).exists():
        raise Conflict("Uma categoria com este nome já existe")
    category = Category(
        name=name,
        description=data.get("description"),
        is_active=data.get("is_active", True),
        sort_order=data.get("sort_order", 0),
    )
    category.slug = _slug_for(Category, name, data.get("slug"))
    if Category.objects.filter(slug=category.slug).exists():
        raise Conflict("Uma categoria com este slug já existe")
    return _save(category, "Uma categoria com este nome já existe")


@transaction.atomic
def update_category(category_id, data) -> Category:
    category = Category.objects.select_for_update().filter(pk=_as_uuid(category_id)).first()
    if category is None:
        raise NotFound("Categoria não encontrada")
    name = (data.get("name") or category.name).strip()
    if Category.objects.filter(name=name).exclude(pk=category.pk).exists():
        raise Conflict("Uma categoria com este nome já existe")

    explicit_slug = data.get("slug")
    if explicit_slug:
        category.slug = _slug_for(Category, name, explicit_slug)
    elif name != category.name:
        category.slug = _slug_for(Category, name)
    category.name = name
    for field in ("description", "is_active", "sort_order"):
        if field in data:
            setattr(category, field, data[field])
    if Category.objects.filter(slug=category.slug).exclude(pk=category.pk).exists():
        raise Conflict("Uma categoria com este slug já existe")
    return _save(category, "Uma categoria com este nome já existe")


@transaction.atomic
def toggle_category(category_id) -> Category:
    category = Category.objects.select_for_update().filter(pk=_as_uuid(category_id)).first()
    if category is None:
        raise NotFound("Categoria não encontrada")
    category.is_active = not category.is_active
    category.save(update_fields=["is_active", "updated_at"])
    return category


@transaction.atomic
def delete_category(category_id) -> None:
    category = Category.objects.select_for_update().filter(pk=_as_uuid(category_id)).first()
    if category is None:
        raise NotFound("Categoria não encontrada")
    product_count = Product.objects.filter(category=category).count()
    if product_count:
        raise Conflict(
            f"Não é possível excluir a categoria. Existem {product_count} produto(s) associado(s)."
        )
    category.delete()
