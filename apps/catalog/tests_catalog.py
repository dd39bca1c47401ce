from decimal import Decimal

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile

from apps.catalog import services
from apps.catalog.models import Category, Product
from apps.catalog.slugs import derive_slug
from apps.core.errors import Conflict, NotFound, ValidationError

pytestmark = pytest.mark.django_db


@pytest.mark.parametrize("name,slug", [
    ("Categoria com Acentos é Símbolos!", "categoria-com-acentos-simbolos"),
    ("Vaso de Cerâmica", "vaso-de-ceramica"),
    ("  Tapeçaria -- Artesanal  ", "tapecaria-artesanal"),
    ("Arte & Tradição", "arte-tradicao"),
    ("Pão e Queijo", "pao-e-queijo"),
    ("Pão Queijo", "pao-queijo"),
])
def test_derive_slug(name, slug):
    assert derive_slug(name) == slug


def test_derive_slug_custom_stopwords():
    assert derive_slug("Pão é Vinho", stopwords=()) == "pao-e-vinho"
    assert derive_slug("Pão de Vinho", stopwords=("de",)) == "pao-vinho"


def test_create_product_derives_slug(category):
    p = services.create_product({"name": "Vaso de Cerâmica", "price": Decimal("10.00"), "category": str(category.pk)})
    assert p.slug == "vaso-de-ceramica"
    assert p.category == category


def test_explicit_slug_wins_on_create_and_update():
    p = services.create_product({"name": "Prato Azul", "price": Decimal("5.00"), "slug": "meu-prato"})
    assert p.slug == "meu-prato"

    p = services.update_product(p.pk, {"name": "Prato Verde", "slug": "prato-especial"})
    assert p.slug == "prato-especial"


def test_name_change_rederives_slug():
    p = services.create_product({"name": "Prato Azul", "price": Decimal("5.00")})
    p = services.update_product(p.pk, {"name": "Prato Verde"})
    assert p.slug == "prato-verde"

    p = services.update_product(p.pk, {"price": Decimal("6.00")})
    assert p.slug == "prato-verde"


def test_slug_from_symbols_only_is_rejected():
    with pytest.raises(ValidationError):
        services.create_product({"name": "!!!", "price": Decimal("1.00")})


def test_duplicate_sku_is_conflict():
    services.create_product({"name": "A", "price": Decimal("1.00"), "sku": "SKU-1"})
    with pytest.raises(Conflict):
        services.create_product({"name": "B", "price": Decimal("1.00"), "sku": "SKU-1"})
    assert Product.objects.count() == 1


def test_duplicate_slug_is_conflict():
    services.create_product({"name": "Cesto", "price": Decimal("1.00")})
    with pytest.raises(Conflict):
        services.create_product({"name": "Cesto", "price": Decimal("2.00")})


def test_duplicate_category_name_is_conflict(category):
    with pytest.raises(Conflict):
        services.create_category({"name": category.name})


def test_category_with_products_cannot_be_deleted(category, product_factory):
    product_factory(category=category)

    with pytest.raises(Conflict):
        services.delete_category(category.pk)

    assert Category.objects.filter(pk=category.pk).exists()
    assert Product.objects.filter(category=category).count() == 1


def test_empty_category_can_be_deleted(category):
    services.delete_category(category.pk)
    assert not Category.objects.exists()


def test_toggle_category(category):
    assert services.toggle_category(category.pk).is_active is False
    assert services.toggle_category(category.pk).is_active is True


def test_search_is_case_insensitive_and_active_only(product_factory):
    product_factory("Vaso Azul", description="feito à mão")
    product_factory("Prato", description="Com detalhes em AZUL")
    product_factory("Azulejo", is_active=False)

    names = {p.name for p in services.list_active_products(query="azul")}
    assert names == {"Vaso Azul", "Prato"}


def test_filter_by_category_slug(category, product_factory):
    product_factory("Dentro", category=category)
    product_factory("Fora")
    assert [p.name for p in services.list_active_products(category="ceramica")] == ["Dentro"]


def test_get_product_by_id_or_slug(product_factory):
    p = product_factory("Cuia", slug="cuia")
    assert services.get_product("cuia") == p
    assert services.get_product(str(p.pk)) == p
    with pytest.raises(NotFound):
        services.get_product("nao-existe")


def test_inactive_product_hidden_from_storefront(product_factory):
    p = product_factory(is_active=False)
    with pytest.raises(NotFound):
        services.get_product(p.slug, active_only=True)


def jpeg(name="a.jpg", size=10):
    return SimpleUploadedFile(name, b"\xff" * size, content_type="image/jpeg")


def test_images_fill_slots_in_order():
    images = services.read_images([jpeg(), jpeg("b.jpg", 20)])
    p = services.create_product({"name": "Com Fotos", "price": Decimal("1.00")}, images=images)

    assert p.image_positions() == [1, 2]
    data, mime = services.product_image(p.pk, 2)
    assert len(data) == 20 and mime == "image/jpeg"
    with pytest.raises(NotFound):
        services.product_image(p.pk, 3)


def test_image_validation(settings):
    with pytest.raises(ValidationError):
        services.read_images([jpeg() for _ in range(4)])
    with pytest.raises(ValidationError):
        services.read_images([SimpleUploadedFile("x.gif", b"GIF", content_type="image/gif")])
    settings.SHOP_MAX_IMAGE_BYTES = 5
    with pytest.raises(ValidationError):
        services.read_images([jpeg(size=6)])


# ---------------------------------------------------------------- http

def test_storefront_endpoints(api_client, category, product_factory):
    product_factory("Destaque", is_featured=True, category=category)
    product_factory("Mais Vendido", is_bestseller=True)

    home = api_client.get("/").json()
    assert [p["name"] for p in home["featured"]] == ["Destaque"]
    assert [p["name"] for p in home["bestsellers"]] == ["Mais Vendido"]
    assert api_client.get("/search/", {"q": "destaque"}).json()["products"][0]["name"] == "Destaque"
    assert len(api_client.get("/products/").json()) == 2
    assert api_client.get("/categories/").json()[0]["slug"] == "ceramica"


def test_product_detail_hides_cost_price(api_client, product_factory):
    p = product_factory(cost_price=Decimal("3.00"))
    body = api_client.get(f"/products/{p.slug}/").json()
    assert body["id"] == str(p.pk)
    assert "cost_price" not in body


def test_admin_routes_need_admin(api_client, customer_client):
    assert api_client.get("/admin/products/").status_code == 403
    assert customer_client.post("/admin/categories/", {"name": "X"}, format="json").status_code == 403


def test_admin_product_crud(admin_client, category):
    res = admin_client.post(
        "/admin/products/",
        {"name": "Cesto de Palha", "price": "30.00", "sku": "CP-1", "category": "ceramica", "images": [jpeg()]},
        format="multipart",
    )
    assert res.status_code == 201, res.json()
    product = res.json()["product"]
    assert product["slug"] == "cesto-de-palha"
    assert product["images"] == [f"/products/{product['id']}/image/"]

    res = admin_client.put(f"/admin/products/{product['id']}/", {"price": "35.00"}, format="json")
    assert res.json()["product"]["price"] == "35.00"

    dup = admin_client.post("/admin/products/", {"name": "Outro", "price": "1.00", "sku": "CP-1"}, format="json")
    assert dup.status_code == 409

    assert admin_client.delete(f"/admin/products/{product['id']}/").status_code == 200
    assert not Product.objects.exists()


def test_admin_category_delete_guard_over_http(admin_client, category, product_factory):
    product_factory(category=category)
    res = admin_client.post(f"/admin/categories/{category.pk}/?_method=DELETE")
    assert res.status_code == 409
    assert "1 produto" in res.json()["message"]
