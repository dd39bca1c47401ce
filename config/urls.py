from django.urls import include, path

from apps.catalog import views as catalog_views
from apps.orders import views as order_views

urlpatterns = [
    path("", catalog_views.home, name="home"),
    path("search/", catalog_views.search, name="search"),
    path("products/", include("apps.catalog.urls")),
    path("categories/", catalog_views.category_list, name="category-list"),
    path("cart/", include("apps.cart.urls")),
    path("orders/", include("apps.orders.urls")),
    path("webhooks/mercadopago/", order_views.mercadopago_webhook, name="mercadopago-webhook"),
    path("auth/", include("apps.users.urls")),
    path("admin/", include("config.admin_urls")),
]
