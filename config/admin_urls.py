from django.urls import path

from apps.catalog import views as catalog_views
from apps.orders import views as order_views
from apps.users import views as user_views

urlpatterns = [
    path("", order_views.admin_dashboard, name="admin-dashboard"),
    path("products/", catalog_views.admin_products, name="admin-products"),
    path("products/<uuid:product_id>/", catalog_views.admin_product_detail, name="admin-product-detail"),
    path("categories/", catalog_views.admin_categories, name="admin-categories"),
    path("categories/<uuid:category_id>/", catalog_views.admin_category_detail, name="admin-category-detail"),
    path("categories/<uuid:category_id>/toggle-status/", catalog_views.admin_category_toggle, name="admin-category-toggle"),
    path("orders/", order_views.admin_orders, name="admin-orders"),
    path("orders/<uuid:order_id>/", order_views.admin_order_detail, name="admin-order-detail"),
    path("orders/<uuid:order_id>/status/", order_views.order_status, name="admin-order-status"),
    path("users/", user_views.admin_users, name="admin-users"),
    path("users/<uuid:user_id>/", user_views.admin_user_detail, name="admin-user-detail"),
    path("users/<uuid:user_id>/toggle-status/", user_views.admin_user_toggle, name="admin-user-toggle"),
]
