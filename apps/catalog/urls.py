from django.urls import path

from . import views

urlpatterns = [
    path("", views.product_list, name="product-list"),
    path("<uuid:product_id>/image/", views.product_image, name="product-image"),
    path("<uuid:product_id>/image/2/", views.product_image, {"position": 2}, name="product-image-2"),
    path("<uuid:product_id>/image/3/", views.product_image, {"position": 3}, name="product-image-3"),
    path("<str:id_or_slug>/", views.product_detail, name="product-detail"),
]
