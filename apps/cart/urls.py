from django.urls import path

from . import views

urlpatterns = [
    path("", views.cart_detail, name="cart"),
    path("add/<uuid:product_id>/", views.cart_add, name="cart-add"),
    path("update/<uuid:product_id>/", views.cart_update, name="cart-update"),
    path("remove/<uuid:product_id>/", views.cart_remove, name="cart-remove"),
    path("clear/", views.cart_clear, name="cart-clear"),
]
