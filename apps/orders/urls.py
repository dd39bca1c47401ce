from django.urls import path

from . import views

urlpatterns = [
    path("", views.order_list, name="order-list"),
    path("checkout/", views.checkout, name="checkout"),
    path("track/<str:order_number>/", views.order_track, name="order-track"),
    path("<uuid:order_id>/", views.order_detail, name="order-detail"),
    path("<uuid:order_id>/payment/", views.order_payment, name="order-payment"),
    path("<uuid:order_id>/status/", views.order_status, name="order-status"),
]
