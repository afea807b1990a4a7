from django.urls import path
from .views import CheckoutPingView, OrderFulfillmentsView, OrderPaymentsView
app_name = "checkout"

urlpatterns = [
    path("ping/", CheckoutPingView.as_view(), name="ping"),
    path("orders/<str:code>/payments/", OrderPaymentsView.as_view(), name="order-payments"),
    path("orders/<str:code>/fulfillments/", OrderFulfillmentsView.as_view(), name="order-fulfillments"),
]
