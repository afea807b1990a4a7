from django.urls import include, path

urlpatterns = [
    path("api/checkout/", include("apps.checkout.urls")),
    path("api/", include("apps.monitoring.urls")),
]
