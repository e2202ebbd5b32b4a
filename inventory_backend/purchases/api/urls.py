# purchases/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from purchases.api.views import PurchaseLotViewSet

router = DefaultRouter()
router.register(r"lots", PurchaseLotViewSet, basename="purchase-lots")

urlpatterns = [
    path("", include(router.urls)),
]
