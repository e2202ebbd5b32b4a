# products/urls.py

"""
PRODUCTS URLS

Mounted under /api/products/:
    products/   variants/   bundles/   bundles/{id}/cost/
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from products.views import BundleViewSet, ProductVariantViewSet, ProductViewSet

router = DefaultRouter()

router.register(r"products", ProductViewSet, basename="products")
router.register(r"variants", ProductVariantViewSet, basename="variants")
router.register(r"bundles", BundleViewSet, basename="bundles")

urlpatterns = [
    path("", include(router.urls)),
]
