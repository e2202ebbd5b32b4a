# products/views/__init__.py

from .bundle import BundleViewSet
from .product import ProductVariantViewSet, ProductViewSet

__all__ = [
    "ProductViewSet",
    "ProductVariantViewSet",
    "BundleViewSet",
]
