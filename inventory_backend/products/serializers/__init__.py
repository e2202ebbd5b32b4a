# products/serializers/__init__.py

from .bundle import BundleCostRequestSerializer, BundleSerializer
from .product import ProductSerializer, ProductVariantSerializer

__all__ = [
    "ProductSerializer",
    "ProductVariantSerializer",
    "BundleSerializer",
    "BundleCostRequestSerializer",
]
