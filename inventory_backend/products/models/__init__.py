"""
PATH: products/models/__init__.py

Products models export surface.
"""

from .bundle import Bundle, BundleComponent, BundleExpense
from .product import Product, ProductVariant

__all__ = [
    "Product",
    "ProductVariant",
    "Bundle",
    "BundleComponent",
    "BundleExpense",
]
