# products/models/product.py

"""
PRODUCT + VARIANT

STOCK MODEL (IMPORTANT):
- Neither Product nor ProductVariant stores stock.
- Stock lives in purchases.PurchaseLot (one row per purchase / delivery).
- A stocked item is identified by (product, variant): see products.item_key.ItemKey.
"""

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models

from products.item_key import ItemKey


class Product(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255, db_index=True)
    description = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def clean(self):
        if not (self.sku or "").strip():
            raise ValidationError({"sku": "sku is required"})
        if not (self.name or "").strip():
            raise ValidationError({"name": "name is required"})

    def save(self, *args, **kwargs):
        self.sku = (self.sku or "").strip()
        self.name = (self.name or "").strip()
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.sku})"


class ProductVariant(models.Model):
    """
    A sellable variant of a product (size, colour, pack...).

    retail_price / wholesale_price are the current list prices; the cost basis
    of sold units always comes from FIFO purchase lots, never from here.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    product = models.ForeignKey(
        Product,
        on_delete=models.CASCADE,
        related_name="variants",
    )

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255)
    attributes = models.JSONField(default=dict, blank=True)

    retail_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    wholesale_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["product", "name"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(retail_price__gte=Decimal("0.00")),
                name="chk_variant_retail_price_gte_zero",
            ),
            models.CheckConstraint(
                condition=models.Q(wholesale_price__gte=Decimal("0.00")),
                name="chk_variant_wholesale_price_gte_zero",
            ),
        ]

    @property
    def item_key(self) -> ItemKey:
        return ItemKey.of(self.product_id, self.id)

    def __str__(self):
        return f"{self.product.name} / {self.name}"
