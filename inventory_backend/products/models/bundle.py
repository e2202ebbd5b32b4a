# products/models/bundle.py

"""
BUNDLES (VIRTUAL PRODUCTS)

A Bundle has no stock of its own. Selling one unit of a bundle consumes
`component.quantity` units of every component variant, each costed FIFO
from purchase lots, plus the bundle's custom expenses (labour, packaging...).
"""

import uuid
from decimal import Decimal

from django.db import models

from .product import ProductVariant


class Bundle(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    sku = models.CharField(max_length=128, unique=True, db_index=True)
    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    base_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.name} ({self.sku})"


class BundleComponent(models.Model):
    bundle = models.ForeignKey(
        Bundle,
        on_delete=models.CASCADE,
        related_name="components",
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        related_name="bundle_components",
    )
    quantity = models.PositiveIntegerField(default=1)

    class Meta:
        ordering = ["bundle", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["bundle", "variant"],
                name="unique_component_per_bundle",
            ),
            models.CheckConstraint(
                condition=models.Q(quantity__gt=0),
                name="chk_bundle_component_qty_gt_zero",
            ),
        ]

    def __str__(self):
        return f"{self.quantity} x {self.variant}"


class BundleExpense(models.Model):
    bundle = models.ForeignKey(
        Bundle,
        on_delete=models.CASCADE,
        related_name="expenses",
    )
    name = models.CharField(max_length=128)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    category = models.CharField(max_length=64, blank=True, default="")
    description = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["bundle", "id"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(amount__gte=Decimal("0.00")),
                name="chk_bundle_expense_amount_gte_zero",
            ),
        ]

    def __str__(self):
        return f"{self.name}: {self.amount}"
