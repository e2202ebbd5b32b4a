# sales/models/invoice_item.py

"""
INVOICE LINES + FIFO AUDIT ROWS

InvoiceItem is one of:
- a variant line (stocked item, FIFO-costed)
- a bundle line (components FIFO-costed, plus bundle expenses)
- a manual line (no stock, no cost: original_rate stays NULL)

InvoiceItemAllocation records every lot consumption behind a line so
cancellation can put exactly those units back.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from products.models import Bundle, ProductVariant
from purchases.models import PurchaseLot

from .invoice import Invoice


class InvoiceItem(models.Model):
    KIND_VARIANT = "variant"
    KIND_BUNDLE = "bundle"
    KIND_MANUAL = "manual"

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="items",
    )

    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoice_items",
    )
    bundle = models.ForeignKey(
        Bundle,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="invoice_items",
    )

    # Lot that supplied the first unit; kept for traceability and profit backfill.
    purchase_lot = models.ForeignKey(
        PurchaseLot,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoice_items",
    )

    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()

    rate = models.DecimalField(max_digits=12, decimal_places=2)
    original_rate = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="FIFO unit cost at time of sale (weighted across lots).",
    )
    line_total = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        editable=False,
        default=Decimal("0.00"),
    )

    class Meta:
        ordering = ["invoice", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_invoice_item_qty_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(rate__gte=0),
                name="chk_invoice_item_rate_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(variant__isnull=True) | Q(bundle__isnull=True),
                name="chk_invoice_item_variant_xor_bundle",
            ),
        ]

    @property
    def kind(self) -> str:
        if self.variant_id:
            return self.KIND_VARIANT
        if self.bundle_id:
            return self.KIND_BUNDLE
        return self.KIND_MANUAL

    @property
    def is_stocked(self) -> bool:
        return self.kind != self.KIND_MANUAL

    def clean(self):
        if self.variant_id and self.bundle_id:
            raise ValidationError("An invoice line is either a variant or a bundle, not both")
        if not self.quantity or self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be greater than zero"})

    def save(self, *args, **kwargs):
        self.line_total = (Decimal(self.quantity or 0) * (self.rate or Decimal("0.00"))).quantize(
            Decimal("0.01")
        )
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.description} x{self.quantity} @ {self.rate}"


class InvoiceItemAllocation(models.Model):
    invoice_item = models.ForeignKey(
        InvoiceItem,
        on_delete=models.CASCADE,
        related_name="allocations",
    )
    lot = models.ForeignKey(
        PurchaseLot,
        on_delete=models.PROTECT,
        related_name="invoice_allocations",
    )
    # Component variant for bundle lines; the line's variant otherwise.
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        related_name="invoice_allocations",
    )

    quantity = models.PositiveIntegerField()
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)

    restored_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["invoice_item", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_allocation_qty_gt_zero",
            ),
        ]

    @property
    def total_cost(self) -> Decimal:
        return Decimal(self.quantity) * self.unit_cost

    def __str__(self):
        return f"lot={self.lot_id} qty={self.quantity} @ {self.unit_cost}"
