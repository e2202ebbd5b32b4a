# purchases/models.py

"""
PURCHASE LOT (FIFO COST LAYER)

One PurchaseLot = one purchase of one (product, variant) at one unit cost.

Rules:
- remaining_quantity starts at quantity and only goes down through
  purchases.services.stock_service (conditional decrements), or back up when
  an invoice is cancelled (never above quantity).
- A lot with remaining_quantity == 0 is exhausted: excluded from allocation,
  kept for audit history.
- Lots referenced by invoice allocations are never deleted.
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from core.money import money
from core.sequences import generate_id
from products.item_key import ItemKey
from products.models import Product, ProductVariant


class PurchaseLot(models.Model):
    purchase_id = models.CharField(
        max_length=32,
        unique=True,
        null=True,
        blank=True,
        help_text="Human-readable id (PR-YY-NNN), generated on create.",
    )

    product = models.ForeignKey(
        Product,
        on_delete=models.PROTECT,
        related_name="purchase_lots",
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        related_name="purchase_lots",
    )

    supplier = models.CharField(max_length=200)
    location = models.CharField(max_length=128, blank=True, default="")

    quantity = models.PositiveIntegerField()
    remaining_quantity = models.PositiveIntegerField(blank=True)

    unit_cost = models.DecimalField(max_digits=12, decimal_places=2)
    retail_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    wholesale_price = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    shipping_cost = models.DecimalField(
        max_digits=12, decimal_places=2, default=Decimal("0.00")
    )
    # Derived: quantity * unit_cost
    total_cost = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )

    purchase_date = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["purchase_date", "id"]
        indexes = [
            models.Index(
                fields=["product", "variant", "purchase_date"],
                name="lot_item_fifo_idx",
            ),
            models.Index(fields=["supplier"], name="lot_supplier_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_lot_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__gte=0),
                name="chk_lot_remaining_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(remaining_quantity__lte=F("quantity")),
                name="chk_lot_remaining_lte_quantity",
            ),
            models.CheckConstraint(
                condition=Q(unit_cost__gte=Decimal("0.00")),
                name="chk_lot_unit_cost_gte_zero",
            ),
        ]

    # -------------------------------------------------
    # VALIDATION
    # -------------------------------------------------

    def clean(self):
        if not (self.supplier or "").strip():
            raise ValidationError({"supplier": "supplier is required"})

        if self.quantity is None or self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be at least 1"})

        if self.remaining_quantity is not None:
            if self.remaining_quantity < 0:
                raise ValidationError(
                    {"remaining_quantity": "remaining_quantity cannot be negative"}
                )
            if self.remaining_quantity > self.quantity:
                raise ValidationError(
                    {"remaining_quantity": "remaining_quantity cannot exceed quantity"}
                )

        for field in ("unit_cost", "retail_price", "wholesale_price", "shipping_cost"):
            value = getattr(self, field)
            if value is not None and value < Decimal("0.00"):
                raise ValidationError({field: f"{field} cannot be negative"})

        if self.variant_id and self.product_id:
            if self.variant.product_id != self.product_id:
                raise ValidationError({"variant": "variant does not belong to product"})

    # -------------------------------------------------
    # DERIVED STATE + CONSUMPTION GUARDS
    # -------------------------------------------------

    def save(self, *args, **kwargs):
        self.supplier = (self.supplier or "").strip()

        if self.variant_id and not self.product_id:
            self.product_id = self.variant.product_id

        if self._state.adding:
            if self.remaining_quantity is None:
                self.remaining_quantity = self.quantity
            if not self.purchase_id:
                self.purchase_id = generate_id("PR")
        else:
            original = PurchaseLot.objects.only(
                "quantity", "remaining_quantity", "unit_cost"
            ).get(pk=self.pk)
            consumed = original.quantity - original.remaining_quantity

            if self.quantity != original.quantity:
                # Editing the purchased quantity keeps the consumed units consumed.
                if self.quantity < consumed:
                    raise ValidationError(
                        {
                            "quantity": (
                                f"quantity cannot drop below already consumed units ({consumed})"
                            )
                        }
                    )

            # remaining_quantity is written only by the stock service.
            self.remaining_quantity = self.quantity - consumed

            if consumed > 0 and money(self.unit_cost) != money(original.unit_cost):
                raise ValidationError(
                    {"unit_cost": "unit_cost is immutable once the lot has been consumed"}
                )

        self.total_cost = money(Decimal(int(self.quantity or 0)) * money(self.unit_cost))

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        from sales.models import InvoiceItemAllocation

        if InvoiceItemAllocation.objects.filter(lot=self).exists():
            raise ValidationError(
                "Cannot delete PurchaseLot: it is referenced by invoice allocations."
            )
        return super().delete(*args, **kwargs)

    # -------------------------------------------------
    # READ-ONLY HELPERS
    # -------------------------------------------------

    @property
    def item_key(self) -> ItemKey:
        return ItemKey.of(self.product_id, self.variant_id)

    @property
    def is_exhausted(self) -> bool:
        return int(self.remaining_quantity or 0) == 0

    @property
    def remaining_value(self) -> Decimal:
        return money(Decimal(int(self.remaining_quantity or 0)) * money(self.unit_cost))

    def __str__(self):
        return f"{self.purchase_id or 'PR-?'} | {self.variant} | {self.remaining_quantity}/{self.quantity}"
