# sales/models/quotation.py

"""
QUOTATIONS

A quotation prices lines for a customer without touching stock or the
ledger. Converting it creates a real invoice through
sales.services.invoice_service, which is where FIFO costing, stock
deduction and the ledger debit happen.
"""

import uuid
from datetime import date as date_cls
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.sequences import generate_id
from ledger.models import Customer
from products.models import Bundle, ProductVariant

from .invoice import Invoice


class Quotation(models.Model):
    """
    GUARANTEES:
    - quotation_number is QT-YY-NNN, generated once on create
    - A converted quotation points at exactly one invoice and is terminal
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        SENT = "sent", "Sent"
        ACCEPTED = "accepted", "Accepted"
        REJECTED = "rejected", "Rejected"
        CONVERTED = "converted", "Converted"
        CANCELLED = "cancelled", "Cancelled"

    TERMINAL_STATUSES = (Status.CONVERTED, Status.CANCELLED)
    CONVERTIBLE_STATUSES = (Status.DRAFT, Status.SENT, Status.ACCEPTED)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    quotation_number = models.CharField(max_length=32, unique=True, blank=True)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="quotations",
    )
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="quotations",
    )

    date = models.DateTimeField(default=timezone.now)
    valid_until = models.DateField(null=True, blank=True)

    billing_type = models.CharField(
        max_length=16,
        choices=Invoice.BillingType.choices,
        default=Invoice.BillingType.RETAIL,
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.DRAFT,
        db_index=True,
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    converted_invoice = models.OneToOneField(
        Invoice,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="source_quotation",
    )
    converted_at = models.DateTimeField(null=True, blank=True)

    notes = models.TextField(blank=True, default="")
    created_by = models.CharField(max_length=150, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["customer", "date"], name="quotation_customer_date_idx"),
            models.Index(fields=["status", "date"], name="quotation_status_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(discount_amount__gte=0),
                name="chk_quotation_discount_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(tax_amount__gte=0),
                name="chk_quotation_tax_gte_zero",
            ),
        ]

    def is_expired(self, today: date_cls | None = None) -> bool:
        if not self.valid_until:
            return False
        return self.valid_until < (today or timezone.localdate())

    def clean(self):
        if self.status == self.Status.CONVERTED and not self.converted_invoice_id:
            raise ValidationError("A converted quotation must reference its invoice")

    def save(self, *args, **kwargs):
        if self._state.adding and not self.quotation_number:
            self.quotation_number = generate_id("QT")

        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.quotation_number} | {self.total_amount} | {self.status}"


class QuotationItem(models.Model):
    quotation = models.ForeignKey(
        Quotation,
        on_delete=models.CASCADE,
        related_name="items",
    )
    variant = models.ForeignKey(
        ProductVariant,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="quotation_items",
    )
    bundle = models.ForeignKey(
        Bundle,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="quotation_items",
    )

    description = models.CharField(max_length=255)
    quantity = models.PositiveIntegerField()
    rate = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        editable=False,
        default=Decimal("0.00"),
    )

    class Meta:
        ordering = ["quotation", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_quotation_item_qty_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(rate__gte=0),
                name="chk_quotation_item_rate_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(variant__isnull=True) | Q(bundle__isnull=True),
                name="chk_quotation_item_variant_xor_bundle",
            ),
        ]

    def save(self, *args, **kwargs):
        self.line_total = (Decimal(self.quantity or 0) * (self.rate or Decimal("0.00"))).quantize(
            Decimal("0.01")
        )
        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.description} x{self.quantity} @ {self.rate}"
