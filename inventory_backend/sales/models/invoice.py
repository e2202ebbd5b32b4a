# sales/models/invoice.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.sequences import generate_id
from ledger.models import Customer


class Invoice(models.Model):
    """
    Customer invoice.

    GUARANTEES:
    - invoice_number is INV-YY-NNN, generated once on create
    - Stock is deducted ONLY through the FIFO stock service (stock_deducted flag)
    - Amount fields are written by sales.services.invoice_service
    - A cancelled invoice is terminal and never carries payments
    """

    class Status(models.TextChoices):
        DRAFT = "draft", "Draft"
        ISSUED = "issued", "Issued"
        PARTIAL = "partial", "Partially Paid"
        PAID = "paid", "Paid"
        CANCELLED = "cancelled", "Cancelled"

    class BillingType(models.TextChoices):
        RETAIL = "retail", "Retail"
        WHOLESALE = "wholesale", "Wholesale"

    TERMINAL_STATUSES = (Status.CANCELLED,)
    PAYABLE_STATUSES = (Status.ISSUED, Status.PARTIAL)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    invoice_number = models.CharField(max_length=32, unique=True, blank=True)

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoices",
    )

    date = models.DateTimeField(default=timezone.now)
    due_date = models.DateField(null=True, blank=True)

    billing_type = models.CharField(
        max_length=16,
        choices=BillingType.choices,
        default=BillingType.RETAIL,
    )
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.ISSUED,
        db_index=True,
    )

    subtotal = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    discount_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    tax_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    paid_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    profit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Sum of (rate - original_rate) * quantity minus discount. NULL until known.",
    )
    custom = models.BooleanField(
        default=False,
        help_text="True when any line has no FIFO cost or was priced away from it.",
    )
    stock_deducted = models.BooleanField(default=False)

    notes = models.TextField(blank=True, default="")
    created_by = models.CharField(max_length=150, blank=True, default="")

    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancel_reason = models.CharField(max_length=255, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["customer", "date"], name="invoice_customer_date_idx"),
            models.Index(fields=["status", "date"], name="invoice_status_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(paid_amount__gte=0),
                name="chk_invoice_paid_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(discount_amount__gte=0),
                name="chk_invoice_discount_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(tax_amount__gte=0),
                name="chk_invoice_tax_gte_zero",
            ),
        ]

    @property
    def balance_amount(self) -> Decimal:
        return (self.total_amount or Decimal("0.00")) - (self.paid_amount or Decimal("0.00"))

    @property
    def is_cancelled(self) -> bool:
        return self.status == self.Status.CANCELLED

    def clean(self):
        if (self.paid_amount or 0) > (self.total_amount or 0):
            raise ValidationError({"paid_amount": "paid_amount cannot exceed total_amount"})
        if self.status == self.Status.CANCELLED and (self.paid_amount or 0) > 0:
            raise ValidationError("A cancelled invoice cannot carry payments")

    def save(self, *args, **kwargs):
        if self._state.adding and not self.invoice_number:
            self.invoice_number = generate_id("INV")

        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.invoice_number} | {self.total_amount} | {self.status}"
