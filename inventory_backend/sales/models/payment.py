# sales/models/payment.py

from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q
from django.utils import timezone

from ledger.models import LedgerEntry

from .invoice import Invoice


class Payment(models.Model):
    """
    A payment received against an invoice.

    Every Payment has exactly one ledger credit entry; transaction_number
    mirrors that entry's number at the time of posting.
    """

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    ledger_entry = models.OneToOneField(
        LedgerEntry,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="payment",
    )

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    method = models.CharField(
        max_length=16,
        choices=LedgerEntry.PaymentMethod.choices,
        default=LedgerEntry.PaymentMethod.CASH,
    )
    date = models.DateTimeField(default=timezone.now)
    reference = models.CharField(max_length=128, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    transaction_number = models.CharField(max_length=64, blank=True, default="")

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["invoice", "date", "id"]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="chk_payment_amount_gt_zero",
            ),
        ]

    def __str__(self):
        return f"{self.transaction_number or self.pk} {self.amount} ({self.method})"
