# ledger/models/ledger_entry.py

"""
======================================================
PATH: ledger/models/ledger_entry.py
======================================================
CUSTOMER LEDGER ENTRY

One debit OR credit movement on a customer's account, carrying the running
balance after it.

Guarantees:
- Exactly one of debit / credit is positive (enforced in clean()).
- balance = previous entry's balance + debit - credit, where "previous" is
  ordered by (date, created_at, id) within the customer. First entry starts at 0.
- Append-only through the ORM: save() refuses updates, delete() is blocked.
  Reconciliation repairs balance / transaction_number with conditional
  queryset updates (ledger.services.reconciliation_service).

NOTE:
No DB check constraint for debit/credit exclusivity: imported legacy rows may
violate it, and reconciliation must be able to load and report them.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone

from .customer import Customer


class LedgerEntry(models.Model):
    class TransactionType(models.TextChoices):
        INVOICE = "invoice", "Invoice"
        PAYMENT = "payment", "Payment"
        ADJUSTMENT = "adjustment", "Adjustment"
        CREDIT_NOTE = "credit_note", "Credit Note"
        DEBIT_NOTE = "debit_note", "Debit Note"

    class PaymentMethod(models.TextChoices):
        CASH = "cash", "Cash"
        BANK_TRANSFER = "bank_transfer", "Bank Transfer"
        ONLINE = "online", "Online"
        CHEQUE = "cheque", "Cheque"
        UPI = "upi", "UPI"
        CARD = "card", "Card"

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )

    transaction_type = models.CharField(
        max_length=16,
        choices=TransactionType.choices,
    )
    # Source document id (invoice id for invoice + payment entries)
    transaction_id = models.CharField(max_length=64, blank=True, default="", db_index=True)
    transaction_number = models.CharField(max_length=64, unique=True)

    date = models.DateTimeField(default=timezone.now)
    description = models.CharField(max_length=255)

    debit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    credit = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Signed running balance after this entry",
    )

    payment_method = models.CharField(
        max_length=16,
        choices=PaymentMethod.choices,
        blank=True,
        default="",
    )
    reference = models.CharField(max_length=128, blank=True, default="")
    created_by = models.CharField(max_length=150, blank=True, default="")

    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Ledger Entry"
        verbose_name_plural = "Ledger Entries"
        ordering = ["customer", "date", "created_at", "id"]
        indexes = [
            models.Index(fields=["customer", "date", "created_at"], name="ledger_customer_timeline_idx"),
            models.Index(fields=["transaction_type", "transaction_id"], name="ledger_source_doc_idx"),
            models.Index(fields=["date", "transaction_type"], name="ledger_date_type_idx"),
        ]

    def __str__(self):
        return f"{self.transaction_number} {self.transaction_type} D{self.debit} C{self.credit} = {self.balance}"

    @property
    def amount(self) -> Decimal:
        return (self.debit or Decimal("0.00")) - (self.credit or Decimal("0.00"))

    def clean(self):
        debit = self.debit or Decimal("0.00")
        credit = self.credit or Decimal("0.00")

        if debit < 0 or credit < 0:
            raise ValidationError("debit and credit cannot be negative")
        if debit > 0 and credit > 0:
            raise ValidationError("Entry cannot have both debit and credit")
        if debit == 0 and credit == 0:
            raise ValidationError("Entry must have either debit or credit")

        if not (self.transaction_number or "").strip():
            raise ValidationError({"transaction_number": "transaction_number is required"})

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError(
                "LedgerEntry records are append-only; use reconciliation to repair balances"
            )

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("LedgerEntry records cannot be deleted")
