# ledger/models/customer.py

"""
CUSTOMER

The cached financial fields (total_invoiced, total_paid, outstanding_balance,
last_*_date) are DERIVED from LedgerEntry rows and only written by
ledger.services.summary_service.refresh_customer_financials().
"""

import uuid
from decimal import Decimal

from django.db import models

from core.sequences import generate_id


class Customer(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    customer_code = models.CharField(max_length=32, unique=True, blank=True)

    name = models.CharField(max_length=255, db_index=True)
    company = models.CharField(max_length=255, blank=True, default="")
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=50, blank=True, default="")
    address = models.TextField(blank=True, default="")

    total_invoiced = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    total_paid = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    outstanding_balance = models.DecimalField(
        max_digits=14, decimal_places=2, default=Decimal("0.00")
    )
    last_invoice_date = models.DateTimeField(null=True, blank=True)
    last_payment_date = models.DateTimeField(null=True, blank=True)

    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        indexes = [
            models.Index(fields=["email"], name="customer_email_idx"),
            models.Index(fields=["company"], name="customer_company_idx"),
        ]

    def save(self, *args, **kwargs):
        self.name = (self.name or "").strip()
        if self._state.adding and not self.customer_code:
            self.customer_code = generate_id("CU")
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.name} ({self.customer_code})"
