"""
PATH: ledger/migrations/0001_initial.py

MIGRATION: CREATE Customer, LedgerEntry

Note:
- No DB check constraint on debit/credit exclusivity: imported legacy rows
  must load so reconciliation can report them.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.core.validators
import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = []

    operations = [
        migrations.CreateModel(
            name="Customer",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("customer_code", models.CharField(blank=True, max_length=32, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("company", models.CharField(blank=True, default="", max_length=255)),
                ("email", models.EmailField(blank=True, default="", max_length=254)),
                ("phone", models.CharField(blank=True, default="", max_length=50)),
                ("address", models.TextField(blank=True, default="")),
                ("total_invoiced", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("total_paid", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("outstanding_balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("last_invoice_date", models.DateTimeField(blank=True, null=True)),
                ("last_payment_date", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
            ],
            options={
                "ordering": ["name"],
                "indexes": [
                    models.Index(fields=["email"], name="customer_email_idx"),
                    models.Index(fields=["company"], name="customer_company_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "transaction_type",
                    models.CharField(
                        choices=[
                            ("invoice", "Invoice"),
                            ("payment", "Payment"),
                            ("adjustment", "Adjustment"),
                            ("credit_note", "Credit Note"),
                            ("debit_note", "Debit Note"),
                        ],
                        max_length=16,
                    ),
                ),
                ("transaction_id", models.CharField(blank=True, db_index=True, default="", max_length=64)),
                ("transaction_number", models.CharField(max_length=64, unique=True)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("description", models.CharField(max_length=255)),
                (
                    "debit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "credit",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "balance",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Signed running balance after this entry",
                        max_digits=14,
                    ),
                ),
                (
                    "payment_method",
                    models.CharField(
                        blank=True,
                        choices=[
                            ("cash", "Cash"),
                            ("bank_transfer", "Bank Transfer"),
                            ("online", "Online"),
                            ("cheque", "Cheque"),
                            ("upi", "UPI"),
                            ("card", "Card"),
                        ],
                        default="",
                        max_length=16,
                    ),
                ),
                ("reference", models.CharField(blank=True, default="", max_length=128)),
                ("created_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="ledger_entries",
                        to="ledger.customer",
                    ),
                ),
            ],
            options={
                "verbose_name": "Ledger Entry",
                "verbose_name_plural": "Ledger Entries",
                "ordering": ["customer", "date", "created_at", "id"],
                "indexes": [
                    models.Index(fields=["customer", "date", "created_at"], name="ledger_customer_timeline_idx"),
                    models.Index(fields=["transaction_type", "transaction_id"], name="ledger_source_doc_idx"),
                    models.Index(fields=["date", "transaction_type"], name="ledger_date_type_idx"),
                ],
            },
        ),
    ]
