"""
PATH: sales/migrations/0001_initial.py

MIGRATION: CREATE Invoice, InvoiceItem, InvoiceItemAllocation, Payment

Purpose:
- Invoices consume stock FIFO; every lot consumption is kept as an
  InvoiceItemAllocation so cancellation can restore exactly those units.
- Payments are linked 1:1 to their ledger credit entry.
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

    dependencies = [
        ("ledger", "0001_initial"),
        ("products", "0001_initial"),
        ("purchases", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("invoice_number", models.CharField(blank=True, max_length=32, unique=True)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("due_date", models.DateField(blank=True, null=True)),
                (
                    "billing_type",
                    models.CharField(
                        choices=[("retail", "Retail"), ("wholesale", "Wholesale")],
                        default="retail",
                        max_length=16,
                    ),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("draft", "Draft"),
                            ("issued", "Issued"),
                            ("partial", "Partially Paid"),
                            ("paid", "Paid"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="issued",
                        max_length=16,
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("paid_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                (
                    "profit",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="Sum of (rate - original_rate) * quantity minus discount. NULL until known.",
                        max_digits=14,
                        null=True,
                    ),
                ),
                (
                    "custom",
                    models.BooleanField(
                        default=False,
                        help_text="True when any line has no FIFO cost or was priced away from it.",
                    ),
                ),
                ("stock_deducted", models.BooleanField(default=False)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_by", models.CharField(blank=True, default="", max_length=150)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancel_reason", models.CharField(blank=True, default="", max_length=255)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoices",
                        to="ledger.customer",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["customer", "date"], name="invoice_customer_date_idx"),
                    models.Index(fields=["status", "date"], name="invoice_status_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("paid_amount__gte", 0)), name="chk_invoice_paid_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("discount_amount__gte", 0)),
                        name="chk_invoice_discount_gte_zero",
                    ),
                    models.CheckConstraint(condition=models.Q(("tax_amount__gte", 0)), name="chk_invoice_tax_gte_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField()),
                ("rate", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "original_rate",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        help_text="FIFO unit cost at time of sale (weighted across lots).",
                        max_digits=12,
                        null=True,
                    ),
                ),
                (
                    "line_total",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.invoice",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice_items",
                        to="products.productvariant",
                    ),
                ),
                (
                    "bundle",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice_items",
                        to="products.bundle",
                    ),
                ),
                (
                    "purchase_lot",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="invoice_items",
                        to="purchases.purchaselot",
                    ),
                ),
            ],
            options={
                "ordering": ["invoice", "id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="chk_invoice_item_qty_gt_zero"),
                    models.CheckConstraint(condition=models.Q(("rate__gte", 0)), name="chk_invoice_item_rate_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("variant__isnull", True), ("bundle__isnull", True), _connector="OR"),
                        name="chk_invoice_item_variant_xor_bundle",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItemAllocation",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("unit_cost", models.DecimalField(decimal_places=2, max_digits=12)),
                ("restored_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "invoice_item",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="allocations",
                        to="sales.invoiceitem",
                    ),
                ),
                (
                    "lot",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice_allocations",
                        to="purchases.purchaselot",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="invoice_allocations",
                        to="products.productvariant",
                    ),
                ),
            ],
            options={
                "ordering": ["invoice_item", "id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="chk_allocation_qty_gt_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "amount",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=14,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                (
                    "method",
                    models.CharField(
                        choices=[
                            ("cash", "Cash"),
                            ("bank_transfer", "Bank Transfer"),
                            ("online", "Online"),
                            ("cheque", "Cheque"),
                            ("upi", "UPI"),
                            ("card", "Card"),
                        ],
                        default="cash",
                        max_length=16,
                    ),
                ),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("reference", models.CharField(blank=True, default="", max_length=128)),
                ("notes", models.TextField(blank=True, default="")),
                ("transaction_number", models.CharField(blank=True, default="", max_length=64)),
                ("created_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "invoice",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payments",
                        to="sales.invoice",
                    ),
                ),
                (
                    "ledger_entry",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="payment",
                        to="ledger.ledgerentry",
                    ),
                ),
            ],
            options={
                "ordering": ["invoice", "date", "id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gt", 0)), name="chk_payment_amount_gt_zero"),
                ],
            },
        ),
    ]
