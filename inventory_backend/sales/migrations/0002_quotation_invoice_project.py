"""
PATH: sales/migrations/0002_quotation_invoice_project.py

MIGRATION: ADD Invoice.project, CREATE Quotation, QuotationItem

Purpose:
- Invoices may belong to a project.
- Quotations price lines without stock or ledger effects and convert into
  exactly one invoice.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    dependencies = [
        ("ledger", "0001_initial"),
        ("products", "0001_initial"),
        ("projects", "0001_initial"),
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.AddField(
            model_name="invoice",
            name="project",
            field=models.ForeignKey(
                blank=True,
                null=True,
                on_delete=django.db.models.deletion.SET_NULL,
                related_name="invoices",
                to="projects.project",
            ),
        ),
        migrations.CreateModel(
            name="Quotation",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quotation_number", models.CharField(blank=True, max_length=32, unique=True)),
                ("date", models.DateTimeField(default=django.utils.timezone.now)),
                ("valid_until", models.DateField(blank=True, null=True)),
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
                            ("sent", "Sent"),
                            ("accepted", "Accepted"),
                            ("rejected", "Rejected"),
                            ("converted", "Converted"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="draft",
                        max_length=16,
                    ),
                ),
                ("subtotal", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("discount_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("tax_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("total_amount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("converted_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="quotations",
                        to="ledger.customer",
                    ),
                ),
                (
                    "project",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="quotations",
                        to="projects.project",
                    ),
                ),
                (
                    "converted_invoice",
                    models.OneToOneField(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="source_quotation",
                        to="sales.invoice",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["customer", "date"], name="quotation_customer_date_idx"),
                    models.Index(fields=["status", "date"], name="quotation_status_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("discount_amount__gte", 0)),
                        name="chk_quotation_discount_gte_zero",
                    ),
                    models.CheckConstraint(condition=models.Q(("tax_amount__gte", 0)), name="chk_quotation_tax_gte_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="QuotationItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("description", models.CharField(max_length=255)),
                ("quantity", models.PositiveIntegerField()),
                ("rate", models.DecimalField(decimal_places=2, max_digits=12)),
                (
                    "line_total",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), editable=False, max_digits=14),
                ),
                (
                    "quotation",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="sales.quotation",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="quotation_items",
                        to="products.productvariant",
                    ),
                ),
                (
                    "bundle",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="quotation_items",
                        to="products.bundle",
                    ),
                ),
            ],
            options={
                "ordering": ["quotation", "id"],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="chk_quotation_item_qty_gt_zero"),
                    models.CheckConstraint(condition=models.Q(("rate__gte", 0)), name="chk_quotation_item_rate_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("variant__isnull", True), ("bundle__isnull", True), _connector="OR"),
                        name="chk_quotation_item_variant_xor_bundle",
                    ),
                ],
            },
        ),
    ]
