"""
PATH: purchases/migrations/0001_initial.py

MIGRATION: CREATE PurchaseLot (FIFO cost layers)

Guards at the DB level:
- 0 <= remaining_quantity <= quantity
- quantity > 0, unit_cost >= 0
"""

from __future__ import annotations

from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("products", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PurchaseLot",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "purchase_id",
                    models.CharField(
                        blank=True,
                        help_text="Human-readable id (PR-YY-NNN), generated on create.",
                        max_length=32,
                        null=True,
                        unique=True,
                    ),
                ),
                ("supplier", models.CharField(max_length=200)),
                ("location", models.CharField(blank=True, default="", max_length=128)),
                ("quantity", models.PositiveIntegerField()),
                ("remaining_quantity", models.PositiveIntegerField(blank=True)),
                ("unit_cost", models.DecimalField(decimal_places=2, max_digits=12)),
                ("retail_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("wholesale_price", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("shipping_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("purchase_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_lots",
                        to="products.product",
                    ),
                ),
                (
                    "variant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_lots",
                        to="products.productvariant",
                    ),
                ),
            ],
            options={
                "ordering": ["purchase_date", "id"],
                "indexes": [
                    models.Index(fields=["product", "variant", "purchase_date"], name="lot_item_fifo_idx"),
                    models.Index(fields=["supplier"], name="lot_supplier_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("quantity__gt", 0)), name="chk_lot_quantity_gt_zero"),
                    models.CheckConstraint(
                        condition=models.Q(("remaining_quantity__gte", 0)),
                        name="chk_lot_remaining_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("remaining_quantity__lte", models.F("quantity"))),
                        name="chk_lot_remaining_lte_quantity",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(("unit_cost__gte", Decimal("0.00"))),
                        name="chk_lot_unit_cost_gte_zero",
                    ),
                ],
            },
        ),
    ]
