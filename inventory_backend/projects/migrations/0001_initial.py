"""
PATH: projects/migrations/0001_initial.py

MIGRATION: CREATE Project, Expense, ProjectAuditLog

Purpose:
- Projects group the expenses of a customer job and carry its budget.
- Expenses point at the invoice that billed them; a billed expense is frozen.
- The audit log records every project, expense and billing event.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("ledger", "0001_initial"),
        ("sales", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Project",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("project_number", models.CharField(blank=True, max_length=32, unique=True)),
                ("title", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True, default="")),
                ("budget", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("planning", "Planning"),
                            ("active", "Active"),
                            ("on_hold", "On Hold"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                        ],
                        db_index=True,
                        default="planning",
                        max_length=16,
                    ),
                ),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                ("created_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "customer",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="projects",
                        to="ledger.customer",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["customer", "status"], name="project_customer_status_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("budget__gte", 0)), name="chk_project_budget_gte_zero"),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("start_date__isnull", True),
                            ("end_date__isnull", True),
                            ("end_date__gte", models.F("start_date")),
                            _connector="OR",
                        ),
                        name="chk_project_end_after_start",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Expense",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("expense_number", models.CharField(blank=True, max_length=32, unique=True)),
                ("description", models.CharField(max_length=255)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=14)),
                (
                    "category",
                    models.CharField(
                        choices=[
                            ("materials", "Materials"),
                            ("labor", "Labor"),
                            ("equipment", "Equipment"),
                            ("transport", "Transport"),
                            ("rent", "Rent"),
                            ("utilities", "Utilities"),
                            ("fuel", "Fuel"),
                            ("maintenance", "Maintenance"),
                            ("marketing", "Marketing"),
                            ("office_supplies", "Office Supplies"),
                            ("professional_services", "Professional Services"),
                            ("insurance", "Insurance"),
                            ("taxes", "Taxes"),
                            ("other", "Other"),
                        ],
                        db_index=True,
                        default="other",
                        max_length=32,
                    ),
                ),
                ("date", models.DateField(default=django.utils.timezone.localdate)),
                ("vendor", models.CharField(blank=True, default="", max_length=150)),
                ("notes", models.TextField(blank=True, default="")),
                ("added_by", models.CharField(blank=True, default="", max_length=150)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "project",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="expenses",
                        to="projects.project",
                    ),
                ),
                (
                    "invoice",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="billed_expenses",
                        to="sales.invoice",
                    ),
                ),
            ],
            options={
                "ordering": ["-date", "-created_at"],
                "indexes": [
                    models.Index(fields=["project", "date"], name="expense_project_date_idx"),
                    models.Index(fields=["category", "date"], name="expense_category_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(("amount__gte", 0)), name="chk_expense_amount_gte_zero"),
                ],
            },
        ),
        migrations.CreateModel(
            name="ProjectAuditLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                (
                    "action",
                    models.CharField(
                        choices=[
                            ("project_created", "Project Created"),
                            ("project_updated", "Project Updated"),
                            ("status_changed", "Status Changed"),
                            ("expense_added", "Expense Added"),
                            ("expense_updated", "Expense Updated"),
                            ("expense_deleted", "Expense Deleted"),
                            ("invoice_generated", "Invoice Generated"),
                            ("quotation_generated", "Quotation Generated"),
                        ],
                        db_index=True,
                        max_length=32,
                    ),
                ),
                ("actor", models.CharField(blank=True, default="", max_length=150)),
                ("description", models.CharField(max_length=255)),
                ("metadata", models.JSONField(blank=True, default=dict)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "project",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="audit_logs",
                        to="projects.project",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [
                    models.Index(fields=["project", "created_at"], name="project_audit_created_idx"),
                ],
            },
        ),
    ]
