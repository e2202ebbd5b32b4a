# projects/models/expense.py

import uuid

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

from core.sequences import generate_id
from sales.models import Invoice


class Expense(models.Model):
    """
    Money spent, optionally against a project.

    Rule:
    - An expense without a project is a general business expense
    - Once a live invoice bills it, it is immutable and cannot be deleted
    - Cancelling that invoice makes the expense billable again
    """

    class Category(models.TextChoices):
        MATERIALS = "materials", "Materials"
        LABOR = "labor", "Labor"
        EQUIPMENT = "equipment", "Equipment"
        TRANSPORT = "transport", "Transport"
        RENT = "rent", "Rent"
        UTILITIES = "utilities", "Utilities"
        FUEL = "fuel", "Fuel"
        MAINTENANCE = "maintenance", "Maintenance"
        MARKETING = "marketing", "Marketing"
        OFFICE_SUPPLIES = "office_supplies", "Office Supplies"
        PROFESSIONAL_SERVICES = "professional_services", "Professional Services"
        INSURANCE = "insurance", "Insurance"
        TAXES = "taxes", "Taxes"
        OTHER = "other", "Other"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    expense_number = models.CharField(max_length=32, unique=True, blank=True)

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        null=True,
        blank=True,
        related_name="expenses",
    )

    description = models.CharField(max_length=255)
    amount = models.DecimalField(max_digits=14, decimal_places=2)
    category = models.CharField(
        max_length=32,
        choices=Category.choices,
        default=Category.OTHER,
        db_index=True,
    )
    date = models.DateField(default=timezone.localdate)

    vendor = models.CharField(max_length=150, blank=True, default="")
    notes = models.TextField(blank=True, default="")
    added_by = models.CharField(max_length=150, blank=True, default="")

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="billed_expenses",
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-date", "-created_at"]
        indexes = [
            models.Index(fields=["project", "date"], name="expense_project_date_idx"),
            models.Index(fields=["category", "date"], name="expense_category_date_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(amount__gte=0),
                name="chk_expense_amount_gte_zero",
            ),
        ]

    BILLED = Q(invoice__isnull=False) & ~Q(invoice__status=Invoice.Status.CANCELLED)

    @property
    def is_billed(self) -> bool:
        return self.invoice_id is not None and self.invoice.status != Invoice.Status.CANCELLED

    def _billed_in_db(self) -> bool:
        return type(self).objects.filter(self.BILLED, pk=self.pk).exists()

    def save(self, *args, **kwargs):
        if self._state.adding:
            if not self.expense_number:
                self.expense_number = generate_id("EXP")
        elif self._billed_in_db():
            raise ValidationError("Billed expenses are immutable")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        if self.pk and self._billed_in_db():
            raise ValidationError("Billed expenses cannot be deleted")
        return super().delete(*args, **kwargs)

    def __str__(self):
        return f"{self.expense_number} | {self.amount} | {self.category}"
