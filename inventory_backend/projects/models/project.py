# projects/models/project.py

import uuid
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import F, Q

from core.sequences import generate_id
from ledger.models import Customer


class Project(models.Model):
    """
    A customer job that collects expenses and is billed through invoices.

    GUARANTEES:
    - project_number is PRJ-YY-NNN, generated once on create
    - budget is never negative
    - A cancelled project is terminal
    """

    class Status(models.TextChoices):
        PLANNING = "planning", "Planning"
        ACTIVE = "active", "Active"
        ON_HOLD = "on_hold", "On Hold"
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    TERMINAL_STATUSES = (Status.CANCELLED,)

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    project_number = models.CharField(max_length=32, unique=True, blank=True)

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")

    customer = models.ForeignKey(
        Customer,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="projects",
    )

    budget = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    status = models.CharField(
        max_length=16,
        choices=Status.choices,
        default=Status.PLANNING,
        db_index=True,
    )

    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["customer", "status"], name="project_customer_status_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(budget__gte=0),
                name="chk_project_budget_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(start_date__isnull=True)
                | Q(end_date__isnull=True)
                | Q(end_date__gte=F("start_date")),
                name="chk_project_end_after_start",
            ),
        ]

    def clean(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError("end_date cannot be before start_date")

    def save(self, *args, **kwargs):
        if self._state.adding and not self.project_number:
            self.project_number = generate_id("PRJ")

        self.full_clean()
        return super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.project_number} | {self.title} | {self.status}"
