# projects/models/audit_log.py

from django.db import models


class ProjectAuditLog(models.Model):
    """Append-only history of what happened to a project."""

    class Action(models.TextChoices):
        PROJECT_CREATED = "project_created", "Project Created"
        PROJECT_UPDATED = "project_updated", "Project Updated"
        STATUS_CHANGED = "status_changed", "Status Changed"
        EXPENSE_ADDED = "expense_added", "Expense Added"
        EXPENSE_UPDATED = "expense_updated", "Expense Updated"
        EXPENSE_DELETED = "expense_deleted", "Expense Deleted"
        INVOICE_GENERATED = "invoice_generated", "Invoice Generated"
        QUOTATION_GENERATED = "quotation_generated", "Quotation Generated"

    project = models.ForeignKey(
        "projects.Project",
        on_delete=models.CASCADE,
        related_name="audit_logs",
    )
    action = models.CharField(max_length=32, choices=Action.choices, db_index=True)
    actor = models.CharField(max_length=150, blank=True, default="")
    description = models.CharField(max_length=255)
    metadata = models.JSONField(default=dict, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["project", "created_at"], name="project_audit_created_idx"),
        ]

    def __str__(self):
        return f"{self.project_id} | {self.action} | {self.created_at}"
