# projects/api/serializers.py

"""
PROJECT SERIALIZERS

Projects and expenses are edited through projects.services.project_service;
command serializers only validate shape.
"""

from decimal import Decimal

from rest_framework import serializers

from ledger.models import Customer
from projects.models import Expense, Project, ProjectAuditLog
from sales.api.serializers import InvoiceLineInputSerializer


# ============================================================
# READ
# ============================================================

class ExpenseSerializer(serializers.ModelSerializer):
    is_billed = serializers.BooleanField(read_only=True)
    invoice_number = serializers.CharField(source="invoice.invoice_number", read_only=True, default=None)
    project_number = serializers.CharField(source="project.project_number", read_only=True, default=None)

    class Meta:
        model = Expense
        fields = [
            "id",
            "expense_number",
            "project",
            "project_number",
            "description",
            "amount",
            "category",
            "date",
            "vendor",
            "notes",
            "added_by",
            "invoice",
            "invoice_number",
            "is_billed",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProjectSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True, default=None)

    class Meta:
        model = Project
        fields = [
            "id",
            "project_number",
            "title",
            "description",
            "customer",
            "customer_name",
            "budget",
            "status",
            "start_date",
            "end_date",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ProjectAuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProjectAuditLog
        fields = ["id", "action", "actor", "description", "metadata", "created_at"]
        read_only_fields = fields


# ============================================================
# COMMANDS
# ============================================================

class ProjectWriteSerializer(serializers.Serializer):
    title = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True)
    customer = serializers.PrimaryKeyRelatedField(
        queryset=Customer.objects.all(), required=False, allow_null=True
    )
    budget = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.00"), required=False)
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)

    def validate(self, attrs):
        start, end = attrs.get("start_date"), attrs.get("end_date")
        if start and end and end < start:
            raise serializers.ValidationError("end_date cannot be before start_date.")
        return attrs


class ProjectCreateSerializer(ProjectWriteSerializer):
    status = serializers.ChoiceField(
        choices=[c for c in Project.Status.choices if c[0] != Project.Status.CANCELLED],
        default=Project.Status.PLANNING,
    )


class ProjectStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Project.Status.choices)


class ExpenseWriteSerializer(serializers.Serializer):
    description = serializers.CharField(max_length=255)
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.00"))
    category = serializers.ChoiceField(choices=Expense.Category.choices, default=Expense.Category.OTHER)
    date = serializers.DateField(required=False)
    vendor = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class ExpenseCreateSerializer(ExpenseWriteSerializer):
    project = serializers.PrimaryKeyRelatedField(
        queryset=Project.objects.all(), required=False, allow_null=True
    )


class GenerateInvoiceSerializer(serializers.Serializer):
    markup_percentage = serializers.DecimalField(
        max_digits=7, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    expense_ids = serializers.ListField(child=serializers.UUIDField(), required=False, allow_null=True)
    items = InvoiceLineInputSerializer(many=True, required=False, default=list)
    discount_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    tax_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    due_date = serializers.DateField(required=False, allow_null=True)
    valid_until = serializers.DateField(required=False, allow_null=True)
    draft = serializers.BooleanField(default=False)
    as_quotation = serializers.BooleanField(default=False)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
