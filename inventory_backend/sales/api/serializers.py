# sales/api/serializers.py

"""
INVOICE AND QUOTATION SERIALIZERS

Read serializers expose stored rows; command serializers validate input for
sales.services.invoice_service. Totals, costs and profit are always computed
server-side.
"""

from decimal import Decimal

from rest_framework import serializers

from ledger.models import Customer, LedgerEntry
from products.models import Bundle, ProductVariant
from projects.models import Project
from sales.models import Invoice, InvoiceItem, InvoiceItemAllocation, Payment, Quotation, QuotationItem


# ============================================================
# READ
# ============================================================

class InvoiceItemAllocationSerializer(serializers.ModelSerializer):
    purchase_id = serializers.CharField(source="lot.purchase_id", read_only=True)

    class Meta:
        model = InvoiceItemAllocation
        fields = ["lot", "purchase_id", "variant", "quantity", "unit_cost", "restored_at"]
        read_only_fields = fields


class InvoiceItemSerializer(serializers.ModelSerializer):
    kind = serializers.CharField(read_only=True)
    allocations = InvoiceItemAllocationSerializer(many=True, read_only=True)

    class Meta:
        model = InvoiceItem
        fields = [
            "id",
            "kind",
            "variant",
            "bundle",
            "purchase_lot",
            "description",
            "quantity",
            "rate",
            "original_rate",
            "line_total",
            "allocations",
        ]
        read_only_fields = fields


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            "id",
            "invoice",
            "transaction_number",
            "amount",
            "method",
            "date",
            "reference",
            "notes",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    balance_amount = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)
    items = InvoiceItemSerializer(many=True, read_only=True)
    payments = PaymentSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = [
            "id",
            "invoice_number",
            "customer",
            "customer_name",
            "project",
            "date",
            "due_date",
            "billing_type",
            "status",
            "subtotal",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "paid_amount",
            "balance_amount",
            "profit",
            "custom",
            "stock_deducted",
            "notes",
            "created_by",
            "cancelled_at",
            "cancel_reason",
            "items",
            "payments",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


# ============================================================
# COMMANDS
# ============================================================

class InvoiceLineInputSerializer(serializers.Serializer):
    variant = serializers.PrimaryKeyRelatedField(
        queryset=ProductVariant.objects.select_related("product"), required=False, allow_null=True
    )
    bundle = serializers.PrimaryKeyRelatedField(
        queryset=Bundle.objects.all(), required=False, allow_null=True
    )
    description = serializers.CharField(required=False, allow_blank=True, default="")
    quantity = serializers.IntegerField(min_value=1)
    rate = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal("0.00"))

    def validate(self, attrs):
        if attrs.get("variant") and attrs.get("bundle"):
            raise serializers.ValidationError("Choose a variant or a bundle, not both.")
        if not attrs.get("variant") and not attrs.get("bundle") and not attrs.get("description"):
            raise serializers.ValidationError("Manual lines need a description.")
        return attrs


class InvoiceCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    items = InvoiceLineInputSerializer(many=True)
    discount_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    tax_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    date = serializers.DateTimeField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    billing_type = serializers.ChoiceField(
        choices=Invoice.BillingType.choices, default=Invoice.BillingType.RETAIL
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    draft = serializers.BooleanField(default=False)
    project = serializers.PrimaryKeyRelatedField(
        queryset=Project.objects.all(), required=False, allow_null=True
    )

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Invoice must have at least one line.")
        return value


class PaymentCreateSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=Decimal("0.01"))
    method = serializers.ChoiceField(
        choices=LedgerEntry.PaymentMethod.choices, default=LedgerEntry.PaymentMethod.CASH
    )
    date = serializers.DateTimeField(required=False)
    reference = serializers.CharField(required=False, allow_blank=True, default="")
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class InvoiceCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default="")


# ============================================================
# QUOTATIONS
# ============================================================

class QuotationItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = QuotationItem
        fields = ["id", "variant", "bundle", "description", "quantity", "rate", "line_total"]
        read_only_fields = fields


class QuotationSerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)
    converted_invoice_number = serializers.CharField(
        source="converted_invoice.invoice_number", read_only=True, default=None
    )
    items = QuotationItemSerializer(many=True, read_only=True)

    class Meta:
        model = Quotation
        fields = [
            "id",
            "quotation_number",
            "customer",
            "customer_name",
            "project",
            "date",
            "valid_until",
            "billing_type",
            "status",
            "subtotal",
            "discount_amount",
            "tax_amount",
            "total_amount",
            "converted_invoice",
            "converted_invoice_number",
            "converted_at",
            "notes",
            "created_by",
            "items",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class QuotationCreateSerializer(serializers.Serializer):
    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    project = serializers.PrimaryKeyRelatedField(
        queryset=Project.objects.all(), required=False, allow_null=True
    )
    items = InvoiceLineInputSerializer(many=True)
    discount_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    tax_amount = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    date = serializers.DateTimeField(required=False)
    valid_until = serializers.DateField(required=False, allow_null=True)
    billing_type = serializers.ChoiceField(
        choices=Invoice.BillingType.choices, default=Invoice.BillingType.RETAIL
    )
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("Quotation must have at least one line.")
        return value


class QuotationStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Quotation.Status.choices)


class QuotationConvertSerializer(serializers.Serializer):
    date = serializers.DateTimeField(required=False)
    due_date = serializers.DateField(required=False, allow_null=True)
    draft = serializers.BooleanField(default=False)
