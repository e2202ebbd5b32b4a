# ledger/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from ledger.models import Customer, LedgerEntry


class CustomerSerializer(serializers.ModelSerializer):
    class Meta:
        model = Customer
        fields = [
            "id",
            "customer_code",
            "name",
            "company",
            "email",
            "phone",
            "address",
            "total_invoiced",
            "total_paid",
            "outstanding_balance",
            "last_invoice_date",
            "last_payment_date",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "customer_code",
            "total_invoiced",
            "total_paid",
            "outstanding_balance",
            "last_invoice_date",
            "last_payment_date",
            "created_at",
            "updated_at",
        ]


class LedgerEntrySerializer(serializers.ModelSerializer):
    customer_name = serializers.CharField(source="customer.name", read_only=True)

    class Meta:
        model = LedgerEntry
        fields = [
            "id",
            "customer",
            "customer_name",
            "transaction_type",
            "transaction_id",
            "transaction_number",
            "date",
            "description",
            "debit",
            "credit",
            "balance",
            "payment_method",
            "reference",
            "created_by",
            "created_at",
        ]
        read_only_fields = fields


class ManualEntrySerializer(serializers.Serializer):
    """Adjustments and credit / debit notes; invoices and payments post through sales."""

    MANUAL_TYPES = (
        LedgerEntry.TransactionType.ADJUSTMENT,
        LedgerEntry.TransactionType.CREDIT_NOTE,
        LedgerEntry.TransactionType.DEBIT_NOTE,
    )

    customer = serializers.PrimaryKeyRelatedField(queryset=Customer.objects.all())
    transaction_type = serializers.ChoiceField(choices=[(t.value, t.label) for t in MANUAL_TYPES])
    description = serializers.CharField(max_length=255)
    debit = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    credit = serializers.DecimalField(
        max_digits=14, decimal_places=2, min_value=Decimal("0.00"), default=Decimal("0.00")
    )
    date = serializers.DateTimeField(required=False)
    reference = serializers.CharField(required=False, allow_blank=True, default="")

    def validate(self, attrs):
        debit = attrs.get("debit") or Decimal("0.00")
        credit = attrs.get("credit") or Decimal("0.00")
        if (debit > 0) == (credit > 0):
            raise serializers.ValidationError("Provide exactly one of debit or credit.")
        if attrs["transaction_type"] == LedgerEntry.TransactionType.CREDIT_NOTE and debit > 0:
            raise serializers.ValidationError("A credit note is a credit.")
        if attrs["transaction_type"] == LedgerEntry.TransactionType.DEBIT_NOTE and credit > 0:
            raise serializers.ValidationError("A debit note is a debit.")
        return attrs


class ReconcileRequestSerializer(serializers.Serializer):
    customer_ids = serializers.ListField(child=serializers.UUIDField(), required=False, allow_empty=True)
    dry_run = serializers.BooleanField(default=False)
