# products/serializers/bundle.py

"""
BUNDLE SERIALIZERS

- BundleSerializer: bundle + components + expenses. Writes replace the
  component and expense lists as a whole.
- BundleCostRequestSerializer: input of the FIFO cost preview.
"""

from django.db import transaction
from rest_framework import serializers

from products.models import Bundle, BundleComponent, BundleExpense


class BundleComponentSerializer(serializers.ModelSerializer):
    variant_sku = serializers.CharField(source="variant.sku", read_only=True)

    class Meta:
        model = BundleComponent
        fields = ["id", "variant", "variant_sku", "quantity"]
        read_only_fields = ["id", "variant_sku"]

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Must be > 0.")
        return value


class BundleExpenseSerializer(serializers.ModelSerializer):
    class Meta:
        model = BundleExpense
        fields = ["id", "name", "amount", "category", "description"]
        read_only_fields = ["id"]

    def validate_amount(self, value):
        if value < 0:
            raise serializers.ValidationError("Must be >= 0.")
        return value


class BundleSerializer(serializers.ModelSerializer):
    components = BundleComponentSerializer(many=True)
    expenses = BundleExpenseSerializer(many=True, required=False)

    class Meta:
        model = Bundle
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "base_price",
            "is_active",
            "components",
            "expenses",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "created_at", "updated_at"]

    def validate_components(self, value):
        if not value:
            raise serializers.ValidationError("A bundle needs at least one component.")
        variants = [c["variant"].pk for c in value]
        if len(variants) != len(set(variants)):
            raise serializers.ValidationError("Each variant may appear only once.")
        return value

    def _write_children(self, bundle, components, expenses):
        if components is not None:
            bundle.components.all().delete()
            BundleComponent.objects.bulk_create(
                [BundleComponent(bundle=bundle, **c) for c in components]
            )
        if expenses is not None:
            bundle.expenses.all().delete()
            BundleExpense.objects.bulk_create(
                [BundleExpense(bundle=bundle, **e) for e in expenses]
            )

    @transaction.atomic
    def create(self, validated_data):
        components = validated_data.pop("components", [])
        expenses = validated_data.pop("expenses", [])
        bundle = Bundle.objects.create(**validated_data)
        self._write_children(bundle, components, expenses)
        return bundle

    @transaction.atomic
    def update(self, instance, validated_data):
        components = validated_data.pop("components", None)
        expenses = validated_data.pop("expenses", None)
        for key, value in validated_data.items():
            setattr(instance, key, value)
        instance.save()
        self._write_children(instance, components, expenses)
        return instance


class BundleCostRequestSerializer(serializers.Serializer):
    quantity = serializers.IntegerField(min_value=1, default=1)
