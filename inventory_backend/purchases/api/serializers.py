# purchases/api/serializers.py

from rest_framework import serializers

from purchases.models import PurchaseLot


class PurchaseLotSerializer(serializers.ModelSerializer):
    variant_sku = serializers.CharField(source="variant.sku", read_only=True)
    product_name = serializers.CharField(source="product.name", read_only=True)

    class Meta:
        model = PurchaseLot
        fields = [
            "id",
            "purchase_id",
            "product",
            "product_name",
            "variant",
            "variant_sku",
            "supplier",
            "location",
            "quantity",
            "remaining_quantity",
            "unit_cost",
            "retail_price",
            "wholesale_price",
            "shipping_cost",
            "total_cost",
            "purchase_date",
            "notes",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "id",
            "purchase_id",
            "product",
            "product_name",
            "variant_sku",
            "remaining_quantity",
            "total_cost",
            "created_at",
            "updated_at",
        ]

    def validate_quantity(self, value):
        if value <= 0:
            raise serializers.ValidationError("Must be > 0.")
        return value

    def validate_unit_cost(self, value):
        if value < 0:
            raise serializers.ValidationError("Must be >= 0.")
        return value

    def create(self, validated_data):
        validated_data["product"] = validated_data["variant"].product
        return super().create(validated_data)


class AllocationPreviewRequestSerializer(serializers.Serializer):
    variant = serializers.UUIDField()
    quantity = serializers.IntegerField()
