# products/serializers/product.py

"""
PRODUCT / VARIANT SERIALIZERS

Stock is never stored on products: `stock` is the sum of remaining_quantity
over the variant's purchase lots (single source of truth).
"""

from django.db.models import Sum
from rest_framework import serializers

from products.models import Product, ProductVariant


class ProductVariantSerializer(serializers.ModelSerializer):
    stock = serializers.SerializerMethodField(read_only=True)

    class Meta:
        model = ProductVariant
        fields = [
            "id",
            "product",
            "sku",
            "name",
            "attributes",
            "retail_price",
            "wholesale_price",
            "stock",
            "is_active",
            "created_at",
        ]
        read_only_fields = ["id", "stock", "created_at"]

    def get_stock(self, obj) -> int:
        annotated = getattr(obj, "stock_remaining", None)
        if annotated is not None:
            return int(annotated)
        total = obj.purchase_lots.aggregate(total=Sum("remaining_quantity")).get("total")
        return int(total or 0)

    def validate(self, attrs):
        for field in ("retail_price", "wholesale_price"):
            value = attrs.get(field)
            if value is not None and value < 0:
                raise serializers.ValidationError({field: "Must be >= 0."})
        return attrs


class ProductSerializer(serializers.ModelSerializer):
    variants = ProductVariantSerializer(many=True, read_only=True)

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "name",
            "description",
            "is_active",
            "variants",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["id", "variants", "created_at", "updated_at"]
