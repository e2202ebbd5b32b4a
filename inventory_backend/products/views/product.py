# products/views/product.py

"""
PRODUCT + VARIANT VIEWSETS

Variant lists annotate `stock_remaining` (sum of lot remaining quantities)
to avoid N+1 queries.
"""

from django.db.models import Sum
from django.db.models.functions import Coalesce
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import filters, viewsets
from rest_framework.permissions import IsAuthenticated

from products.models import Product, ProductVariant
from products.serializers import ProductSerializer, ProductVariantSerializer


@extend_schema_view(
    list=extend_schema(tags=["products"]),
    retrieve=extend_schema(tags=["products"]),
    create=extend_schema(tags=["products"]),
    update=extend_schema(tags=["products"]),
    partial_update=extend_schema(tags=["products"]),
    destroy=extend_schema(tags=["products"]),
)
class ProductViewSet(viewsets.ModelViewSet):
    serializer_class = ProductSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "sku", "variants__sku"]
    ordering_fields = ["name", "created_at"]

    def get_queryset(self):
        qs = Product.objects.prefetch_related("variants").order_by("name")
        active = self.request.query_params.get("is_active")
        if active in ("true", "false"):
            qs = qs.filter(is_active=(active == "true"))
        return qs


@extend_schema_view(
    list=extend_schema(tags=["products"]),
    retrieve=extend_schema(tags=["products"]),
    create=extend_schema(tags=["products"]),
    update=extend_schema(tags=["products"]),
    partial_update=extend_schema(tags=["products"]),
    destroy=extend_schema(tags=["products"]),
)
class ProductVariantViewSet(viewsets.ModelViewSet):
    serializer_class = ProductVariantSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter]
    search_fields = ["sku", "name", "product__name"]

    def get_queryset(self):
        qs = (
            ProductVariant.objects.select_related("product")
            .annotate(stock_remaining=Coalesce(Sum("purchase_lots__remaining_quantity"), 0))
            .order_by("product__name", "name")
        )
        product_id = self.request.query_params.get("product")
        if product_id:
            qs = qs.filter(product_id=product_id)
        return qs
