# products/views/bundle.py

"""
BUNDLE VIEWSET

Includes:
- POST /api/products/bundles/{id}/cost/  FIFO cost preview (read-only on stock)
"""

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.models import Bundle
from products.serializers import BundleCostRequestSerializer, BundleSerializer
from products.services.bundle_cost import calculate_bundle_fifo_cost


def serialize_breakdown(breakdown) -> dict:
    return {
        "bundle_id": breakdown.bundle_id,
        "quantity": breakdown.quantity,
        "component_breakdown": [
            {
                "variant_id": c.variant_id,
                "name": c.name,
                "sku": c.sku,
                "quantity": c.quantity,
                "lots": [
                    {
                        "lot_id": x.lot_id,
                        "quantity": x.quantity,
                        "unit_cost": str(x.unit_cost),
                        "total_cost": str(x.total_cost),
                    }
                    for x in c.consumptions
                ],
                "total_cost": str(c.total_cost),
                "fulfilled": c.fulfilled,
            }
            for c in breakdown.components
        ],
        "custom_expenses": [
            {
                "name": e.name,
                "amount": str(e.amount),
                "category": e.category,
                "description": e.description,
            }
            for e in breakdown.expenses
        ],
        "total_component_cost": str(breakdown.total_component_cost),
        "total_custom_expenses": str(breakdown.total_custom_expenses),
        "total_cost": str(breakdown.total_cost),
        "unit_cost": str(breakdown.unit_cost),
        "can_fulfill": breakdown.can_fulfill,
        "errors": list(breakdown.errors),
    }


@extend_schema_view(
    list=extend_schema(tags=["products"]),
    retrieve=extend_schema(tags=["products"]),
    create=extend_schema(tags=["products"]),
    update=extend_schema(tags=["products"]),
    partial_update=extend_schema(tags=["products"]),
    destroy=extend_schema(tags=["products"]),
)
class BundleViewSet(viewsets.ModelViewSet):
    serializer_class = BundleSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        return Bundle.objects.prefetch_related("components__variant", "expenses").order_by("name")

    @extend_schema(tags=["products"], request=BundleCostRequestSerializer, responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="cost")
    def cost(self, request, pk=None):
        s = BundleCostRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        breakdown = calculate_bundle_fifo_cost(self.get_object(), s.validated_data["quantity"])
        return Response(serialize_breakdown(breakdown), status=status.HTTP_200_OK)
