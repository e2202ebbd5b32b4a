# purchases/api/views.py

"""
PURCHASE LOT API

- CRUD on lots (remaining_quantity is read-only: it moves only through the
  FIFO stock service).
- POST lots/allocation-preview/ answers "which lots would N units of this
  variant come from, and at what cost?" without touching stock.
"""

from django.core.exceptions import ValidationError
from django.shortcuts import get_object_or_404
from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from products.models import ProductVariant
from purchases.api.serializers import AllocationPreviewRequestSerializer, PurchaseLotSerializer
from purchases.models import PurchaseLot
from purchases.services.fifo import Allocation, InsufficientStock, allocate
from purchases.services.stock_service import load_lot_snapshots


def _consumptions(consumptions) -> list[dict]:
    return [
        {
            "lot_id": c.lot_id,
            "quantity": c.quantity,
            "unit_cost": str(c.unit_cost),
            "total_cost": str(c.total_cost),
        }
        for c in consumptions
    ]


def serialize_allocation_result(result) -> dict:
    if isinstance(result, Allocation):
        return {
            "ok": True,
            "item_key": str(result.item_key),
            "required_quantity": result.required_quantity,
            "consumptions": _consumptions(result.consumptions),
            "total_cost": str(result.total_cost),
            "weighted_unit_cost": str(result.weighted_unit_cost),
        }
    if isinstance(result, InsufficientStock):
        return {
            "ok": False,
            "error": "insufficient_stock",
            "detail": result.message,
            "item_key": str(result.item_key),
            "required_quantity": result.required_quantity,
            "shortfall": result.shortfall,
            "partial": _consumptions(result.partial),
        }
    return {
        "ok": False,
        "error": "invalid_quantity",
        "detail": result.message,
        "item_key": str(result.item_key),
    }


@extend_schema_view(
    list=extend_schema(tags=["purchases"]),
    retrieve=extend_schema(tags=["purchases"]),
    create=extend_schema(tags=["purchases"]),
    update=extend_schema(tags=["purchases"]),
    partial_update=extend_schema(tags=["purchases"]),
    destroy=extend_schema(tags=["purchases"]),
)
class PurchaseLotViewSet(viewsets.ModelViewSet):
    serializer_class = PurchaseLotSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["product", "variant", "supplier", "location"]

    def get_queryset(self):
        qs = PurchaseLot.objects.select_related("product", "variant").order_by("-purchase_date", "-id")
        if self.request.query_params.get("in_stock") == "true":
            qs = qs.filter(remaining_quantity__gt=0)
        return qs

    def _save(self, serializer):
        try:
            serializer.save()
        except ValidationError as exc:
            raise DRFValidationError(exc.message_dict if hasattr(exc, "error_dict") else exc.messages)

    def perform_create(self, serializer):
        self._save(serializer)

    def perform_update(self, serializer):
        self._save(serializer)

    def destroy(self, request, *args, **kwargs):
        lot = self.get_object()
        try:
            lot.delete()
        except ValidationError as exc:
            return Response({"detail": " ".join(exc.messages)}, status=status.HTTP_409_CONFLICT)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["purchases"],
        request=AllocationPreviewRequestSerializer,
        responses={200: OpenApiTypes.OBJECT, 409: OpenApiTypes.OBJECT},
    )
    @action(detail=False, methods=["post"], url_path="allocation-preview")
    def allocation_preview(self, request):
        s = AllocationPreviewRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        variant = get_object_or_404(ProductVariant, pk=s.validated_data["variant"])
        key = variant.item_key
        result = allocate(key, s.validated_data["quantity"], load_lot_snapshots(key))

        body = serialize_allocation_result(result)
        if isinstance(result, Allocation):
            return Response(body, status=status.HTTP_200_OK)
        if isinstance(result, InsufficientStock):
            return Response(body, status=status.HTTP_409_CONFLICT)
        return Response(body, status=status.HTTP_400_BAD_REQUEST)
