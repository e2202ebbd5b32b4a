# ledger/api/views.py

"""
======================================================
PATH: ledger/api/views.py
======================================================
CUSTOMER LEDGER API

- customers/                     CRUD (cached financials are read-only)
- customers/{id}/summary/        totals over all entries + latest balance
- customers/{id}/entries/        the customer's timeline, oldest first
- entries/                       filterable, read-only; POST posts a manual
                                 adjustment / credit note / debit note
- reconcile/                     admin: recompute balances + payment numbers
- consistency/                   admin: read-only consistency report
======================================================
"""

from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAdminUser, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from ledger.api.filters import LedgerEntryFilter
from ledger.api.serializers import (
    CustomerSerializer,
    LedgerEntrySerializer,
    ManualEntrySerializer,
    ReconcileRequestSerializer,
)
from ledger.models import Customer, LedgerEntry
from ledger.services.consistency import verify_ledger_consistency
from ledger.services.exceptions import LedgerServiceError
from ledger.services.posting import record_entry
from ledger.services.reconciliation_service import reconcile_all
from ledger.services.summary_service import get_customer_summary, latest_entry


@extend_schema_view(
    list=extend_schema(tags=["ledger"]),
    retrieve=extend_schema(tags=["ledger"]),
    create=extend_schema(tags=["ledger"]),
    update=extend_schema(tags=["ledger"]),
    partial_update=extend_schema(tags=["ledger"]),
)
class CustomerViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.CreateModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = CustomerSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter, DjangoFilterBackend]
    search_fields = ["name", "company", "email", "phone", "customer_code"]
    filterset_fields = ["is_active"]

    def get_queryset(self):
        return Customer.objects.order_by("name")

    @extend_schema(tags=["ledger"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["get"], url_path="summary")
    def summary(self, request, pk=None):
        customer = self.get_object()
        summary = get_customer_summary(customer)
        latest = latest_entry(customer)
        return Response(
            {
                "customer_id": summary.customer_id,
                "total_debit": str(summary.total_debit),
                "total_credit": str(summary.total_credit),
                "current_balance": str(summary.current_balance),
                "latest_entry_balance": str(latest.balance) if latest else None,
                "entry_count": summary.entry_count,
            }
        )

    @extend_schema(tags=["ledger"], responses={200: LedgerEntrySerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="entries")
    def entries(self, request, pk=None):
        customer = self.get_object()
        qs = (
            LedgerEntry.objects.filter(customer=customer)
            .select_related("customer")
            .order_by("date", "created_at", "id")
        )
        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(LedgerEntrySerializer(page, many=True).data)
        return Response(LedgerEntrySerializer(qs, many=True).data)


@extend_schema_view(
    list=extend_schema(tags=["ledger"]),
    retrieve=extend_schema(tags=["ledger"]),
)
class LedgerEntryViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Append-only ledger. Rows are never edited or deleted through the API.
    """

    serializer_class = LedgerEntrySerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = LedgerEntryFilter
    ordering_fields = ["date", "created_at"]

    def get_queryset(self):
        return LedgerEntry.objects.select_related("customer").order_by("customer", "date", "created_at", "id")

    @extend_schema(tags=["ledger"], request=ManualEntrySerializer, responses={201: LedgerEntrySerializer})
    def create(self, request, *args, **kwargs):
        s = ManualEntrySerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            entry = record_entry(
                customer=data["customer"],
                transaction_type=data["transaction_type"],
                description=data["description"],
                debit=data["debit"],
                credit=data["credit"],
                date=data.get("date"),
                reference=data["reference"],
                created_by=getattr(request.user, "username", "") or "",
            )
        except LedgerServiceError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)

        entry.refresh_from_db()
        return Response(LedgerEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class ReconcileView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(tags=["ledger"], request=ReconcileRequestSerializer, responses={200: OpenApiTypes.OBJECT})
    def post(self, request):
        s = ReconcileRequestSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        customer_ids = s.validated_data.get("customer_ids") or None
        report = reconcile_all(customer_ids, dry_run=s.validated_data["dry_run"])

        return Response(
            {
                "dry_run": report.dry_run,
                "customers_processed": report.customers_processed,
                "entries_changed": report.entries_changed,
                "balances_fixed": report.balances_fixed,
                "numbers_fixed": report.numbers_fixed,
                "malformed_entries": [str(e) for e in report.malformed_entries],
                "failures": [
                    {"customer_id": f.customer_id, "error": f.error} for f in report.failures
                ],
            },
            status=status.HTTP_200_OK,
        )


class ConsistencyView(APIView):
    permission_classes = [IsAdminUser]

    @extend_schema(tags=["ledger"], responses={200: OpenApiTypes.OBJECT})
    def get(self, request):
        issues = verify_ledger_consistency()
        return Response(
            {
                "total_issues": len(issues),
                "issues": [i.as_dict() for i in issues],
            }
        )
