# sales/api/views.py

"""
======================================================
PATH: sales/api/views.py
======================================================
INVOICE AND QUOTATION VIEWSETS

Endpoints (mounted at /api/sales/):
- GET  invoices/                 list (filter: customer, status, billing_type)
- POST invoices/                 create (and issue unless draft=true)
- GET  invoices/{id}/
- POST invoices/{id}/issue/      draft -> issued (deducts stock, posts ledger)
- POST invoices/{id}/payments/   record a payment
- POST invoices/{id}/cancel/     cancel an unpaid invoice, restore stock
- GET  quotations/               list (filter: customer, project, status)
- POST quotations/               create
- GET  quotations/{id}/
- POST quotations/{id}/status/   sent / accepted / rejected / cancelled
- POST quotations/{id}/convert/  issue an invoice from the quotation

Error mapping:
- validation / invalid quantity / payment errors -> 400
- insufficient stock, wrong invoice or quotation status, lost stock race -> 409
======================================================
"""

from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from purchases.services.stock_service import (
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidQuantityError,
)
from sales.api.serializers import (
    InvoiceCancelSerializer,
    InvoiceCreateSerializer,
    InvoiceSerializer,
    PaymentCreateSerializer,
    PaymentSerializer,
    QuotationConvertSerializer,
    QuotationCreateSerializer,
    QuotationSerializer,
    QuotationStatusSerializer,
)
from sales.models import Invoice, Quotation
from sales.services.exceptions import (
    InvoiceStateError,
    InvoiceValidationError,
    PaymentError,
    QuotationStateError,
)
from sales.services.invoice_service import (
    cancel_invoice,
    create_invoice,
    issue_invoice,
    record_payment,
)
from sales.services.quotation_service import (
    convert_quotation_to_invoice,
    create_quotation,
    update_quotation_status,
)

logger = logging.getLogger(__name__)


def domain_error_response(exc: Exception) -> Response:
    if isinstance(exc, InsufficientStockError):
        return Response(
            {
                "detail": str(exc),
                "item_key": str(exc.result.item_key),
                "shortfall": exc.shortfall,
            },
            status=status.HTTP_409_CONFLICT,
        )
    if isinstance(exc, (InvoiceStateError, QuotationStateError, ConcurrentModificationError)):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


DOMAIN_ERRORS = (
    InsufficientStockError,
    InvalidQuantityError,
    ConcurrentModificationError,
    InvoiceStateError,
    InvoiceValidationError,
    PaymentError,
    QuotationStateError,
)


def invoice_queryset():
    return (
        Invoice.objects.select_related("customer")
        .prefetch_related("items__allocations__lot", "payments")
        .order_by("-date", "-created_at")
    )


def _actor(request) -> str:
    user = getattr(request, "user", None)
    return getattr(user, "username", "") or ""


class InvoiceViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = InvoiceSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["customer", "project", "status", "billing_type", "custom"]

    def get_queryset(self):
        return invoice_queryset()

    @extend_schema(tags=["sales"], request=InvoiceCreateSerializer, responses={201: InvoiceSerializer})
    def create(self, request, *args, **kwargs):
        s = InvoiceCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            invoice = create_invoice(
                customer=data["customer"],
                lines=[dict(line) for line in data["items"]],
                discount_amount=data["discount_amount"],
                tax_amount=data["tax_amount"],
                date=data.get("date"),
                due_date=data.get("due_date"),
                billing_type=data["billing_type"],
                notes=data["notes"],
                created_by=_actor(request),
                draft=data["draft"],
                project=data.get("project"),
            )
        except DOMAIN_ERRORS as exc:
            logger.info("Invoice creation rejected", extra={"error": str(exc)})
            return domain_error_response(exc)

        invoice = self.get_queryset().get(pk=invoice.pk)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["sales"], request=None, responses={200: InvoiceSerializer})
    @action(detail=True, methods=["post"], url_path="issue")
    def issue(self, request, pk=None):
        try:
            invoice = issue_invoice(self.get_object())
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(InvoiceSerializer(self.get_queryset().get(pk=invoice.pk)).data)

    @extend_schema(tags=["sales"], request=PaymentCreateSerializer, responses={201: PaymentSerializer})
    @action(detail=True, methods=["post"], url_path="payments")
    def payments(self, request, pk=None):
        s = PaymentCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            payment = record_payment(
                self.get_object(),
                created_by=_actor(request),
                **s.validated_data,
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["sales"], request=InvoiceCancelSerializer, responses={200: InvoiceSerializer})
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        s = InvoiceCancelSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            invoice = cancel_invoice(self.get_object(), reason=s.validated_data["reason"])
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(InvoiceSerializer(self.get_queryset().get(pk=invoice.pk)).data)


class QuotationViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = QuotationSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [DjangoFilterBackend]
    filterset_fields = ["customer", "project", "status", "billing_type"]

    def get_queryset(self):
        return (
            Quotation.objects.select_related("customer", "converted_invoice")
            .prefetch_related("items")
            .order_by("-date", "-created_at")
        )

    @extend_schema(tags=["sales"], request=QuotationCreateSerializer, responses={201: QuotationSerializer})
    def create(self, request, *args, **kwargs):
        s = QuotationCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            quotation = create_quotation(
                customer=data["customer"],
                lines=[dict(line) for line in data["items"]],
                discount_amount=data["discount_amount"],
                tax_amount=data["tax_amount"],
                date=data.get("date"),
                valid_until=data.get("valid_until"),
                billing_type=data["billing_type"],
                notes=data["notes"],
                created_by=_actor(request),
                project=data.get("project"),
            )
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)

        quotation = self.get_queryset().get(pk=quotation.pk)
        return Response(QuotationSerializer(quotation).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["sales"], request=QuotationStatusSerializer, responses={200: QuotationSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        s = QuotationStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            quotation = update_quotation_status(self.get_object(), s.validated_data["status"])
        except DOMAIN_ERRORS as exc:
            return domain_error_response(exc)
        return Response(QuotationSerializer(self.get_queryset().get(pk=quotation.pk)).data)

    @extend_schema(tags=["sales"], request=QuotationConvertSerializer, responses={201: InvoiceSerializer})
    @action(detail=True, methods=["post"], url_path="convert")
    def convert(self, request, pk=None):
        s = QuotationConvertSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            invoice = convert_quotation_to_invoice(
                self.get_object(),
                created_by=_actor(request),
                date=s.validated_data.get("date"),
                due_date=s.validated_data.get("due_date"),
                draft=s.validated_data["draft"],
            )
        except DOMAIN_ERRORS as exc:
            logger.info("Quotation conversion rejected", extra={"error": str(exc)})
            return domain_error_response(exc)

        invoice = invoice_queryset().get(pk=invoice.pk)
        return Response(InvoiceSerializer(invoice).data, status=status.HTTP_201_CREATED)
