# projects/api/views.py

"""
======================================================
PATH: projects/api/views.py
======================================================
PROJECTS & EXPENSES API

Endpoints (mounted at /api/projects/):
- projects/                          list / create / partial update
- projects/{id}/budget/              budget, spend, billed and invoiced totals
- projects/{id}/expenses/            GET the project's expenses, POST one
- projects/{id}/status/              move the project to another status
- projects/{id}/generate-invoice/    bill unbilled expenses (invoice or quotation)
- projects/{id}/audit-log/           newest first
- expenses/                          every expense, filterable; edit / delete unbilled ones
- expenses/summary/                  totals by category and month for the filtered set

Error mapping:
- validation errors -> 400
- cancelled project, billed expense -> 409
- invoice and stock errors follow sales.api.views
======================================================
"""

from __future__ import annotations

import logging

from django_filters.rest_framework import DjangoFilterBackend
from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import extend_schema, extend_schema_view
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from projects.api.filters import ExpenseFilter
from projects.api.serializers import (
    ExpenseCreateSerializer,
    ExpenseSerializer,
    ExpenseWriteSerializer,
    GenerateInvoiceSerializer,
    ProjectAuditLogSerializer,
    ProjectCreateSerializer,
    ProjectSerializer,
    ProjectStatusSerializer,
    ProjectWriteSerializer,
)
from projects.models import Expense, Project
from projects.services.exceptions import (
    ExpenseStateError,
    ProjectServiceError,
    ProjectStateError,
)
from projects.services.project_service import (
    add_expense,
    change_project_status,
    create_project,
    delete_expense,
    generate_project_invoice,
    get_project_budget,
    summarize_expenses,
    update_expense,
    update_project,
)
from sales.api.serializers import InvoiceSerializer, QuotationSerializer
from sales.api.views import DOMAIN_ERRORS, domain_error_response

logger = logging.getLogger(__name__)


def project_error_response(exc: ProjectServiceError) -> Response:
    if isinstance(exc, (ProjectStateError, ExpenseStateError)):
        return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
    return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)


def _actor(request) -> str:
    return getattr(request.user, "username", "") or ""


def _money_dict(values: dict) -> dict:
    return {key: str(value) for key, value in values.items()}


def expense_queryset():
    return Expense.objects.select_related("project", "invoice").order_by("-date", "-created_at")


@extend_schema_view(
    list=extend_schema(tags=["projects"]),
    retrieve=extend_schema(tags=["projects"]),
)
class ProjectViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ProjectSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter, DjangoFilterBackend]
    search_fields = ["project_number", "title", "customer__name"]
    filterset_fields = ["customer", "status"]

    def get_queryset(self):
        return Project.objects.select_related("customer").order_by("-created_at")

    @extend_schema(tags=["projects"], request=ProjectCreateSerializer, responses={201: ProjectSerializer})
    def create(self, request, *args, **kwargs):
        s = ProjectCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            project = create_project(created_by=_actor(request), **s.validated_data)
        except ProjectServiceError as exc:
            return project_error_response(exc)
        return Response(ProjectSerializer(project).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["projects"], request=ProjectWriteSerializer, responses={200: ProjectSerializer})
    def partial_update(self, request, *args, **kwargs):
        s = ProjectWriteSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        try:
            project = update_project(self.get_object(), actor=_actor(request), **s.validated_data)
        except ProjectServiceError as exc:
            return project_error_response(exc)
        return Response(ProjectSerializer(project).data)

    @extend_schema(tags=["projects"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["get"], url_path="budget")
    def budget(self, request, pk=None):
        project = self.get_object()
        report = get_project_budget(project)
        return Response(
            {
                "project_id": str(project.pk),
                "budget": str(report.budget),
                "total_expenses": str(report.total_expenses),
                "billed_expenses": str(report.billed_expenses),
                "unbilled_expenses": str(report.unbilled_expenses),
                "invoiced_total": str(report.invoiced_total),
                "paid_total": str(report.paid_total),
                "remaining_budget": str(report.remaining_budget),
                "utilization": str(report.utilization) if report.utilization is not None else None,
                "over_budget": report.over_budget,
            }
        )

    @extend_schema(
        tags=["projects"],
        request=ExpenseWriteSerializer,
        responses={200: ExpenseSerializer(many=True), 201: ExpenseSerializer},
    )
    @action(detail=True, methods=["get", "post"], url_path="expenses")
    def expenses(self, request, pk=None):
        project = self.get_object()

        if request.method == "GET":
            qs = expense_queryset().filter(project=project)
            page = self.paginate_queryset(qs)
            if page is not None:
                return self.get_paginated_response(ExpenseSerializer(page, many=True).data)
            return Response(ExpenseSerializer(qs, many=True).data)

        s = ExpenseWriteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        try:
            expense = add_expense(project=project, added_by=_actor(request), **s.validated_data)
        except ProjectServiceError as exc:
            return project_error_response(exc)
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["projects"], request=ProjectStatusSerializer, responses={200: ProjectSerializer})
    @action(detail=True, methods=["post"], url_path="status")
    def set_status(self, request, pk=None):
        s = ProjectStatusSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            project = change_project_status(
                self.get_object(), s.validated_data["status"], actor=_actor(request)
            )
        except ProjectServiceError as exc:
            return project_error_response(exc)
        return Response(ProjectSerializer(project).data)

    @extend_schema(tags=["projects"], request=GenerateInvoiceSerializer, responses={201: OpenApiTypes.OBJECT})
    @action(detail=True, methods=["post"], url_path="generate-invoice")
    def generate_invoice(self, request, pk=None):
        s = GenerateInvoiceSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            document = generate_project_invoice(
                self.get_object(),
                markup_percentage=data["markup_percentage"],
                expense_ids=data.get("expense_ids"),
                extra_lines=[dict(line) for line in data["items"]],
                discount_amount=data["discount_amount"],
                tax_amount=data["tax_amount"],
                due_date=data.get("due_date"),
                valid_until=data.get("valid_until"),
                draft=data["draft"],
                as_quotation=data["as_quotation"],
                notes=data["notes"],
                created_by=_actor(request),
            )
        except ProjectServiceError as exc:
            return project_error_response(exc)
        except DOMAIN_ERRORS as exc:
            logger.info("Project billing rejected", extra={"project_id": pk, "error": str(exc)})
            return domain_error_response(exc)

        serializer = QuotationSerializer if data["as_quotation"] else InvoiceSerializer
        return Response(serializer(document).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["projects"], responses={200: ProjectAuditLogSerializer(many=True)})
    @action(detail=True, methods=["get"], url_path="audit-log")
    def audit_log(self, request, pk=None):
        qs = self.get_object().audit_logs.order_by("-created_at", "-id")
        action_filter = request.query_params.get("action")
        if action_filter:
            qs = qs.filter(action=action_filter)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(ProjectAuditLogSerializer(page, many=True).data)
        return Response(ProjectAuditLogSerializer(qs, many=True).data)


@extend_schema_view(
    list=extend_schema(tags=["projects"]),
    retrieve=extend_schema(tags=["projects"]),
)
class ExpenseViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    serializer_class = ExpenseSerializer
    permission_classes = [IsAuthenticated]
    filter_backends = [filters.SearchFilter, DjangoFilterBackend]
    search_fields = ["expense_number", "description", "vendor"]
    filterset_class = ExpenseFilter

    def get_queryset(self):
        return expense_queryset()

    @extend_schema(tags=["projects"], request=ExpenseCreateSerializer, responses={201: ExpenseSerializer})
    def create(self, request, *args, **kwargs):
        s = ExpenseCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            expense = add_expense(added_by=_actor(request), **s.validated_data)
        except ProjectServiceError as exc:
            return project_error_response(exc)
        return Response(ExpenseSerializer(expense).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["projects"], request=ExpenseWriteSerializer, responses={200: ExpenseSerializer})
    def partial_update(self, request, *args, **kwargs):
        s = ExpenseWriteSerializer(data=request.data, partial=True)
        s.is_valid(raise_exception=True)

        try:
            expense = update_expense(self.get_object(), actor=_actor(request), **s.validated_data)
        except ProjectServiceError as exc:
            return project_error_response(exc)
        return Response(ExpenseSerializer(expense).data)

    @extend_schema(tags=["projects"], responses={204: None})
    def destroy(self, request, *args, **kwargs):
        try:
            delete_expense(self.get_object(), actor=_actor(request))
        except ProjectServiceError as exc:
            return project_error_response(exc)
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(tags=["projects"], responses={200: OpenApiTypes.OBJECT})
    @action(detail=False, methods=["get"], url_path="summary")
    def summary(self, request):
        summary = summarize_expenses(self.filter_queryset(self.get_queryset()))
        return Response(
            {
                "total": str(summary.total),
                "count": summary.count,
                "by_category": _money_dict(summary.by_category),
                "by_month": _money_dict(summary.by_month),
            }
        )
