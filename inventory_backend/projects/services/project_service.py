# projects/services/project_service.py

"""
PROJECT SERVICE (APPLICATION SERVICE)

Responsibilities:
- Create and update projects, move them through their statuses
- Record, edit and remove expenses (with or without a project)
- Report a project's budget position
- Bill unbilled project expenses as an invoice or a quotation

Hard rules:
- A cancelled project accepts no changes, expenses or billing.
- An expense billed by a live invoice is frozen. Cancelling that invoice
  makes the expense billable again.
- Billing goes through sales.services, so stock, ledger and numbering rules
  are the invoice rules.
- Every change writes one ProjectAuditLog row in the same transaction.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import Count, Sum
from django.db.models.functions import TruncMonth

from core.money import ZERO, money
from projects.models import Expense, Project, ProjectAuditLog
from projects.services.audit import log_project_event
from projects.services.exceptions import (
    ExpenseStateError,
    ProjectStateError,
    ProjectValidationError,
)
from sales.models import Invoice
from sales.services.invoice_service import create_invoice
from sales.services.quotation_service import create_quotation

logger = logging.getLogger(__name__)

PROJECT_FIELDS = ("title", "description", "customer", "budget", "start_date", "end_date")
EXPENSE_FIELDS = ("description", "amount", "category", "date", "vendor", "notes")


# ============================================================
# HELPERS
# ============================================================

def _amount(value, label: str) -> Decimal:
    try:
        amount = money(value)
    except ValueError as exc:
        raise ProjectValidationError(f"Invalid {label} {value!r}") from exc
    if amount < 0:
        raise ProjectValidationError(f"{label} cannot be negative")
    return amount


def _save(instance) -> None:
    try:
        instance.save()
    except ValidationError as exc:
        raise ProjectValidationError("; ".join(exc.messages)) from exc


def _ensure_open(project: Project) -> None:
    if project.status in Project.TERMINAL_STATUSES:
        raise ProjectStateError(f"Project {project.project_number} is {project.status}")


def _lock(project: Project) -> Project:
    return Project.objects.select_for_update().get(pk=project.pk)


def unbilled_expenses(project: Project):
    return project.expenses.exclude(Expense.BILLED).order_by("date", "created_at")


# ============================================================
# PROJECTS
# ============================================================

@transaction.atomic
def create_project(
    *,
    title: str,
    customer=None,
    description: str = "",
    budget=0,
    status: str = Project.Status.PLANNING,
    start_date=None,
    end_date=None,
    created_by: str = "",
) -> Project:
    title = (title or "").strip()
    if not title:
        raise ProjectValidationError("title is required")
    if status in Project.TERMINAL_STATUSES:
        raise ProjectValidationError("A project cannot start out cancelled")

    project = Project(
        title=title,
        customer=customer,
        description=(description or "").strip(),
        budget=_amount(budget, "budget"),
        status=status,
        start_date=start_date,
        end_date=end_date,
        created_by=created_by,
    )
    _save(project)

    log_project_event(
        project,
        ProjectAuditLog.Action.PROJECT_CREATED,
        f"Project {project.project_number} created",
        actor=created_by,
        metadata={"budget": project.budget},
    )
    return project


@transaction.atomic
def update_project(project: Project, *, actor: str = "", **changes) -> Project:
    unknown = set(changes) - set(PROJECT_FIELDS)
    if unknown:
        raise ProjectValidationError(f"Cannot update {', '.join(sorted(unknown))}")

    project = _lock(project)
    _ensure_open(project)

    if "budget" in changes:
        changes["budget"] = _amount(changes["budget"], "budget")
    if "title" in changes and not (changes["title"] or "").strip():
        raise ProjectValidationError("title is required")

    before = {name: getattr(project, name) for name in changes if name != "customer"}
    for name, value in changes.items():
        setattr(project, name, value)
    _save(project)

    log_project_event(
        project,
        ProjectAuditLog.Action.PROJECT_UPDATED,
        f"Updated {', '.join(sorted(changes))}",
        actor=actor,
        metadata={"before": before},
    )
    return project


@transaction.atomic
def change_project_status(project: Project, status: str, *, actor: str = "") -> Project:
    if status not in Project.Status.values:
        raise ProjectValidationError(f"Unknown project status {status!r}")

    project = _lock(project)
    _ensure_open(project)
    if project.status == status:
        return project

    previous = project.status
    project.status = status
    _save(project)

    log_project_event(
        project,
        ProjectAuditLog.Action.STATUS_CHANGED,
        f"Status changed from {previous} to {status}",
        actor=actor,
        metadata={"from": previous, "to": status},
    )
    return project


# ============================================================
# EXPENSES
# ============================================================

@transaction.atomic
def add_expense(
    *,
    description: str,
    amount,
    category: str = Expense.Category.OTHER,
    date=None,
    vendor: str = "",
    notes: str = "",
    added_by: str = "",
    project: Project | None = None,
) -> Expense:
    description = (description or "").strip()
    if not description:
        raise ProjectValidationError("description is required")
    if category not in Expense.Category.values:
        raise ProjectValidationError(f"Unknown expense category {category!r}")

    if project is not None:
        project = _lock(project)
        _ensure_open(project)

    expense = Expense(
        project=project,
        description=description,
        amount=_amount(amount, "amount"),
        category=category,
        vendor=(vendor or "").strip(),
        notes=notes or "",
        added_by=added_by,
    )
    if date is not None:
        expense.date = date
    _save(expense)

    if project is not None:
        log_project_event(
            project,
            ProjectAuditLog.Action.EXPENSE_ADDED,
            f"Expense {expense.expense_number}: {expense.description}",
            actor=added_by,
            metadata={"expense_id": expense.pk, "amount": expense.amount, "category": expense.category},
        )

    logger.info(
        "Recorded expense",
        extra={
            "expense_number": expense.expense_number,
            "project_id": str(expense.project_id or ""),
            "amount": str(expense.amount),
        },
    )
    return expense


def _lock_expense(expense: Expense) -> Expense:
    expense = Expense.objects.select_for_update().get(pk=expense.pk)
    if Expense.objects.filter(Expense.BILLED, pk=expense.pk).exists():
        raise ExpenseStateError(f"Expense {expense.expense_number} is billed and cannot change")
    if expense.project is not None:
        _ensure_open(expense.project)
    return expense


@transaction.atomic
def update_expense(expense: Expense, *, actor: str = "", **changes) -> Expense:
    unknown = set(changes) - set(EXPENSE_FIELDS)
    if unknown:
        raise ProjectValidationError(f"Cannot update {', '.join(sorted(unknown))}")

    expense = _lock_expense(expense)

    if "amount" in changes:
        changes["amount"] = _amount(changes["amount"], "amount")
    if "category" in changes and changes["category"] not in Expense.Category.values:
        raise ProjectValidationError(f"Unknown expense category {changes['category']!r}")
    if "description" in changes and not (changes["description"] or "").strip():
        raise ProjectValidationError("description is required")

    before = {name: getattr(expense, name) for name in changes}
    for name, value in changes.items():
        setattr(expense, name, value)
    _save(expense)

    if expense.project is not None:
        log_project_event(
            expense.project,
            ProjectAuditLog.Action.EXPENSE_UPDATED,
            f"Expense {expense.expense_number} updated",
            actor=actor,
            metadata={"expense_id": expense.pk, "before": before},
        )
    return expense


@transaction.atomic
def delete_expense(expense: Expense, *, actor: str = "") -> None:
    expense = _lock_expense(expense)
    project = expense.project
    number, amount = expense.expense_number, expense.amount

    expense.delete()

    if project is not None:
        log_project_event(
            project,
            ProjectAuditLog.Action.EXPENSE_DELETED,
            f"Expense {number} deleted",
            actor=actor,
            metadata={"expense_number": number, "amount": amount},
        )


# ============================================================
# REPORTING
# ============================================================

@dataclass(frozen=True)
class ProjectBudget:
    budget: Decimal
    total_expenses: Decimal
    billed_expenses: Decimal
    unbilled_expenses: Decimal
    invoiced_total: Decimal
    paid_total: Decimal

    @property
    def remaining_budget(self) -> Decimal:
        return self.budget - self.total_expenses

    @property
    def utilization(self) -> Decimal | None:
        """Percentage of the budget spent; None when there is no budget."""
        if self.budget <= 0:
            return None
        return money(self.total_expenses * Decimal("100") / self.budget)

    @property
    def over_budget(self) -> bool:
        return self.budget > 0 and self.total_expenses > self.budget


def get_project_budget(project: Project) -> ProjectBudget:
    totals = project.expenses.aggregate(
        total=Sum("amount"),
        billed=Sum("amount", filter=Expense.BILLED),
    )
    invoices = project.invoices.exclude(status=Invoice.Status.CANCELLED).aggregate(
        invoiced=Sum("total_amount"),
        paid=Sum("paid_amount"),
    )

    total = totals["total"] or ZERO
    billed = totals["billed"] or ZERO
    return ProjectBudget(
        budget=project.budget,
        total_expenses=total,
        billed_expenses=billed,
        unbilled_expenses=total - billed,
        invoiced_total=invoices["invoiced"] or ZERO,
        paid_total=invoices["paid"] or ZERO,
    )


@dataclass(frozen=True)
class ExpenseSummary:
    total: Decimal
    count: int
    by_category: dict[str, Decimal] = field(default_factory=dict)
    by_month: dict[str, Decimal] = field(default_factory=dict)


def summarize_expenses(expenses=None) -> ExpenseSummary:
    """Totals for an expense queryset (all expenses by default)."""
    qs = Expense.objects.all() if expenses is None else expenses

    overall = qs.aggregate(total=Sum("amount"), count=Count("id"))
    by_category = {
        row["category"]: row["total"]
        for row in qs.order_by().values("category").annotate(total=Sum("amount")).order_by("category")
    }
    by_month = {
        row["month"].strftime("%Y-%m"): row["total"]
        for row in qs.order_by()
        .annotate(month=TruncMonth("date"))
        .values("month")
        .annotate(total=Sum("amount"))
        .order_by("month")
    }
    return ExpenseSummary(
        total=overall["total"] or ZERO,
        count=overall["count"] or 0,
        by_category=by_category,
        by_month=by_month,
    )


# ============================================================
# BILLING
# ============================================================

def _expense_lines(expenses: Iterable[Expense], markup: Decimal) -> list[dict]:
    factor = Decimal("1") + markup / Decimal("100")
    return [
        {
            "description": f"{expense.get_category_display()}: {expense.description}",
            "quantity": 1,
            "rate": money(expense.amount * factor),
        }
        for expense in expenses
    ]


@transaction.atomic
def generate_project_invoice(
    project: Project,
    *,
    markup_percentage=0,
    expense_ids: Iterable | None = None,
    extra_lines: Iterable = (),
    discount_amount=0,
    tax_amount=0,
    due_date=None,
    valid_until=None,
    draft: bool = False,
    as_quotation: bool = False,
    notes: str = "",
    created_by: str = "",
    max_attempts: int | None = None,
):
    """
    Bill a project's unbilled expenses, plus any extra invoice lines.

    Each expense becomes one manual line "<Category>: <description>" priced
    at amount * (1 + markup_percentage / 100). As an invoice, the expenses
    are marked billed by it. As a quotation, nothing is marked; the
    expenses stay billable until an invoice bills them.
    """
    project = _lock(project)
    _ensure_open(project)
    if project.customer_id is None:
        raise ProjectValidationError(f"Project {project.project_number} has no customer to bill")

    markup = _amount(markup_percentage, "markup_percentage")

    expenses = unbilled_expenses(project)
    if expense_ids is not None:
        try:
            wanted = {uuid.UUID(str(pk)) for pk in expense_ids}
        except ValueError as exc:
            raise ProjectValidationError("expense_ids must be expense UUIDs") from exc
        expenses = expenses.filter(pk__in=wanted)
        if expenses.count() != len(wanted):
            raise ProjectValidationError("Some expenses are already billed or belong to another project")
    expenses = list(expenses)

    lines = _expense_lines(expenses, markup) + list(extra_lines or ())
    if not lines:
        raise ProjectValidationError(f"Project {project.project_number} has nothing to bill")

    common = dict(
        customer=project.customer,
        lines=lines,
        discount_amount=discount_amount,
        tax_amount=tax_amount,
        notes=notes or f"Project {project.project_number}: {project.title}",
        created_by=created_by,
        project=project,
    )

    if as_quotation:
        document = create_quotation(valid_until=valid_until, **common)
        number = document.quotation_number
        action = ProjectAuditLog.Action.QUOTATION_GENERATED
    else:
        document = create_invoice(due_date=due_date, draft=draft, max_attempts=max_attempts, **common)
        Expense.objects.filter(pk__in=[e.pk for e in expenses]).update(invoice=document)
        number = document.invoice_number
        action = ProjectAuditLog.Action.INVOICE_GENERATED

    log_project_event(
        project,
        action,
        f"Generated {number} for {document.total_amount}",
        actor=created_by,
        metadata={
            "document_id": document.pk,
            "document_number": number,
            "expense_ids": [e.pk for e in expenses],
            "markup_percentage": markup,
            "total": document.total_amount,
        },
    )
    return document
