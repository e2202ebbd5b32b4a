# projects/tests/test_project_service.py

from __future__ import annotations

from datetime import date
from decimal import Decimal

from django.test import TestCase

from core.tests.builders import day, make_customer, make_lot, make_variant
from projects.models import Expense, Project, ProjectAuditLog
from projects.services.exceptions import (
    ExpenseStateError,
    ProjectStateError,
    ProjectValidationError,
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
from purchases.models import PurchaseLot
from sales.models import Invoice, Quotation
from sales.services.invoice_service import cancel_invoice, record_payment


class ProjectTestCase(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.project = create_project(
            title="Office fit-out",
            customer=self.customer,
            budget="1000.00",
            created_by="pm",
        )

    def expense(self, amount, category=Expense.Category.MATERIALS, **kwargs):
        kwargs.setdefault("description", f"{category} spend")
        return add_expense(project=self.project, amount=amount, category=category, added_by="pm", **kwargs)

    def actions(self):
        return list(self.project.audit_logs.order_by("created_at", "id").values_list("action", flat=True))


class ProjectLifecycleTests(ProjectTestCase):
    """
    GUARANTEES:
    - Projects are numbered PRJ-YY-NNN
    - Every change is audited
    - A cancelled project is frozen
    """

    def test_create_numbers_and_audits(self):
        self.assertRegex(self.project.project_number, r"^PRJ-\d{2}-\d{3}$")
        self.assertEqual(self.project.status, Project.Status.PLANNING)
        self.assertEqual(self.actions(), [ProjectAuditLog.Action.PROJECT_CREATED])

    def test_input_validation(self):
        with self.assertRaises(ProjectValidationError):
            create_project(title="  ")
        with self.assertRaises(ProjectValidationError):
            create_project(title="Negative", budget="-1")
        with self.assertRaises(ProjectValidationError):
            create_project(title="Backwards", start_date=date(2025, 3, 1), end_date=date(2025, 2, 1))

    def test_update_and_status_changes(self):
        update_project(self.project, budget="1500", actor="pm")
        change_project_status(self.project, Project.Status.ACTIVE, actor="pm")

        self.project.refresh_from_db()
        self.assertEqual(self.project.budget, Decimal("1500.00"))
        self.assertEqual(self.project.status, Project.Status.ACTIVE)
        self.assertEqual(
            self.actions(),
            [
                ProjectAuditLog.Action.PROJECT_CREATED,
                ProjectAuditLog.Action.PROJECT_UPDATED,
                ProjectAuditLog.Action.STATUS_CHANGED,
            ],
        )

        with self.assertRaises(ProjectValidationError):
            update_project(self.project, project_number="PRJ-99-999")

    def test_cancelled_project_is_frozen(self):
        change_project_status(self.project, Project.Status.CANCELLED)

        with self.assertRaises(ProjectStateError):
            change_project_status(self.project, Project.Status.ACTIVE)
        with self.assertRaises(ProjectStateError):
            update_project(self.project, title="Renamed")
        with self.assertRaises(ProjectStateError):
            self.expense("10.00")


class ExpenseTests(ProjectTestCase):
    """
    GUARANTEES:
    - Expenses are numbered EXP-YY-NNN and may have no project
    - Billed expenses cannot be edited or deleted
    - Cancelling the billing invoice releases them
    """

    def test_general_expense_without_project(self):
        expense = add_expense(description="Rent", amount="500.00", category=Expense.Category.RENT)

        self.assertRegex(expense.expense_number, r"^EXP-\d{2}-\d{3}$")
        self.assertIsNone(expense.project)
        self.assertFalse(ProjectAuditLog.objects.filter(action=ProjectAuditLog.Action.EXPENSE_ADDED).exists())

    def test_unknown_category_and_negative_amount(self):
        with self.assertRaises(ProjectValidationError):
            self.expense("10.00", category="snacks")
        with self.assertRaises(ProjectValidationError):
            self.expense("-10.00")

    def test_edit_and_delete_unbilled(self):
        expense = self.expense("40.00")

        expense = update_expense(expense, amount="45.00", actor="pm")
        self.assertEqual(expense.amount, Decimal("45.00"))

        delete_expense(expense, actor="pm")
        self.assertFalse(Expense.objects.filter(pk=expense.pk).exists())
        self.assertEqual(
            self.actions()[-3:],
            [
                ProjectAuditLog.Action.EXPENSE_ADDED,
                ProjectAuditLog.Action.EXPENSE_UPDATED,
                ProjectAuditLog.Action.EXPENSE_DELETED,
            ],
        )

    def test_billed_expense_is_frozen_until_invoice_cancelled(self):
        expense = self.expense("40.00")
        invoice = generate_project_invoice(self.project)

        with self.assertRaises(ExpenseStateError):
            update_expense(expense, amount="1.00")
        with self.assertRaises(ExpenseStateError):
            delete_expense(expense)

        cancel_invoice(invoice, reason="re-bill")

        update_expense(expense, amount="41.00")
        self.assertEqual(Expense.objects.get(pk=expense.pk).amount, Decimal("41.00"))


class ProjectBillingTests(ProjectTestCase):
    """
    GUARANTEES:
    - Each unbilled expense becomes one manual line with the markup applied
    - Billed expenses are never billed twice
    - Extra stocked lines go through FIFO like any invoice
    - A quotation marks nothing billed
    """

    def test_invoice_bills_expenses_with_markup(self):
        labor = self.expense("100.00", Expense.Category.LABOR, description="Wiring")
        self.expense("50.00", Expense.Category.MATERIALS, description="Cable")

        invoice = generate_project_invoice(self.project, markup_percentage="10", created_by="pm")

        self.assertEqual(invoice.status, Invoice.Status.ISSUED)
        self.assertEqual(invoice.project, self.project)
        self.assertEqual(invoice.customer, self.customer)
        self.assertEqual(invoice.total_amount, Decimal("165.00"))
        self.assertEqual(
            sorted(invoice.items.values_list("description", "rate")),
            [("Labor: Wiring", Decimal("110.00")), ("Materials: Cable", Decimal("55.00"))],
        )
        self.assertEqual(Expense.objects.get(pk=labor.pk).invoice, invoice)
        self.assertEqual(self.actions()[-1], ProjectAuditLog.Action.INVOICE_GENERATED)

        with self.assertRaises(ProjectValidationError):
            generate_project_invoice(self.project)

    def test_selected_expenses_only(self):
        first = self.expense("10.00")
        second = self.expense("20.00")

        invoice = generate_project_invoice(self.project, expense_ids=[first.pk])

        self.assertEqual(invoice.total_amount, Decimal("10.00"))
        self.assertIsNone(Expense.objects.get(pk=second.pk).invoice)

        with self.assertRaises(ProjectValidationError):
            generate_project_invoice(self.project, expense_ids=[first.pk, second.pk])

    def test_extra_stock_lines_use_fifo(self):
        variant = make_variant()
        lot = make_lot(variant, 5, "10.00", day(1))
        self.expense("30.00")

        invoice = generate_project_invoice(
            self.project,
            extra_lines=[{"variant": variant, "quantity": 2, "rate": "15.00"}],
        )

        self.assertEqual(invoice.total_amount, Decimal("60.00"))
        self.assertEqual(PurchaseLot.objects.get(pk=lot.pk).remaining_quantity, 3)

    def test_quotation_leaves_expenses_billable(self):
        expense = self.expense("80.00")

        quotation = generate_project_invoice(self.project, as_quotation=True, valid_until=date(2030, 1, 1))

        self.assertIsInstance(quotation, Quotation)
        self.assertEqual(quotation.project, self.project)
        self.assertEqual(quotation.total_amount, Decimal("80.00"))
        self.assertIsNone(Expense.objects.get(pk=expense.pk).invoice)
        self.assertEqual(self.actions()[-1], ProjectAuditLog.Action.QUOTATION_GENERATED)

    def test_project_without_customer_cannot_be_billed(self):
        project = create_project(title="Internal")
        add_expense(project=project, description="Paint", amount="5.00")

        with self.assertRaises(ProjectValidationError):
            generate_project_invoice(project)


class ProjectBudgetTests(ProjectTestCase):
    """
    GUARANTEES:
    - Spend is split into billed and unbilled
    - Cancelled invoices count for neither invoiced nor billed totals
    """

    def test_budget_report(self):
        self.expense("300.00")
        self.expense("200.00")
        invoice = generate_project_invoice(self.project, markup_percentage="20")
        record_payment(invoice, amount="100.00")
        self.expense("600.00")

        report = get_project_budget(self.project)

        self.assertEqual(report.total_expenses, Decimal("1100.00"))
        self.assertEqual(report.billed_expenses, Decimal("500.00"))
        self.assertEqual(report.unbilled_expenses, Decimal("600.00"))
        self.assertEqual(report.invoiced_total, Decimal("600.00"))
        self.assertEqual(report.paid_total, Decimal("100.00"))
        self.assertEqual(report.remaining_budget, Decimal("-100.00"))
        self.assertEqual(report.utilization, Decimal("110.00"))
        self.assertTrue(report.over_budget)

    def test_cancelled_invoice_is_not_counted(self):
        self.expense("300.00")
        cancel_invoice(generate_project_invoice(self.project))

        report = get_project_budget(self.project)

        self.assertEqual(report.invoiced_total, Decimal("0.00"))
        self.assertEqual(report.billed_expenses, Decimal("0.00"))
        self.assertFalse(report.over_budget)

    def test_no_budget_has_no_utilization(self):
        project = create_project(title="Open ended")
        self.assertIsNone(get_project_budget(project).utilization)


class ExpenseSummaryTests(TestCase):
    def test_totals_by_category_and_month(self):
        add_expense(description="Fuel", amount="30.00", category=Expense.Category.FUEL, date=date(2025, 1, 5))
        add_expense(description="Fuel", amount="20.00", category=Expense.Category.FUEL, date=date(2025, 2, 5))
        add_expense(description="Rent", amount="500.00", category=Expense.Category.RENT, date=date(2025, 2, 1))

        summary = summarize_expenses()

        self.assertEqual(summary.total, Decimal("550.00"))
        self.assertEqual(summary.count, 3)
        self.assertEqual(summary.by_category, {"fuel": Decimal("50.00"), "rent": Decimal("500.00")})
        self.assertEqual(summary.by_month, {"2025-01": Decimal("30.00"), "2025-02": Decimal("520.00")})
