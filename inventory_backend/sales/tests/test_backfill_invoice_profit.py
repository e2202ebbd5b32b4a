# sales/tests/test_backfill_invoice_profit.py

from __future__ import annotations

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from core.tests.builders import day, make_customer, make_lot, make_variant
from sales.models import Invoice, InvoiceItem
from sales.services.invoice_service import create_invoice


def _legacy_invoice(customer, *lines):
    total = sum((Decimal(q) * Decimal(r) for q, r, *_ in lines), Decimal("0"))
    invoice = Invoice.objects.create(
        customer=customer,
        date=day(3),
        status=Invoice.Status.ISSUED,
        subtotal=total,
        total_amount=total,
        stock_deducted=True,
    )
    for quantity, rate, variant, lot in lines:
        InvoiceItem.objects.create(
            invoice=invoice,
            variant=variant,
            purchase_lot=lot,
            description="legacy line",
            quantity=quantity,
            rate=Decimal(rate),
        )
    return invoice


class BackfillInvoiceProfitTests(TestCase):
    """
    Legacy profit backfill.

    GUARANTEES:
    - Costs come from the line's own lot consumptions or linked lot
    - Unmatched stocked lines are reported, never guessed
    - Dry run writes nothing
    """

    def setUp(self):
        self.customer = make_customer()
        self.variant = make_variant()
        self.lot = make_lot(self.variant, 20, "4.00", day(1))

    def _run(self, *args):
        out = StringIO()
        call_command("backfill_invoice_profit", *args, stdout=out)
        return out.getvalue()

    def test_fills_cost_from_recorded_allocations(self):
        invoice = create_invoice(
            customer=self.customer,
            lines=[{"variant": self.variant, "quantity": 3, "rate": "10.00"}],
        )
        InvoiceItem.objects.filter(invoice=invoice).update(original_rate=None)
        Invoice.objects.filter(pk=invoice.pk).update(profit=None)

        output = self._run()

        invoice.refresh_from_db()
        self.assertEqual(invoice.items.get().original_rate, Decimal("4.00"))
        self.assertEqual(invoice.profit, Decimal("18.00"))
        self.assertIn("Invoices updated:           1", output)

    def test_falls_back_to_linked_lot(self):
        invoice = _legacy_invoice(self.customer, (2, "9.00", self.variant, self.lot))

        self._run()

        invoice.refresh_from_db()
        self.assertEqual(invoice.items.get().original_rate, Decimal("4.00"))
        self.assertEqual(invoice.profit, Decimal("10.00"))

    def test_unmatched_lines_are_skipped_and_reported(self):
        invoice = _legacy_invoice(
            self.customer,
            (2, "9.00", self.variant, self.lot),
            (1, "9.00", self.variant, None),
        )

        output = self._run("--report-missing")

        invoice.refresh_from_db()
        self.assertIsNone(invoice.profit)
        self.assertIn("Invoices skipped (no lot):  1", output)
        self.assertIn(f"- {invoice.invoice_number}", output)

    def test_dry_run_saves_nothing(self):
        invoice = _legacy_invoice(self.customer, (2, "9.00", self.variant, self.lot))

        output = self._run("--dry-run")

        invoice.refresh_from_db()
        self.assertIsNone(invoice.profit)
        self.assertIsNone(invoice.items.get().original_rate)
        self.assertIn("DRY RUN complete", output)

    def test_second_run_changes_nothing(self):
        _legacy_invoice(self.customer, (2, "9.00", self.variant, self.lot))
        self._run()

        output = self._run()
        self.assertIn("Lines updated:              0", output)
        self.assertIn("Invoices updated:           0", output)
