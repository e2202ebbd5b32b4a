# ledger/tests/test_summary.py

from __future__ import annotations

from decimal import Decimal
from io import StringIO
from types import SimpleNamespace

from django.core.management import call_command
from django.test import SimpleTestCase, TestCase

from core.tests.builders import day, make_customer, make_lot, make_variant, seed_entries
from ledger.models import Customer, LedgerEntry
from ledger.services.summary_service import (
    get_customer_summary,
    latest_entry,
    refresh_all_customer_financials,
    refresh_customer_financials,
    summarize_entries,
)
from sales.services.invoice_service import cancel_invoice, create_invoice, record_payment


class SummarizeEntriesTests(SimpleTestCase):
    def test_balance_is_debit_minus_credit(self):
        entries = [
            SimpleNamespace(debit=Decimal("100"), credit=Decimal("0")),
            SimpleNamespace(debit=Decimal("0"), credit=Decimal("35.50")),
        ]
        summary = summarize_entries("c1", entries)

        self.assertEqual(summary.total_debit, Decimal("100.00"))
        self.assertEqual(summary.total_credit, Decimal("35.50"))
        self.assertEqual(summary.current_balance, Decimal("64.50"))
        self.assertEqual(summary.entry_count, 2)

    def test_empty(self):
        self.assertEqual(summarize_entries("c1", []).current_balance, Decimal("0.00"))


class CustomerSummaryTests(TestCase):
    def setUp(self):
        self.customer = make_customer()

    def test_summary_matches_latest_balance_after_reconcile(self):
        seed_entries(
            self.customer,
            [
                {"date": day(1), "debit": "100", "balance": "100"},
                {"date": day(4), "credit": "30", "balance": "70"},
                {"date": day(2), "debit": "5", "balance": "105"},
            ],
        )
        # Stored balances above are out of timeline order; reconcile first.
        call_command("fix_ledger_balances", stdout=StringIO())

        summary = get_customer_summary(self.customer)
        self.assertEqual(summary.current_balance, Decimal("75.00"))
        self.assertEqual(latest_entry(self.customer).balance, summary.current_balance)

    def test_no_entries(self):
        self.assertIsNone(latest_entry(self.customer))
        self.assertEqual(get_customer_summary(self.customer).entry_count, 0)


class RefreshFinancialsTests(TestCase):
    """
    Cached customer totals.

    GUARANTEES:
    - Derived only from ledger entries
    - Invoice entries of cancelled invoices are excluded
    """

    def setUp(self):
        self.customer = make_customer()
        self.variant = make_variant()
        make_lot(self.variant, 50, "2.00", day(1))

    def _invoice(self, quantity, when):
        return create_invoice(
            customer=self.customer,
            lines=[{"variant": self.variant, "quantity": quantity, "rate": "10.00"}],
            date=when,
        )

    def test_cancelled_invoice_is_excluded(self):
        kept = self._invoice(3, day(5))
        dropped = self._invoice(2, day(6))
        record_payment(kept, amount="10.00", date=day(7))

        cancel_invoice(dropped)
        customer = refresh_customer_financials(self.customer)

        self.assertEqual(customer.total_invoiced, Decimal("30.00"))
        self.assertEqual(customer.total_paid, Decimal("10.00"))
        self.assertEqual(customer.outstanding_balance, Decimal("20.00"))
        self.assertEqual(customer.last_invoice_date, day(5))
        self.assertEqual(customer.last_payment_date, day(7))
        self.assertEqual(LedgerEntry.objects.filter(customer=self.customer).count(), 3)

    def test_refresh_all_repairs_drifted_cache(self):
        self._invoice(1, day(5))
        Customer.objects.filter(pk=self.customer.pk).update(total_invoiced=Decimal("999.00"))
        other = make_customer("Nobody")

        updated, errors = refresh_all_customer_financials()

        self.assertEqual((updated, errors), (2, []))
        self.customer.refresh_from_db()
        other.refresh_from_db()
        self.assertEqual(self.customer.total_invoiced, Decimal("10.00"))
        self.assertEqual(other.outstanding_balance, Decimal("0.00"))

    def test_command_reports_progress(self):
        out = StringIO()
        call_command("recalculate_customer_financials", "--customer", str(self.customer.pk), stdout=out)
        self.assertIn("Recalculated financials for 1 of 1 customers", out.getvalue())
