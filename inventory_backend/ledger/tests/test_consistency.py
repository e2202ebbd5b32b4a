# ledger/tests/test_consistency.py

from __future__ import annotations

import json
from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.test import TestCase

from core.tests.builders import day, make_customer, make_lot, make_variant, seed_entries
from ledger.models import LedgerEntry
from ledger.services.consistency import ERROR, INFO, verify_ledger_consistency
from sales.models import Invoice, Payment
from sales.services.invoice_service import cancel_invoice, create_invoice, record_payment


def _by_type(issues):
    return {issue.type: issue for issue in issues}


class LedgerConsistencyTests(TestCase):
    """Read-only checks: nothing here repairs data."""

    def setUp(self):
        self.customer = make_customer()
        self.variant = make_variant()
        make_lot(self.variant, 20, "2.00", day(1))

    def _invoice(self, quantity=2):
        return create_invoice(
            customer=self.customer,
            lines=[{"variant": self.variant, "quantity": quantity, "rate": "10.00"}],
        )

    def test_clean_data_has_no_issues(self):
        invoice = self._invoice()
        record_payment(invoice, amount="5.00")

        self.assertEqual(verify_ledger_consistency(), [])

    def test_stale_balances_and_malformed_rows(self):
        seed_entries(
            self.customer,
            [
                {"date": day(1), "debit": "50", "balance": "10"},
                {"date": day(2), "debit": "5", "credit": "5"},
            ],
        )

        issues = _by_type(verify_ledger_consistency())

        self.assertEqual(issues["stale_running_balances"].count, 1)
        self.assertEqual(issues["malformed_entries"].severity, ERROR)
        self.assertIn("summary_balance_mismatch", issues)

    def test_cancelled_invoice_entries_are_informational(self):
        cancel_invoice(self._invoice())

        issues = _by_type(verify_ledger_consistency())

        self.assertEqual(issues["cancelled_invoice_entries"].severity, INFO)
        self.assertEqual(issues["cancelled_invoice_entries"].count, 1)

    def test_payment_without_ledger_entry(self):
        invoice = self._invoice()
        Payment.objects.create(invoice=invoice, amount=Decimal("1.00"))

        issues = _by_type(verify_ledger_consistency())

        self.assertEqual(issues["mismatched_payments"].details["examples"], [invoice.invoice_number])

    def test_paid_amount_with_wrong_status(self):
        invoice = self._invoice()
        Invoice.objects.filter(pk=invoice.pk).update(paid_amount=Decimal("5.00"))

        self.assertIn("incorrect_invoice_status", _by_type(verify_ledger_consistency()))

    def test_duplicate_numbers_across_customers_are_impossible(self):
        self._invoice()
        numbers = LedgerEntry.objects.values_list("transaction_number", flat=True)
        self.assertEqual(len(numbers), len(set(numbers)))
        self.assertNotIn("duplicate_transaction_numbers", _by_type(verify_ledger_consistency()))


class VerifyCommandTests(TestCase):
    def setUp(self):
        self.customer = make_customer()

    def test_clean_run(self):
        out = StringIO()
        call_command("verify_ledger_consistency", stdout=out)
        self.assertIn("No consistency issues found", out.getvalue())

    def test_json_output_and_strict_exit(self):
        seed_entries(self.customer, [{"date": day(1), "debit": "50", "balance": "10"}])

        out = StringIO()
        call_command("verify_ledger_consistency", "--json", stdout=out)
        types = [issue["type"] for issue in json.loads(out.getvalue())]
        self.assertIn("stale_running_balances", types)

        with self.assertRaises(SystemExit):
            call_command("verify_ledger_consistency", "--strict", stdout=StringIO())
