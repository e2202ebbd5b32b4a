# ledger/tests/test_posting.py

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.test import TestCase

from core.tests.builders import day, make_customer
from ledger.models import LedgerEntry
from ledger.services.exceptions import InvalidLedgerEntryError
from ledger.services.posting import record_entry

T = LedgerEntry.TransactionType


class RecordEntryTests(TestCase):
    """
    Posting new entries.

    GUARANTEES:
    - balance = previous balance + debit - credit
    - Back-dated entries re-flow later balances
    - Cached customer totals follow every posting
    """

    def setUp(self):
        self.customer = make_customer()

    def _post(self, **kwargs):
        kwargs.setdefault("transaction_type", T.ADJUSTMENT)
        kwargs.setdefault("description", "manual")
        return record_entry(customer=self.customer, **kwargs)

    def test_running_balance_accumulates(self):
        first = self._post(debit="100", date=day(1))
        second = self._post(credit="30", date=day(2))

        self.assertEqual(first.balance, Decimal("100.00"))
        self.assertEqual(second.balance, Decimal("70.00"))
        self.assertTrue(first.transaction_number.startswith("ADJ-"))

    def test_back_dated_entry_reflows_later_balances(self):
        self._post(debit="100", date=day(1))
        later = self._post(credit="30", date=day(5))

        middle = self._post(debit="50", date=day(3))

        later.refresh_from_db()
        self.assertEqual(middle.balance, Decimal("150.00"))
        self.assertEqual(later.balance, Decimal("120.00"))

    def test_customer_financials_are_refreshed(self):
        self._post(debit="100", date=day(1), transaction_type=T.DEBIT_NOTE)
        self._post(credit="40", date=day(2), transaction_type=T.CREDIT_NOTE)

        self.customer.refresh_from_db()
        self.assertEqual(self.customer.total_invoiced, Decimal("100.00"))
        self.assertEqual(self.customer.total_paid, Decimal("40.00"))
        self.assertEqual(self.customer.outstanding_balance, Decimal("60.00"))

    def test_payment_numbers_count_per_source_document(self):
        first = self._post(credit="10", transaction_type=T.PAYMENT, transaction_id="doc-00123456")
        second = self._post(credit="10", transaction_type=T.PAYMENT, transaction_id="doc-00123456")

        self.assertEqual(first.transaction_number, "PAY-DOC-00123456-1")
        self.assertEqual(second.transaction_number, "PAY-DOC-00123456-2")

    def test_rejects_two_sided_or_empty_entries(self):
        for kwargs in ({"debit": "10", "credit": "10"}, {}, {"debit": "-5"}):
            with self.subTest(**kwargs):
                with self.assertRaises(InvalidLedgerEntryError):
                    self._post(**kwargs)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_payment_needs_source_document(self):
        with self.assertRaises(InvalidLedgerEntryError):
            self._post(credit="10", transaction_type=T.PAYMENT)

    def test_entries_are_append_only(self):
        entry = self._post(debit="10")

        entry.description = "edited"
        with self.assertRaises(ValidationError):
            entry.save()
        with self.assertRaises(ValidationError):
            entry.delete()
