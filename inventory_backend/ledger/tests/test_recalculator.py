# ledger/tests/test_recalculator.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase

from ledger.services.recalculator import (
    EntrySnapshot,
    canonical_payment_number,
    malformed_reason,
    recalculate,
)

CUSTOMER = "cust-1"
BASE = datetime(2025, 1, 1, 9, 0, tzinfo=dt_timezone.utc)


def _entry(entry_id, day, *, debit="0", credit="0", balance="0", customer=CUSTOMER,
           transaction_type="adjustment", transaction_id="", number=None, created_offset=0,
           source_number=""):
    date = BASE + timedelta(days=day - 1)
    return EntrySnapshot(
        id=entry_id,
        customer_id=customer,
        transaction_type=transaction_type,
        transaction_id=transaction_id,
        transaction_number=number or f"N-{entry_id}",
        date=date,
        created_at=date + timedelta(seconds=created_offset),
        debit=Decimal(debit),
        credit=Decimal(credit),
        balance=Decimal(balance),
        source_number=source_number,
    )


class RecalculateTests(SimpleTestCase):
    """
    Pure ledger recalculation.

    GUARANTEES:
    - Balances follow (date, created_at, id), whatever the input order
    - Only changed entries are reported
    - Recalculating corrected output changes nothing
    """

    def test_unsorted_entries_get_running_balances(self):
        entries = [
            _entry(2, 2, credit="50", balance="999"),
            _entry(1, 1, debit="100", balance="999"),
        ]

        result = recalculate(CUSTOMER, entries)

        self.assertEqual([e.id for e in result.entries], [1, 2])
        self.assertEqual([e.balance for e in result.entries], [Decimal("100"), Decimal("50")])
        self.assertEqual(result.changed_count, 2)
        self.assertEqual(result.final_balance, Decimal("50"))

    def test_correct_entries_are_not_reported(self):
        entries = [
            _entry(1, 1, debit="100", balance="100"),
            _entry(2, 2, credit="30", balance="999"),
        ]

        result = recalculate(CUSTOMER, entries)

        self.assertEqual([c.entry_id for c in result.corrections], [2])
        self.assertEqual(result.corrections[0].old_balance, Decimal("999"))
        self.assertEqual(result.corrections[0].new_balance, Decimal("70"))
        self.assertEqual(result.balances_fixed, 1)
        self.assertEqual(result.numbers_fixed, 0)

    def test_recalculation_is_idempotent(self):
        entries = [
            _entry(3, 3, debit="5", balance="1"),
            _entry(1, 1, debit="100", balance="2"),
            _entry(2, 2, credit="40", balance="3"),
        ]

        first = recalculate(CUSTOMER, entries)
        second = recalculate(CUSTOMER, first.entries)

        self.assertEqual(second.changed_count, 0)
        self.assertEqual(second.entries, first.entries)

    def test_result_does_not_depend_on_input_order(self):
        entries = [
            _entry(1, 1, debit="100"),
            _entry(2, 1, credit="25", created_offset=5),
            _entry(3, 2, debit="10"),
        ]

        forward = recalculate(CUSTOMER, entries)
        backward = recalculate(CUSTOMER, list(reversed(entries)))

        self.assertEqual(forward.entries, backward.entries)
        self.assertEqual(
            [e.balance for e in forward.entries],
            [Decimal("100"), Decimal("75"), Decimal("85")],
        )

    def test_same_timestamp_breaks_tie_on_id(self):
        entries = [_entry(7, 1, credit="10"), _entry(4, 1, debit="50")]
        result = recalculate(CUSTOMER, entries)
        self.assertEqual([(e.id, e.balance) for e in result.entries], [(4, Decimal("50")), (7, Decimal("40"))])

    def test_empty_history(self):
        result = recalculate(CUSTOMER, [])
        self.assertEqual(result.changed_count, 0)
        self.assertEqual(result.final_balance, Decimal("0.00"))

    def test_shared_payment_numbers_are_renumbered(self):
        entries = [
            _entry(1, 1, debit="300", balance="300", transaction_type="invoice", transaction_id="INV7"),
            _entry(2, 2, credit="100", balance="200", transaction_type="payment",
                   transaction_id="INV7", number="PAY-DUP"),
            _entry(3, 3, credit="100", balance="100", transaction_type="payment",
                   transaction_id="INV7", number="PAY-DUP-B"),
        ]

        result = recalculate(CUSTOMER, entries)

        numbers = {e.id: e.transaction_number for e in result.entries}
        self.assertEqual(numbers[2], "PAY-INV7-1")
        self.assertEqual(numbers[3], "PAY-INV7-2")
        self.assertEqual(numbers[1], "N-1")
        self.assertEqual(result.numbers_fixed, 2)
        self.assertEqual(result.balances_fixed, 0)

    def test_single_payment_keeps_its_number(self):
        entries = [
            _entry(1, 1, credit="10", balance="-10", transaction_type="payment",
                   transaction_id="abc", number="LEGACY-1"),
        ]
        self.assertEqual(recalculate(CUSTOMER, entries).changed_count, 0)

    def test_payment_numbering_follows_created_at(self):
        tid = "7f1c2d9e-1111-4c3b-a0f1-00000000abcd"
        entries = [
            _entry(5, 3, credit="5", transaction_type="payment", transaction_id=tid, created_offset=-1000000),
            _entry(6, 2, credit="5", transaction_type="payment", transaction_id=tid),
        ]

        numbers = {e.id: e.transaction_number for e in recalculate(CUSTOMER, entries).entries}

        self.assertEqual(numbers[6], "PAY-7F1C2D9E-1111-4C3B-A0F1-00000000ABCD-2")
        self.assertEqual(numbers[5], "PAY-7F1C2D9E-1111-4C3B-A0F1-00000000ABCD-1")

    def test_payment_groups_with_a_common_id_tail_stay_distinct(self):
        first = "7f1c2d9e-1111-4c3b-a0f1-111111abcdef"
        second = "7f1c2d9e-2222-4c3b-a0f1-222222abcdef"
        entries = [
            _entry(1, 1, credit="5", transaction_type="payment", transaction_id=first, source_number="INV-25-001"),
            _entry(2, 2, credit="5", transaction_type="payment", transaction_id=first, source_number="INV-25-001"),
            _entry(3, 3, credit="5", transaction_type="payment", transaction_id=second, source_number="INV-25-002"),
            _entry(4, 4, credit="5", transaction_type="payment", transaction_id=second, source_number="INV-25-002"),
        ]

        numbers = [e.transaction_number for e in recalculate(CUSTOMER, entries).entries]

        self.assertEqual(numbers, ["PAY-INV-25-001-1", "PAY-INV-25-001-2", "PAY-INV-25-002-1", "PAY-INV-25-002-2"])

    def test_malformed_entries_are_skipped_and_reported(self):
        entries = [
            _entry(1, 1, debit="100"),
            _entry(2, 2, debit="10", credit="10"),
            _entry(3, 3),
            _entry(4, 4, debit="-5"),
            _entry(5, 5, debit="20", customer="someone-else"),
            _entry(6, 6, credit="30"),
        ]

        result = recalculate(CUSTOMER, entries)

        self.assertEqual([e.entry_id for e in result.errors], [2, 3, 4, 5])
        self.assertEqual([e.id for e in result.entries], [1, 6])
        self.assertEqual(result.final_balance, Decimal("70"))
        self.assertIn("both debit and credit", str(result.errors[0]))


class HelperTests(SimpleTestCase):
    def test_canonical_payment_number_uses_the_whole_reference(self):
        self.assertEqual(canonical_payment_number("INV-25-120", 2), "PAY-INV-25-120-2")
        self.assertEqual(canonical_payment_number("invoice-abc123def", 2), "PAY-INVOICE-ABC123DEF-2")
        self.assertEqual(canonical_payment_number("INV7", 1), "PAY-INV7-1")

    def test_malformed_reason_accepts_one_sided_entries(self):
        self.assertIsNone(malformed_reason(_entry(1, 1, debit="1"), CUSTOMER))
        self.assertIsNone(malformed_reason(_entry(1, 1, credit="1"), CUSTOMER))
        self.assertIsNotNone(malformed_reason(_entry(1, 1), CUSTOMER))
