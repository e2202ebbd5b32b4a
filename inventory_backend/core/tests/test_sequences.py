# core/tests/test_sequences.py

from decimal import Decimal

from django.test import SimpleTestCase, TestCase

from core.models import SequenceCounter
from core.money import money
from core.sequences import generate_id, next_sequence


class SequenceTests(TestCase):
    """Document ids are PREFIX-YY-NNN, counted per prefix and year."""

    def test_ids_increment_per_prefix(self):
        self.assertEqual(generate_id("INV", year=2025), "INV-25-001")
        self.assertEqual(generate_id("INV", year=2025), "INV-25-002")
        self.assertEqual(generate_id("PR", year=2025), "PR-25-001")

    def test_numbering_restarts_each_year(self):
        generate_id("CU", year=2025)
        self.assertEqual(generate_id("CU", year=2026), "CU-26-001")

    def test_prefix_is_normalized(self):
        self.assertEqual(generate_id(" adj ", year=2025), "ADJ-25-001")
        self.assertTrue(SequenceCounter.objects.filter(key="adj-2025").exists())

    def test_sequence_grows_past_three_digits(self):
        SequenceCounter.objects.create(key="dn-2025", sequence=999)
        self.assertEqual(generate_id("DN", year=2025), "DN-25-1000")

    def test_blank_inputs_are_rejected(self):
        with self.assertRaises(ValueError):
            generate_id("")
        with self.assertRaises(ValueError):
            next_sequence("  ")


class MoneyTests(SimpleTestCase):
    def test_rounds_half_up_to_two_places(self):
        self.assertEqual(money("10.005"), Decimal("10.01"))
        self.assertEqual(money(0.1), Decimal("0.10"))

    def test_empty_values_are_zero(self):
        self.assertEqual(money(None), Decimal("0.00"))
        self.assertEqual(money(""), Decimal("0.00"))

    def test_rejects_garbage(self):
        for bad in ("abc", True):
            with self.subTest(value=bad):
                with self.assertRaises(ValueError):
                    money(bad)
