# sales/tests/test_profit.py

from decimal import Decimal

from django.test import SimpleTestCase

from sales.services.profit import calculate_invoice_profit, is_invoice_custom


class ProfitTests(SimpleTestCase):
    def test_profit_is_margin_minus_discount(self):
        items = [
            {"rate": "15.00", "original_rate": "11.00", "quantity": 10},
            {"rate": "8.00", "original_rate": "5.50", "quantity": 2},
        ]
        self.assertEqual(calculate_invoice_profit(items, "5.00"), Decimal("40.00"))

    def test_missing_cost_counts_as_zero(self):
        items = [{"rate": "40.00", "original_rate": None, "quantity": 1}]
        self.assertEqual(calculate_invoice_profit(items), Decimal("40.00"))

    def test_loss_is_negative(self):
        items = [{"rate": "9.00", "original_rate": "10.00", "quantity": 3}]
        self.assertEqual(calculate_invoice_profit(items), Decimal("-3.00"))

    def test_custom_flag(self):
        at_cost = {"rate": "10.00", "original_rate": "10.01", "quantity": 1}
        marked_up = {"rate": "10.50", "original_rate": "10.00", "quantity": 1}
        manual = {"rate": "10.00", "original_rate": None, "quantity": 1}

        self.assertFalse(is_invoice_custom([at_cost]))
        self.assertTrue(is_invoice_custom([at_cost, marked_up]))
        self.assertTrue(is_invoice_custom([manual]))
        self.assertFalse(is_invoice_custom([]))
