# sales/tests/test_quotation_service.py

from __future__ import annotations

from datetime import date
from decimal import Decimal
from unittest import mock

from django.test import TestCase

from core.tests.builders import day, make_customer, make_lot, make_variant
from ledger.models import LedgerEntry
from purchases.models import PurchaseLot
from purchases.services.stock_service import InsufficientStockError
from sales.models import Invoice, Quotation
from sales.services.exceptions import InvoiceValidationError, QuotationStateError
from sales.services.quotation_service import (
    convert_quotation_to_invoice,
    create_quotation,
    update_quotation_status,
)


class QuotationTestCase(TestCase):
    def setUp(self):
        self.customer = make_customer()
        self.variant = make_variant()
        self.lot = make_lot(self.variant, 5, "10.00", day(1))

    def quote(self, quantity=2, **kwargs):
        kwargs.setdefault("date", day(3))
        return create_quotation(
            customer=self.customer,
            lines=[
                {"variant": self.variant, "quantity": quantity, "rate": "15.00"},
                {"description": "Installation", "quantity": 1, "rate": "20.00"},
            ],
            **kwargs,
        )


class CreateQuotationTests(QuotationTestCase):
    """
    GUARANTEES:
    - Totals follow the invoice rules
    - No stock moves and nothing is posted to the ledger
    """

    def test_totals_and_numbering(self):
        quotation = self.quote(discount_amount="5.00", tax_amount="2.50")

        self.assertRegex(quotation.quotation_number, r"^QT-\d{2}-\d{3}$")
        self.assertEqual(quotation.status, Quotation.Status.DRAFT)
        self.assertEqual(quotation.subtotal, Decimal("50.00"))
        self.assertEqual(quotation.total_amount, Decimal("47.50"))
        self.assertEqual(
            list(quotation.items.order_by("id").values_list("description", "line_total")),
            [(f"{self.variant.product.name} {self.variant.name}".strip(), Decimal("30.00")),
             ("Installation", Decimal("20.00"))],
        )

    def test_quoting_holds_no_stock(self):
        self.quote(quantity=50)

        self.assertEqual(PurchaseLot.objects.get(pk=self.lot.pk).remaining_quantity, 5)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_line_rules_are_shared_with_invoices(self):
        with self.assertRaises(InvoiceValidationError):
            create_quotation(customer=self.customer, lines=[])
        with self.assertRaises(InvoiceValidationError):
            self.quote(discount_amount="500.00")


class QuotationStatusTests(QuotationTestCase):
    """
    GUARANTEES:
    - draft -> sent -> accepted / rejected, cancel from any open status
    - converted is reachable only through conversion
    """

    def test_happy_path(self):
        quotation = self.quote()
        quotation = update_quotation_status(quotation, Quotation.Status.SENT)
        quotation = update_quotation_status(quotation, Quotation.Status.ACCEPTED)
        self.assertEqual(quotation.status, Quotation.Status.ACCEPTED)

    def test_invalid_moves(self):
        quotation = self.quote()

        with self.assertRaises(QuotationStateError):
            update_quotation_status(quotation, Quotation.Status.ACCEPTED)
        with self.assertRaises(QuotationStateError):
            update_quotation_status(quotation, Quotation.Status.CONVERTED)

        update_quotation_status(quotation, Quotation.Status.CANCELLED)
        with self.assertRaises(QuotationStateError):
            update_quotation_status(quotation, Quotation.Status.SENT)


class ConvertQuotationTests(QuotationTestCase):
    """
    Conversion issues a real invoice.

    GUARANTEES:
    - The invoice carries the quotation's lines, discount and tax
    - Stock and ledger move exactly as for a direct invoice
    - A failed conversion leaves the quotation open
    - A quotation converts at most once
    """

    def test_convert_issues_invoice(self):
        quotation = self.quote(discount_amount="5.00")

        invoice = convert_quotation_to_invoice(quotation, created_by="clerk", date=day(10))

        self.assertEqual(invoice.status, Invoice.Status.ISSUED)
        self.assertEqual(invoice.total_amount, quotation.total_amount)
        self.assertEqual(invoice.items.count(), 2)
        self.assertEqual(invoice.due_date, date(2025, 2, 9))
        self.assertEqual(PurchaseLot.objects.get(pk=self.lot.pk).remaining_quantity, 3)
        self.assertTrue(
            LedgerEntry.objects.filter(transaction_id=str(invoice.pk), debit=invoice.total_amount).exists()
        )

        quotation.refresh_from_db()
        self.assertEqual(quotation.status, Quotation.Status.CONVERTED)
        self.assertEqual(quotation.converted_invoice, invoice)
        self.assertIsNotNone(quotation.converted_at)

        with self.assertRaises(QuotationStateError):
            convert_quotation_to_invoice(quotation)
        self.assertEqual(Invoice.objects.count(), 1)

    def test_stock_failure_leaves_quotation_open(self):
        quotation = self.quote(quantity=6)

        with self.assertRaises(InsufficientStockError):
            convert_quotation_to_invoice(quotation)

        quotation.refresh_from_db()
        self.assertEqual(quotation.status, Quotation.Status.DRAFT)
        self.assertFalse(Invoice.objects.exists())

    def test_expired_and_closed_quotations_do_not_convert(self):
        expired = self.quote(valid_until=date(2025, 1, 31))
        with mock.patch("django.utils.timezone.localdate", return_value=date(2025, 2, 1)):
            with self.assertRaises(QuotationStateError):
                convert_quotation_to_invoice(expired)

        rejected = self.quote()
        update_quotation_status(rejected, Quotation.Status.SENT)
        update_quotation_status(rejected, Quotation.Status.REJECTED)
        with self.assertRaises(QuotationStateError):
            convert_quotation_to_invoice(rejected)

    def test_draft_conversion_holds_no_stock(self):
        invoice = convert_quotation_to_invoice(self.quote(), draft=True)

        self.assertEqual(invoice.status, Invoice.Status.DRAFT)
        self.assertEqual(PurchaseLot.objects.get(pk=self.lot.pk).remaining_quantity, 5)
