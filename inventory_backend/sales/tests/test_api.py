# sales/tests/test_api.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.tests.builders import day, make_customer, make_lot, make_variant
from purchases.models import PurchaseLot
from sales.models import Invoice

User = get_user_model()


class InvoiceApiTests(TestCase):
    """
    Invoice endpoints.

    Error mapping:
    - insufficient stock / wrong status -> 409
    - bad input -> 400
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="cashier", password="password123")
        self.client.force_authenticate(self.user)

        self.customer = make_customer()
        self.variant = make_variant()
        self.lot = make_lot(self.variant, 5, "10.00", day(1))

    def _create(self, quantity=2, **extra):
        payload = {
            "customer": str(self.customer.pk),
            "items": [{"variant": str(self.variant.pk), "quantity": quantity, "rate": "15.00"}],
        }
        payload.update(extra)
        return self.client.post(reverse("invoices-list"), payload, format="json")

    def test_create_issues_invoice(self):
        res = self._create()

        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["status"], Invoice.Status.ISSUED)
        self.assertEqual(res.data["total_amount"], "30.00")
        self.assertEqual(res.data["profit"], "10.00")
        self.assertEqual(res.data["created_by"], "cashier")
        self.assertEqual(len(res.data["items"][0]["allocations"]), 1)
        self.assertEqual(PurchaseLot.objects.get(pk=self.lot.pk).remaining_quantity, 3)

    def test_insufficient_stock_is_a_conflict(self):
        res = self._create(quantity=6)

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["shortfall"], 1)
        self.assertFalse(Invoice.objects.exists())

    def test_line_validation(self):
        res = self.client.post(
            reverse("invoices-list"),
            {"customer": str(self.customer.pk), "items": [{"quantity": 1, "rate": "5.00"}]},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

        res = self.client.post(
            reverse("invoices-list"), {"customer": str(self.customer.pk), "items": []}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_draft_then_issue(self):
        invoice_id = self._create(draft=True).data["id"]
        self.assertEqual(PurchaseLot.objects.get(pk=self.lot.pk).remaining_quantity, 5)

        res = self.client.post(reverse("invoices-issue", args=[invoice_id]))
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], Invoice.Status.ISSUED)

        again = self.client.post(reverse("invoices-issue", args=[invoice_id]))
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)

    def test_payment_flow(self):
        invoice_id = self._create().data["id"]
        url = reverse("invoices-payments", args=[invoice_id])

        res = self.client.post(url, {"amount": "10.00", "method": "cash"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertTrue(res.data["transaction_number"].startswith("PAY-"))

        over = self.client.post(url, {"amount": "25.00"}, format="json")
        self.assertEqual(over.status_code, status.HTTP_400_BAD_REQUEST)

        detail = self.client.get(reverse("invoices-detail", args=[invoice_id]))
        self.assertEqual(detail.data["status"], Invoice.Status.PARTIAL)
        self.assertEqual(detail.data["balance_amount"], "20.00")

    def test_cancel(self):
        invoice_id = self._create().data["id"]

        res = self.client.post(reverse("invoices-cancel", args=[invoice_id]), {"reason": "typo"}, format="json")

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["status"], Invoice.Status.CANCELLED)
        self.assertEqual(PurchaseLot.objects.get(pk=self.lot.pk).remaining_quantity, 5)

        again = self.client.post(reverse("invoices-cancel", args=[invoice_id]), {}, format="json")
        self.assertEqual(again.status_code, status.HTTP_409_CONFLICT)

    def test_list_filters_by_status(self):
        self._create()
        self._create(quantity=1, draft=True)

        res = self.client.get(reverse("invoices-list"), {"status": "draft"})

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["count"], 1)


class QuotationApiTests(TestCase):
    """
    Quotation endpoints.

    GUARANTEES:
    - Creating a quotation moves no stock
    - convert/ returns the issued invoice
    - Status and conversion conflicts are 409
    """

    def setUp(self):
        self.client = APIClient()
        self.user = User.objects.create_user(username="sales", password="password123")
        self.client.force_authenticate(self.user)

        self.customer = make_customer()
        self.variant = make_variant()
        self.lot = make_lot(self.variant, 5, "10.00", day(1))

    def _create(self, quantity=2):
        return self.client.post(
            reverse("quotations-list"),
            {
                "customer": str(self.customer.pk),
                "items": [{"variant": str(self.variant.pk), "quantity": quantity, "rate": "15.00"}],
            },
            format="json",
        )

    def test_create_and_convert(self):
        res = self._create()
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["status"], "draft")
        self.assertEqual(res.data["total_amount"], "30.00")
        self.assertEqual(PurchaseLot.objects.get(pk=self.lot.pk).remaining_quantity, 5)

        res = self.client.post(reverse("quotations-convert", args=[res.data["id"]]), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["status"], Invoice.Status.ISSUED)
        self.assertEqual(res.data["created_by"], "sales")
        self.assertEqual(PurchaseLot.objects.get(pk=self.lot.pk).remaining_quantity, 3)

    def test_status_conflicts(self):
        quotation_id = self._create().data["id"]

        res = self.client.post(
            reverse("quotations-set-status", args=[quotation_id]), {"status": "accepted"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)

        res = self.client.post(
            reverse("quotations-set-status", args=[quotation_id]), {"status": "cancelled"}, format="json"
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK)

        res = self.client.post(reverse("quotations-convert", args=[quotation_id]), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertFalse(Invoice.objects.exists())

    def test_conversion_without_stock_is_a_conflict(self):
        quotation_id = self._create(quantity=6).data["id"]

        res = self.client.post(reverse("quotations-convert", args=[quotation_id]), {}, format="json")

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["shortfall"], 1)
