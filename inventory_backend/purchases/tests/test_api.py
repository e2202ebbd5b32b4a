# purchases/tests/test_api.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.tests.builders import day, make_customer, make_lot, make_variant
from purchases.models import PurchaseLot
from sales.services.invoice_service import create_invoice

User = get_user_model()


class PurchaseLotApiTests(TestCase):
    """
    GUARANTEES:
    - remaining_quantity cannot be written through the API
    - Lots behind invoice allocations cannot be deleted
    """

    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(User.objects.create_user(username="buyer", password="password123"))
        self.variant = make_variant()

    def test_create_lot_derives_product_and_remaining(self):
        res = self.client.post(
            reverse("purchase-lots-list"),
            {
                "variant": str(self.variant.pk),
                "supplier": "Acme",
                "quantity": 12,
                "remaining_quantity": 1,
                "unit_cost": "3.25",
            },
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(res.data["remaining_quantity"], 12)
        self.assertEqual(res.data["total_cost"], "39.00")
        self.assertEqual(str(res.data["product"]), str(self.variant.product_id))
        self.assertTrue(res.data["purchase_id"].startswith("PR-"))

    def test_rejects_non_positive_quantity(self):
        res = self.client.post(
            reverse("purchase-lots-list"),
            {"variant": str(self.variant.pk), "supplier": "Acme", "quantity": 0, "unit_cost": "1.00"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

    def test_lot_with_allocations_cannot_be_deleted(self):
        lot = make_lot(self.variant, 5, "2.00", day(1))
        create_invoice(
            customer=make_customer(),
            lines=[{"variant": self.variant, "quantity": 1, "rate": "3.00"}],
        )

        res = self.client.delete(reverse("purchase-lots-detail", args=[lot.pk]))

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(PurchaseLot.objects.filter(pk=lot.pk).exists())

    def test_unused_lot_can_be_deleted(self):
        lot = make_lot(self.variant, 5, "2.00", day(1))
        res = self.client.delete(reverse("purchase-lots-detail", args=[lot.pk]))
        self.assertEqual(res.status_code, status.HTTP_204_NO_CONTENT)

    def test_allocation_preview(self):
        first = make_lot(self.variant, 5, "10.00", day(1))
        second = make_lot(self.variant, 5, "12.00", day(5))
        url = reverse("purchase-lots-allocation-preview")

        ok = self.client.post(url, {"variant": str(self.variant.pk), "quantity": 7}, format="json")
        self.assertEqual(ok.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [(c["lot_id"], c["quantity"]) for c in ok.data["consumptions"]],
            [(first.pk, 5), (second.pk, 2)],
        )
        self.assertEqual(ok.data["total_cost"], "74.00")

        short = self.client.post(url, {"variant": str(self.variant.pk), "quantity": 11}, format="json")
        self.assertEqual(short.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(short.data["shortfall"], 1)

        bad = self.client.post(url, {"variant": str(self.variant.pk), "quantity": 0}, format="json")
        self.assertEqual(bad.status_code, status.HTTP_400_BAD_REQUEST)

        self.assertEqual(PurchaseLot.objects.get(pk=first.pk).remaining_quantity, 5)
