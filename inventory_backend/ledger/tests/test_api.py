# ledger/tests/test_api.py

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from core.tests.builders import day, make_customer, seed_entries
from ledger.models import LedgerEntry

User = get_user_model()


class LedgerApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.client.force_authenticate(User.objects.create_user(username="clerk", password="password123"))
        self.customer = make_customer()

    def test_create_customer_gets_code_and_zero_totals(self):
        res = self.client.post(
            reverse("customers-list"),
            {"name": "Corner Shop", "email": "shop@example.com", "outstanding_balance": "500.00"},
            format="json",
        )

        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertTrue(res.data["customer_code"].startswith("CU-"))
        self.assertEqual(res.data["outstanding_balance"], "0.00")

    def test_manual_entry_posts_and_updates_summary(self):
        res = self.client.post(
            reverse("ledger-entries-list"),
            {
                "customer": str(self.customer.pk),
                "transaction_type": "debit_note",
                "description": "Late fee",
                "debit": "12.50",
            },
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertTrue(res.data["transaction_number"].startswith("DN-"))
        self.assertEqual(res.data["balance"], "12.50")

        summary = self.client.get(reverse("customers-summary", args=[self.customer.pk]))
        self.assertEqual(summary.data["current_balance"], "12.50")
        self.assertEqual(summary.data["latest_entry_balance"], "12.50")

    def test_manual_entry_rules(self):
        url = reverse("ledger-entries-list")
        base = {"customer": str(self.customer.pk), "description": "x"}

        both = self.client.post(url, {**base, "transaction_type": "adjustment", "debit": "1", "credit": "1"}, format="json")
        wrong_side = self.client.post(url, {**base, "transaction_type": "credit_note", "debit": "1"}, format="json")
        payment = self.client.post(url, {**base, "transaction_type": "payment", "credit": "1"}, format="json")

        for res in (both, wrong_side, payment):
            self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(LedgerEntry.objects.exists())

    def test_entries_are_read_only(self):
        entry = seed_entries(self.customer, [{"date": day(1), "debit": "10", "balance": "10"}])[0]
        res = self.client.patch(reverse("ledger-entries-detail", args=[entry.pk]), {"balance": "0"}, format="json")
        self.assertEqual(res.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)

    def test_customer_timeline_and_filters(self):
        seed_entries(
            self.customer,
            [
                {"date": day(3), "credit": "5", "balance": "5"},
                {"date": day(1), "debit": "10", "balance": "10"},
            ],
        )

        timeline = self.client.get(reverse("customers-entries", args=[self.customer.pk]))
        self.assertEqual([row["debit"] for row in timeline.data["results"]], ["10.00", "0.00"])

        filtered = self.client.get(reverse("ledger-entries-list"), {"date_from": day(2).isoformat()})
        self.assertEqual(filtered.data["count"], 1)

    def test_admin_endpoints_need_staff(self):
        res = self.client.post(reverse("ledger-reconcile"), {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

        res = self.client.get(reverse("ledger-consistency"))
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)


class LedgerAdminApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        admin = User.objects.create_user(username="boss", password="password123", is_staff=True)
        self.client.force_authenticate(admin)
        self.customer = make_customer()
        seed_entries(
            self.customer,
            [
                {"date": day(1), "debit": "100", "balance": "0"},
                {"date": day(2), "credit": "40", "balance": "0"},
            ],
        )

    def test_reconcile_dry_run_then_apply(self):
        url = reverse("ledger-reconcile")

        dry = self.client.post(url, {"dry_run": True}, format="json")
        self.assertEqual(dry.status_code, status.HTTP_200_OK)
        self.assertTrue(dry.data["dry_run"])
        self.assertEqual(dry.data["entries_changed"], 2)

        applied = self.client.post(url, {"customer_ids": [str(self.customer.pk)]}, format="json")
        self.assertEqual(applied.data["balances_fixed"], 2)
        self.assertEqual(applied.data["failures"], [])

        balances = list(
            LedgerEntry.objects.filter(customer=self.customer)
            .order_by("date")
            .values_list("balance", flat=True)
        )
        self.assertEqual([str(b) for b in balances], ["100.00", "60.00"])

    def test_consistency_report(self):
        res = self.client.get(reverse("ledger-consistency"))

        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertIn("stale_running_balances", [i["type"] for i in res.data["issues"]])
