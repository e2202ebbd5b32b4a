# ledger/management/commands/recalculate_customer_financials.py

"""
RECALCULATE CUSTOMER FINANCIALS

Rebuild Customer.total_invoiced / total_paid / outstanding_balance and the
last invoice / payment dates from the ledger. Invoice entries of cancelled
invoices are excluded.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand

from ledger.models import Customer
from ledger.services.summary_service import refresh_all_customer_financials


class Command(BaseCommand):
    help = "Recalculate cached customer financials from ledger entries."

    def add_arguments(self, parser):
        parser.add_argument(
            "--customer",
            action="append",
            dest="customers",
            default=[],
            help="Customer id to refresh (repeatable). Default: all customers.",
        )

    def handle(self, *args, **options):
        qs = Customer.objects.all()
        if options.get("customers"):
            qs = qs.filter(pk__in=options["customers"])

        total = qs.count()
        if total == 0:
            self.stdout.write("No customers found")
            return

        updated, errors = refresh_all_customer_financials(qs)

        for error in errors:
            self.stderr.write(self.style.ERROR(error))

        self.stdout.write(
            self.style.SUCCESS(f"Recalculated financials for {updated} of {total} customers")
        )
