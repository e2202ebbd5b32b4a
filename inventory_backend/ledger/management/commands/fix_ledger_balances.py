# ledger/management/commands/fix_ledger_balances.py

"""
FIX LEDGER BALANCES

Purpose:
- Recompute every customer's running balances in (date, created_at, id) order.
- Renumber payment entries that share a source document to PAY-<invoice number>-n.

Rules:
- Per-customer isolation: a failing customer is reported, the run continues.
- Malformed entries are skipped and reported, never guessed at.
- Idempotent: a second run reports 0 changes.
"""

from __future__ import annotations

from django.core.management.base import BaseCommand

from ledger.services.reconciliation_service import reconcile_all


class Command(BaseCommand):
    help = "Recalculate running balances and fix duplicate payment numbers in the customer ledger."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would change without saving.",
        )
        parser.add_argument(
            "--customer",
            action="append",
            dest="customers",
            default=[],
            help="Customer id to reconcile (repeatable). Default: every customer with entries.",
        )
        parser.add_argument(
            "--verbose-changes",
            action="store_true",
            help="Print every corrected entry.",
        )

    def handle(self, *args, **options):
        dry_run = bool(options.get("dry_run"))
        customers = options.get("customers") or None
        verbose = bool(options.get("verbose_changes"))

        self.stdout.write("Recalculating customer ledger balances...")
        if dry_run:
            self.stdout.write("DRY RUN: no database changes will be saved.\n")

        report = reconcile_all(customers, dry_run=dry_run)

        if verbose:
            for customer in report.customers:
                if not customer.result:
                    continue
                for c in customer.result.corrections:
                    self.stdout.write(
                        f"UPDATE customer={customer.customer_id} entry={c.entry_id} "
                        f"balance {c.old_balance} -> {c.new_balance} "
                        f"number {c.old_transaction_number} -> {c.new_transaction_number}"
                    )

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Customers processed:      {report.customers_processed}")
        self.stdout.write(f"Entries changed:          {report.entries_changed}")
        self.stdout.write(f"Balances fixed:           {report.balances_fixed}")
        self.stdout.write(f"Payment numbers fixed:    {report.numbers_fixed}")
        self.stdout.write(f"Malformed entries:        {len(report.malformed_entries)}")
        self.stdout.write(f"Failed customers:         {len(report.failures)}")

        for malformed in report.malformed_entries:
            self.stdout.write(self.style.WARNING(f"- {malformed}"))
        for failure in report.failures:
            self.stderr.write(self.style.ERROR(f"- customer {failure.customer_id}: {failure.error}"))

        if dry_run:
            self.stdout.write("\nDRY RUN complete (no changes saved).")
        elif not report.failures:
            self.stdout.write(self.style.SUCCESS("\nLedger balances reconciled."))
