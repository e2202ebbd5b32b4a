# sales/management/commands/backfill_invoice_profit.py

"""
BACKFILL INVOICE PROFIT (AUDIT SAFE)

Purpose:
- Fill InvoiceItem.original_rate for legacy stocked lines where it is NULL,
  using the line's own FIFO audit rows (InvoiceItemAllocation) or, failing
  that, the unit cost of its linked purchase lot.
- Compute Invoice.profit / Invoice.custom once every stocked line has a cost.

Rules:
- NO guessing: a stocked line with neither allocations nor a linked lot is
  SKIPPED and REPORTED; its invoice keeps profit = NULL.
- Manual lines never have a cost (they count as 0 and mark the invoice custom).
- Cancelled invoices are ignored.
- Idempotent: rerunning is safe.
- Supports --dry-run and --limit for safe iteration.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.management.base import BaseCommand
from django.db import transaction
from django.db.models import Q

from core.money import money
from sales.models import Invoice, InvoiceItem
from sales.services.profit import calculate_invoice_profit, is_invoice_custom


def resolve_original_rate(item: InvoiceItem) -> Decimal | None:
    allocations = list(item.allocations.all())
    if allocations:
        total = sum((a.total_cost for a in allocations), Decimal("0"))
        if item.bundle_id:
            total += sum((e.amount for e in item.bundle.expenses.all()), Decimal("0")) * item.quantity
        return money(total / Decimal(item.quantity))

    if item.variant_id and item.purchase_lot_id:
        return money(item.purchase_lot.unit_cost)

    return None


class Command(BaseCommand):
    help = "Backfill InvoiceItem.original_rate and Invoice.profit from FIFO lot costs."

    def add_arguments(self, parser):
        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Show what would change without saving.",
        )
        parser.add_argument(
            "--limit",
            type=int,
            default=0,
            help="Limit the number of invoices to process (0 = no limit).",
        )
        parser.add_argument(
            "--report-missing",
            action="store_true",
            help="List every stocked line that could not be matched to a lot.",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        dry_run = bool(options.get("dry_run"))
        limit = int(options.get("limit") or 0)
        report_missing = bool(options.get("report_missing"))

        self.stdout.write("Backfilling invoice profit from FIFO lot costs...")
        if dry_run:
            self.stdout.write("DRY RUN: no database changes will be saved.\n")

        qs = (
            Invoice.objects.exclude(status=Invoice.Status.CANCELLED)
            .filter(
                Q(profit__isnull=True)
                | Q(items__original_rate__isnull=True, items__variant__isnull=False)
                | Q(items__original_rate__isnull=True, items__bundle__isnull=False)
            )
            .distinct()
            .order_by("date", "created_at")
        )
        if limit > 0:
            qs = qs[:limit]

        items_updated = 0
        invoices_updated = 0
        invoices_skipped = 0
        missing = []

        for invoice in qs:
            items = list(
                invoice.items.select_related("purchase_lot", "bundle").prefetch_related("allocations")
            )
            unmatched = False

            for item in items:
                if item.original_rate is not None or not item.is_stocked:
                    continue

                rate = resolve_original_rate(item)
                if rate is None:
                    unmatched = True
                    missing.append(f"{invoice.invoice_number} line={item.id} {item.description}")
                    continue

                self.stdout.write(
                    f"UPDATE invoice={invoice.invoice_number} line={item.id} -> original_rate={rate}"
                )
                item.original_rate = rate
                if not dry_run:
                    InvoiceItem.objects.filter(pk=item.pk).update(original_rate=rate)
                items_updated += 1

            if unmatched:
                invoices_skipped += 1
                continue

            profit = calculate_invoice_profit(items, invoice.discount_amount)
            custom = is_invoice_custom(items)
            if invoice.profit == profit and invoice.custom == custom:
                continue

            self.stdout.write(f"UPDATE invoice={invoice.invoice_number} -> profit={profit} custom={custom}")
            if not dry_run:
                Invoice.objects.filter(pk=invoice.pk).update(profit=profit, custom=custom)
            invoices_updated += 1

        self.stdout.write("\n--- Summary ---")
        self.stdout.write(f"Lines updated:              {items_updated}")
        self.stdout.write(f"Invoices updated:           {invoices_updated}")
        self.stdout.write(f"Invoices skipped (no lot):  {invoices_skipped}")

        if report_missing:
            self.stdout.write("\n--- Stocked lines without a lot match ---")
            if not missing:
                self.stdout.write("None")
            for row in missing:
                self.stdout.write(f"- {row}")

        if dry_run:
            self.stdout.write("\nDRY RUN complete (no changes saved).")
