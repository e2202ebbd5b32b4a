# ledger/services/reconciliation_service.py

"""
======================================================
PATH: ledger/services/reconciliation_service.py
======================================================
LEDGER RECONCILIATION (PERSISTENCE AROUND THE RECALCULATOR)

Purpose:
- Load one customer's entries, run the pure recalculator and persist ONLY
  the deltas it reports.
- Run that for every customer (or a chosen subset) with per-customer
  isolation: a failing customer is recorded and the run continues.

Rules:
- Each customer is reconciled inside its own transaction, with the customer
  row and its entries locked.
- Writes are conditional on the values that were read
  (`WHERE id = ? AND balance = old AND transaction_number = old`). A row that
  no longer matches raises ConcurrentModificationError and the customer's
  changes roll back.
- Renumbering runs in two phases (temporary number, then final number) so the
  unique constraint on transaction_number never sees a transient duplicate.
- dry_run computes the same report and writes nothing.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable
from dataclasses import dataclass, field

from django.core.exceptions import ValidationError
from django.db import DatabaseError, transaction

from ledger.models import Customer, LedgerEntry
from ledger.services.exceptions import (
    ConcurrentModificationError,
    CustomerNotFoundError,
    LedgerServiceError,
)
from ledger.services.recalculator import (
    EntryCorrection,
    EntrySnapshot,
    RecalculationResult,
    recalculate,
)

logger = logging.getLogger(__name__)

TEMP_NUMBER_PREFIX = "TMP-RECON-"


# ============================================================
# REPORT TYPES
# ============================================================

@dataclass(frozen=True)
class CustomerReconciliation:
    customer_id: str
    result: RecalculationResult | None = None
    applied: bool = False
    error: str = ""

    @property
    def ok(self) -> bool:
        return not self.error

    @property
    def changed_count(self) -> int:
        return self.result.changed_count if self.result else 0


@dataclass
class ReconciliationReport:
    dry_run: bool = False
    customers: list[CustomerReconciliation] = field(default_factory=list)

    @property
    def customers_processed(self) -> int:
        return len(self.customers)

    @property
    def failures(self) -> list[CustomerReconciliation]:
        return [c for c in self.customers if not c.ok]

    @property
    def entries_changed(self) -> int:
        return sum(c.changed_count for c in self.customers)

    @property
    def balances_fixed(self) -> int:
        return sum(c.result.balances_fixed for c in self.customers if c.result)

    @property
    def numbers_fixed(self) -> int:
        return sum(c.result.numbers_fixed for c in self.customers if c.result)

    @property
    def malformed_entries(self) -> list:
        errors = []
        for c in self.customers:
            if c.result:
                errors.extend(c.result.errors)
        return errors


# ============================================================
# SNAPSHOTS
# ============================================================

def payment_source_numbers(transaction_ids: Iterable[str]) -> dict[str, str]:
    """Maps payment transaction_ids to the invoice_number of the invoice they pay."""
    from sales.models import Invoice

    ids = set()
    for transaction_id in transaction_ids:
        try:
            ids.add(uuid.UUID(str(transaction_id)))
        except ValueError:
            continue
    if not ids:
        return {}

    rows = Invoice.objects.filter(pk__in=ids).values_list("id", "invoice_number")
    return {str(pk): number for pk, number in rows if number}


def to_snapshot(entry: LedgerEntry, source_number: str = "") -> EntrySnapshot:
    return EntrySnapshot(
        id=entry.pk,
        customer_id=str(entry.customer_id),
        transaction_type=entry.transaction_type,
        transaction_id=entry.transaction_id or "",
        transaction_number=entry.transaction_number,
        date=entry.date,
        created_at=entry.created_at,
        debit=entry.debit,
        credit=entry.credit,
        balance=entry.balance,
        source_number=source_number,
    )


def load_entry_snapshots(customer_id, *, lock: bool = False) -> list[EntrySnapshot]:
    qs = LedgerEntry.objects.filter(customer_id=customer_id).order_by("date", "created_at", "id")
    if lock:
        qs = qs.select_for_update()
    entries = list(qs)

    sources = payment_source_numbers(
        e.transaction_id for e in entries if e.transaction_type == LedgerEntry.TransactionType.PAYMENT
    )
    return [to_snapshot(entry, sources.get(entry.transaction_id, "")) for entry in entries]


# ============================================================
# WRITES
# ============================================================

def _apply_corrections(corrections: Iterable[EntryCorrection]) -> None:
    corrections = list(corrections)
    renumbered = [c for c in corrections if c.number_changed]
    rebalanced = [c for c in corrections if not c.number_changed]

    # Phase 1: move renumbered entries out of the way.
    for c in renumbered:
        matched = LedgerEntry.objects.filter(
            pk=c.entry_id,
            balance=c.old_balance,
            transaction_number=c.old_transaction_number,
        ).update(transaction_number=f"{TEMP_NUMBER_PREFIX}{c.entry_id}")
        if matched != 1:
            raise ConcurrentModificationError(c.entry_id)

    # Phase 2: final numbers and balances.
    for c in renumbered:
        matched = LedgerEntry.objects.filter(
            pk=c.entry_id,
            transaction_number=f"{TEMP_NUMBER_PREFIX}{c.entry_id}",
        ).update(transaction_number=c.new_transaction_number, balance=c.new_balance)
        if matched != 1:
            raise ConcurrentModificationError(c.entry_id)

    for c in rebalanced:
        matched = LedgerEntry.objects.filter(
            pk=c.entry_id,
            balance=c.old_balance,
            transaction_number=c.old_transaction_number,
        ).update(balance=c.new_balance)
        if matched != 1:
            raise ConcurrentModificationError(c.entry_id)


# ============================================================
# PUBLIC API
# ============================================================

def reconcile_customer(customer_id, *, dry_run: bool = False) -> CustomerReconciliation:
    """
    Recalculate and repair one customer's ledger.

    Raises CustomerNotFoundError, ConcurrentModificationError.
    """
    with transaction.atomic():
        try:
            customer = Customer.objects.select_for_update().get(pk=customer_id)
        except (Customer.DoesNotExist, ValueError, ValidationError) as exc:
            raise CustomerNotFoundError(f"Customer {customer_id} not found") from exc

        snapshots = load_entry_snapshots(customer.pk, lock=not dry_run)
        result = recalculate(customer.pk, snapshots)

        for malformed in result.errors:
            logger.warning(
                "Skipped malformed ledger entry",
                extra={"entry_id": malformed.entry_id, "customer_id": str(customer.pk), "reason": malformed.reason},
            )

        applied = False
        if result.corrections and not dry_run:
            _apply_corrections(result.corrections)
            applied = True
            logger.info(
                "Reconciled customer ledger",
                extra={
                    "customer_id": str(customer.pk),
                    "balances_fixed": result.balances_fixed,
                    "numbers_fixed": result.numbers_fixed,
                },
            )

    return CustomerReconciliation(customer_id=str(customer.pk), result=result, applied=applied)


def customers_with_entries() -> list:
    return list(
        LedgerEntry.objects.order_by("customer_id")
        .values_list("customer_id", flat=True)
        .distinct()
    )


def reconcile_all(customer_ids: Iterable | None = None, *, dry_run: bool = False) -> ReconciliationReport:
    """
    Reconcile every customer that has ledger entries (or only `customer_ids`).
    One customer's failure never stops the others.
    """
    ids = list(customer_ids) if customer_ids is not None else customers_with_entries()
    report = ReconciliationReport(dry_run=dry_run)

    for customer_id in ids:
        try:
            report.customers.append(reconcile_customer(customer_id, dry_run=dry_run))
        except (LedgerServiceError, DatabaseError) as exc:
            logger.error(
                "Customer ledger reconciliation failed",
                extra={"customer_id": str(customer_id), "error": str(exc)},
            )
            report.customers.append(CustomerReconciliation(customer_id=str(customer_id), error=str(exc)))

    return report
