# ledger/services/recalculator.py

"""
LEDGER RECALCULATOR (PURE)

Given ONE customer's full entry history (any order, possibly stale balances,
possibly duplicated payment numbers), produce the corrected ledger and the
minimal set of corrections to persist.

Rules:
- Timeline order is (date, created_at, id). Input order never matters.
- running balance starts at 0 and adds debit - credit per well-formed entry.
- Malformed entries (both sides positive, both zero, negative amounts, or a
  different customer) are skipped and reported; they do not move the balance
  and do not stop the remaining entries from being processed.
- Payment entries sharing a transaction_id (2+ entries) are numbered
  PAY-<source reference>-<n>, n by created_at. The source reference is the
  source document's own number (INV-25-120) when known, the full
  transaction_id otherwise; both are unique, so two groups never collide.
- Only changed entries are reported. Re-running on corrected data is a no-op.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal

PAYMENT = "payment"

ZERO = Decimal("0.00")


# ============================================================
# TYPES
# ============================================================

@dataclass(frozen=True)
class EntrySnapshot:
    id: int
    customer_id: str
    transaction_type: str
    transaction_id: str
    transaction_number: str
    date: datetime
    created_at: datetime
    debit: Decimal
    credit: Decimal
    balance: Decimal
    source_number: str = ""

    @property
    def source_reference(self) -> str:
        return self.source_number or self.transaction_id

    @property
    def timeline_key(self):
        return (self.date, self.created_at, self.id)


@dataclass(frozen=True)
class EntryCorrection:
    entry_id: int
    old_balance: Decimal
    new_balance: Decimal
    old_transaction_number: str
    new_transaction_number: str

    @property
    def balance_changed(self) -> bool:
        return self.old_balance != self.new_balance

    @property
    def number_changed(self) -> bool:
        return self.old_transaction_number != self.new_transaction_number


@dataclass(frozen=True)
class MalformedEntry:
    entry_id: int
    customer_id: str
    reason: str

    def __str__(self):
        return f"Entry {self.entry_id} (customer {self.customer_id}): {self.reason}"


@dataclass(frozen=True)
class RecalculationResult:
    customer_id: str
    entries: tuple[EntrySnapshot, ...] = field(default_factory=tuple)
    corrections: tuple[EntryCorrection, ...] = field(default_factory=tuple)
    errors: tuple[MalformedEntry, ...] = field(default_factory=tuple)

    @property
    def changed_count(self) -> int:
        return len(self.corrections)

    @property
    def balances_fixed(self) -> int:
        return sum(1 for c in self.corrections if c.balance_changed)

    @property
    def numbers_fixed(self) -> int:
        return sum(1 for c in self.corrections if c.number_changed)

    @property
    def final_balance(self) -> Decimal:
        return self.entries[-1].balance if self.entries else ZERO


# ============================================================
# HELPERS
# ============================================================

def canonical_payment_number(source_reference: str, ordinal: int) -> str:
    return f"PAY-{str(source_reference).strip().upper()}-{ordinal}"


def malformed_reason(entry: EntrySnapshot, customer_id: str) -> str | None:
    if str(entry.customer_id) != str(customer_id):
        return f"belongs to customer {entry.customer_id}"
    if entry.debit < 0 or entry.credit < 0:
        return "negative debit or credit"
    if entry.debit > 0 and entry.credit > 0:
        return "entry has both debit and credit"
    if entry.debit == 0 and entry.credit == 0:
        return "entry has neither debit nor credit"
    return None


def _payment_numbers(entries: list[EntrySnapshot]) -> dict[int, str]:
    groups = defaultdict(list)
    for entry in entries:
        if entry.transaction_type == PAYMENT and entry.transaction_id:
            groups[entry.transaction_id].append(entry)

    numbers = {}
    for group in groups.values():
        if len(group) < 2:
            continue
        group.sort(key=lambda e: (e.created_at, e.id))
        reference = group[0].source_reference
        for ordinal, entry in enumerate(group, start=1):
            numbers[entry.id] = canonical_payment_number(reference, ordinal)
    return numbers


# ============================================================
# RECALCULATE
# ============================================================

def recalculate(customer_id, entries: Iterable[EntrySnapshot]) -> RecalculationResult:
    customer_id = str(customer_id)

    errors = []
    valid = []
    for entry in entries:
        reason = malformed_reason(entry, customer_id)
        if reason is None:
            valid.append(entry)
        else:
            errors.append(MalformedEntry(entry_id=entry.id, customer_id=str(entry.customer_id), reason=reason))

    valid.sort(key=lambda e: e.timeline_key)
    numbers = _payment_numbers(valid)

    running = ZERO
    corrected = []
    corrections = []

    for entry in valid:
        running += entry.debit - entry.credit

        new_number = numbers.get(entry.id, entry.transaction_number)
        if entry.balance != running or entry.transaction_number != new_number:
            corrections.append(
                EntryCorrection(
                    entry_id=entry.id,
                    old_balance=entry.balance,
                    new_balance=running,
                    old_transaction_number=entry.transaction_number,
                    new_transaction_number=new_number,
                )
            )
            entry = replace(entry, balance=running, transaction_number=new_number)

        corrected.append(entry)

    errors.sort(key=lambda e: e.entry_id)
    return RecalculationResult(
        customer_id=customer_id,
        entries=tuple(corrected),
        corrections=tuple(corrections),
        errors=tuple(errors),
    )
