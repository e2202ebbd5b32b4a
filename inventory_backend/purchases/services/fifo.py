# purchases/services/fifo.py

"""
FIFO ALLOCATOR (PURE)

Turns "I need N units of item X" into a concrete list of purchase-lot
consumptions, oldest purchase first.

Rules:
- No database access, no mutation of the lots passed in.
- Filtering by item key happens HERE: callers may pass lots of other items,
  they are ignored.
- Lots are walked by (purchase_date, id) ascending; the id tie-break keeps the
  result deterministic for lots bought at the same instant.
- Effective remaining = remaining_quantity - reserved quantity (floored at 0).
  Reservations let a multi-line operation (e.g. a multi-line invoice) earmark
  units it has already allocated but not yet committed.
- Business failures are RETURNED as result variants, never raised:
    Allocation | InsufficientStock | InvalidQuantity
  Persisting the decrements is the caller's job (see stock_service).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Union

from products.item_key import ItemKey


# ============================================================
# INPUT
# ============================================================

@dataclass(frozen=True)
class LotSnapshot:
    id: int
    item_key: ItemKey
    purchase_date: datetime
    unit_cost: Decimal
    remaining_quantity: int


# ============================================================
# OUTPUT
# ============================================================

@dataclass(frozen=True)
class LotConsumption:
    lot_id: int
    quantity: int
    unit_cost: Decimal

    @property
    def total_cost(self) -> Decimal:
        return Decimal(self.quantity) * self.unit_cost


def _total_cost(consumptions) -> Decimal:
    return sum((c.total_cost for c in consumptions), Decimal("0"))


@dataclass(frozen=True)
class Allocation:
    item_key: ItemKey
    required_quantity: int
    consumptions: tuple[LotConsumption, ...] = field(default_factory=tuple)

    ok = True

    @property
    def total_cost(self) -> Decimal:
        return _total_cost(self.consumptions)

    @property
    def weighted_unit_cost(self) -> Decimal:
        return self.total_cost / Decimal(self.required_quantity)

    @property
    def allocated_quantity(self) -> int:
        return sum(c.quantity for c in self.consumptions)


@dataclass(frozen=True)
class InsufficientStock:
    item_key: ItemKey
    required_quantity: int
    shortfall: int
    partial: tuple[LotConsumption, ...] = field(default_factory=tuple)

    ok = False

    @property
    def available_quantity(self) -> int:
        return self.required_quantity - self.shortfall

    @property
    def message(self) -> str:
        return (
            f"Insufficient stock for {self.item_key}. "
            f"Requested: {self.required_quantity}, Available: {self.available_quantity}, "
            f"Short by: {self.shortfall}"
        )


@dataclass(frozen=True)
class InvalidQuantity:
    item_key: ItemKey
    requested: object
    reason: str

    ok = False

    @property
    def message(self) -> str:
        return f"Invalid quantity {self.requested!r} for {self.item_key}: {self.reason}"


AllocationResult = Union[Allocation, InsufficientStock, InvalidQuantity]


# ============================================================
# HELPERS
# ============================================================

def _check_quantity(value) -> str | None:
    """Return a rejection reason, or None when the quantity is usable."""
    if value is None or isinstance(value, bool):
        return "quantity must be a number"
    if not isinstance(value, (int, Decimal)):
        return "quantity must be an integer or Decimal"
    if value <= 0:
        return "quantity must be greater than zero"
    return None


def _effective_remaining(lot: LotSnapshot, reservations: Mapping) -> int:
    reserved = reservations.get(lot.id, 0) or 0
    return max(lot.remaining_quantity - reserved, 0)


def eligible_lots(
    item_key: ItemKey,
    lots: Iterable[LotSnapshot],
    reservations: Mapping | None = None,
) -> list[tuple[LotSnapshot, int]]:
    """(lot, effective_remaining) pairs in FIFO order, exhausted lots dropped."""
    reservations = reservations or {}
    candidates = []
    for lot in lots:
        if lot.item_key != item_key:
            continue
        available = _effective_remaining(lot, reservations)
        if available > 0:
            candidates.append((lot, available))

    candidates.sort(key=lambda pair: (pair[0].purchase_date, pair[0].id))
    return candidates


def effective_stock(
    item_key: ItemKey,
    lots: Iterable[LotSnapshot],
    reservations: Mapping | None = None,
) -> int:
    return sum(available for _, available in eligible_lots(item_key, lots, reservations))


def reserve(reservations: Mapping | None, result: AllocationResult) -> dict:
    """
    New reservation mapping with `result`'s consumptions earmarked.

    Partial consumptions of an InsufficientStock result are reserved too, so a
    caller that decides to accept partial fulfilment does not double-book them.
    """
    merged = dict(reservations or {})
    if isinstance(result, Allocation):
        consumptions = result.consumptions
    elif isinstance(result, InsufficientStock):
        consumptions = result.partial
    else:
        consumptions = ()

    for c in consumptions:
        merged[c.lot_id] = merged.get(c.lot_id, 0) + c.quantity
    return merged


# ============================================================
# ALLOCATE
# ============================================================

def allocate(
    item_key: ItemKey,
    required_quantity,
    lots: Iterable[LotSnapshot],
    reservations: Mapping | None = None,
) -> AllocationResult:
    reason = _check_quantity(required_quantity)
    if reason is not None:
        return InvalidQuantity(item_key=item_key, requested=required_quantity, reason=reason)

    still_needed = required_quantity
    taken: list[LotConsumption] = []

    for lot, available in eligible_lots(item_key, lots, reservations):
        if still_needed <= 0:
            break

        quantity = min(available, still_needed)
        taken.append(
            LotConsumption(lot_id=lot.id, quantity=quantity, unit_cost=lot.unit_cost)
        )
        still_needed -= quantity

    if still_needed > 0:
        return InsufficientStock(
            item_key=item_key,
            required_quantity=required_quantity,
            shortfall=still_needed,
            partial=tuple(taken),
        )

    return Allocation(
        item_key=item_key,
        required_quantity=required_quantity,
        consumptions=tuple(taken),
    )
