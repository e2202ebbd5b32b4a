# purchases/services/stock_service.py

"""
STOCK SERVICE (PERSISTENCE BOUNDARY FOR FIFO)

Purpose:
- Read purchase lots as immutable LotSnapshot rows for the pure allocator.
- Commit an Allocation with atomic CONDITIONAL decrements.
- Restore stock to lots when a sale is cancelled.

Concurrency rule:
- Each decrement is `remaining_quantity -= n WHERE remaining_quantity >= n`.
  If any row does not match, someone else consumed the lot first: the whole
  commit rolls back and ConcurrentModificationError is raised. Callers must
  re-read lots and allocate again; partial success is never assumed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping

from django.conf import settings
from django.db import transaction
from django.db.models import F

from products.item_key import ItemKey
from purchases.models import PurchaseLot
from purchases.services.fifo import (
    Allocation,
    InsufficientStock,
    InvalidQuantity,
    LotConsumption,
    LotSnapshot,
    allocate,
)

logger = logging.getLogger(__name__)


# ============================================================
# DOMAIN ERRORS
# ============================================================

class StockServiceError(Exception):
    """Base error for stock persistence failures."""


class InvalidQuantityError(StockServiceError):
    def __init__(self, result: InvalidQuantity):
        self.result = result
        super().__init__(result.message)


class InsufficientStockError(StockServiceError):
    def __init__(self, result: InsufficientStock):
        self.result = result
        super().__init__(result.message)

    @property
    def shortfall(self) -> int:
        return self.result.shortfall


class ConcurrentModificationError(StockServiceError):
    def __init__(self, lot_id, quantity):
        self.lot_id = lot_id
        self.quantity = quantity
        super().__init__(
            f"Purchase lot {lot_id} no longer has {quantity} unit(s) remaining; "
            "allocate again from fresh stock."
        )


def _max_attempts() -> int:
    return int(getattr(settings, "STOCK_ALLOCATION_MAX_ATTEMPTS", 3) or 1)


# ============================================================
# READER
# ============================================================

def to_snapshot(lot: PurchaseLot) -> LotSnapshot:
    return LotSnapshot(
        id=lot.pk,
        item_key=lot.item_key,
        purchase_date=lot.purchase_date,
        unit_cost=lot.unit_cost,
        remaining_quantity=int(lot.remaining_quantity or 0),
    )


def load_lot_snapshots(item_key: ItemKey) -> list[LotSnapshot]:
    qs = (
        PurchaseLot.objects.filter(
            product_id=item_key.product_id,
            variant_id=item_key.variant_id,
            remaining_quantity__gt=0,
        )
        .only("id", "product_id", "variant_id", "purchase_date", "unit_cost", "remaining_quantity")
        .order_by("purchase_date", "id")
    )
    return [to_snapshot(lot) for lot in qs]


def load_lot_snapshots_for(item_keys: Iterable[ItemKey]) -> dict[ItemKey, list[LotSnapshot]]:
    return {key: load_lot_snapshots(key) for key in set(item_keys)}


# ============================================================
# WRITER
# ============================================================

@transaction.atomic
def commit_allocation(allocation: Allocation) -> None:
    """
    Apply every consumption of `allocation` or none of them.
    """
    if not isinstance(allocation, Allocation):
        raise StockServiceError("Only successful allocations can be committed")

    for consumption in allocation.consumptions:
        matched = PurchaseLot.objects.filter(
            pk=consumption.lot_id,
            remaining_quantity__gte=consumption.quantity,
        ).update(remaining_quantity=F("remaining_quantity") - consumption.quantity)

        if matched != 1:
            logger.warning(
                "Conditional lot decrement did not match",
                extra={"lot_id": consumption.lot_id, "quantity": consumption.quantity},
            )
            raise ConcurrentModificationError(consumption.lot_id, consumption.quantity)

    logger.info(
        "Committed FIFO allocation",
        extra={
            "item_key": str(allocation.item_key),
            "quantity": allocation.required_quantity,
            "lots": [c.lot_id for c in allocation.consumptions],
        },
    )


def allocate_and_commit(
    item_key: ItemKey,
    quantity,
    *,
    reservations: Mapping | None = None,
    max_attempts: int | None = None,
) -> Allocation:
    """
    Read fresh lots, allocate FIFO and commit; retry from fresh state when
    another operation wins the race for a lot.
    """
    attempts = max_attempts or _max_attempts()

    for attempt in range(1, attempts + 1):
        result = allocate(item_key, quantity, load_lot_snapshots(item_key), reservations)

        if isinstance(result, InvalidQuantity):
            raise InvalidQuantityError(result)
        if isinstance(result, InsufficientStock):
            raise InsufficientStockError(result)

        try:
            commit_allocation(result)
            return result
        except ConcurrentModificationError:
            if attempt >= attempts:
                raise
            logger.info(
                "Retrying allocation after concurrent lot modification",
                extra={"item_key": str(item_key), "attempt": attempt},
            )

    raise StockServiceError("allocation retry loop exited without a result")


@transaction.atomic
def restore_consumptions(consumptions: Iterable[LotConsumption]) -> list[PurchaseLot]:
    """
    Put consumed units back on their lots (cancelled invoice).

    remaining_quantity never exceeds the lot's purchased quantity; anything
    beyond that is logged and dropped.
    """
    restored = []
    for consumption in consumptions:
        lot = PurchaseLot.objects.select_for_update().get(pk=consumption.lot_id)

        current = int(lot.remaining_quantity or 0)
        target = min(current + int(consumption.quantity), int(lot.quantity))
        if target - current < consumption.quantity:
            logger.warning(
                "Restore capped at purchased quantity",
                extra={
                    "lot_id": lot.pk,
                    "requested": consumption.quantity,
                    "restored": target - current,
                },
            )

        PurchaseLot.objects.filter(pk=lot.pk).update(remaining_quantity=target)
        lot.remaining_quantity = target
        restored.append(lot)

    return restored
