# purchases/tests/test_fifo.py

from __future__ import annotations

from datetime import datetime, timezone as dt_timezone
from decimal import Decimal

from django.test import SimpleTestCase

from products.item_key import ItemKey
from purchases.services.fifo import (
    Allocation,
    InsufficientStock,
    InvalidQuantity,
    LotSnapshot,
    allocate,
    effective_stock,
    reserve,
)

ITEM = ItemKey.of("prod-1", "var-1")
OTHER = ItemKey.of("prod-1", "var-2")


def _lot(lot_id, d, cost, remaining, key=ITEM):
    return LotSnapshot(
        id=lot_id,
        item_key=key,
        purchase_date=datetime(2025, 1, d, tzinfo=dt_timezone.utc),
        unit_cost=Decimal(str(cost)),
        remaining_quantity=remaining,
    )


def _triples(consumptions):
    return [(c.lot_id, c.quantity, c.unit_cost) for c in consumptions]


class FifoAllocateTests(SimpleTestCase):
    """
    Pure allocator.

    GUARANTEES:
    - Oldest lot first, (purchase_date, id) order
    - Shortfall is reported, never raised
    - Reservations shrink what a lot can give
    """

    def setUp(self):
        self.lots = [_lot(1, 1, 10, 5), _lot(2, 5, 12, 5)]

    def test_allocates_oldest_lot_first(self):
        result = allocate(ITEM, 7, self.lots)

        self.assertIsInstance(result, Allocation)
        self.assertEqual(
            _triples(result.consumptions),
            [(1, 5, Decimal("10")), (2, 2, Decimal("12"))],
        )
        self.assertEqual(result.total_cost, Decimal("74"))
        self.assertEqual(result.allocated_quantity, 7)

    def test_free_stock_is_consumed_in_order(self):
        lots = [_lot(3, 1, 0, 4), _lot(4, 2, 10, 5)]

        result = allocate(ITEM, 6, lots)

        self.assertIsInstance(result, Allocation)
        self.assertEqual(
            _triples(result.consumptions),
            [(3, 4, Decimal("0")), (4, 2, Decimal("10"))],
        )
        self.assertEqual(result.total_cost, Decimal("20"))
        self.assertEqual(result.weighted_unit_cost, Decimal("20") / Decimal("6"))

        free_only = allocate(ITEM, 3, lots)
        self.assertEqual(free_only.total_cost, Decimal("0"))
        self.assertEqual(free_only.weighted_unit_cost, Decimal("0"))

    def test_input_order_does_not_matter(self):
        result = allocate(ITEM, 7, list(reversed(self.lots)))
        self.assertEqual([c.lot_id for c in result.consumptions], [1, 2])

    def test_insufficient_stock_reports_shortfall_and_partial(self):
        result = allocate(ITEM, 11, self.lots)

        self.assertIsInstance(result, InsufficientStock)
        self.assertEqual(result.shortfall, 1)
        self.assertEqual(result.available_quantity, 10)
        self.assertEqual(
            _triples(result.partial),
            [(1, 5, Decimal("10")), (2, 5, Decimal("12"))],
        )
        self.assertIn("Short by: 1", result.message)

    def test_exact_quantity_drains_every_lot(self):
        result = allocate(ITEM, 10, self.lots)
        self.assertIsInstance(result, Allocation)
        self.assertEqual(sum(c.quantity for c in result.consumptions), 10)

    def test_invalid_quantities_are_rejected(self):
        for bad in (0, -3, None, True, 1.5, "2"):
            with self.subTest(quantity=bad):
                self.assertIsInstance(allocate(ITEM, bad, self.lots), InvalidQuantity)

    def test_lots_of_other_items_are_ignored(self):
        lots = self.lots + [_lot(3, 1, 1, 100, key=OTHER)]
        result = allocate(ITEM, 11, lots)
        self.assertIsInstance(result, InsufficientStock)
        self.assertNotIn(3, [c.lot_id for c in result.partial])

    def test_exhausted_lots_are_skipped(self):
        lots = [_lot(1, 1, 10, 0), _lot(2, 5, 12, 5)]
        result = allocate(ITEM, 3, lots)
        self.assertEqual(_triples(result.consumptions), [(2, 3, Decimal("12"))])

    def test_same_purchase_date_breaks_tie_on_id(self):
        lots = [_lot(9, 1, 7, 5), _lot(4, 1, 8, 5)]
        result = allocate(ITEM, 6, lots)
        self.assertEqual([c.lot_id for c in result.consumptions], [4, 9])

    def test_reservations_reduce_available_stock(self):
        result = allocate(ITEM, 4, self.lots, {1: 3})
        self.assertEqual(
            _triples(result.consumptions),
            [(1, 2, Decimal("10")), (2, 2, Decimal("12"))],
        )

    def test_over_reserved_lot_counts_as_empty(self):
        self.assertEqual(effective_stock(ITEM, self.lots, {1: 50}), 5)

    def test_reserve_accumulates_consumptions(self):
        first = allocate(ITEM, 3, self.lots)
        reservations = reserve({}, first)
        second = allocate(ITEM, 3, self.lots, reservations)

        self.assertEqual(reservations, {1: 3})
        self.assertEqual(reserve(reservations, second), {1: 5, 2: 1})

    def test_reserve_ignores_invalid_results(self):
        self.assertEqual(reserve({1: 2}, allocate(ITEM, 0, self.lots)), {1: 2})

    def test_weighted_unit_cost(self):
        result = allocate(ITEM, 10, self.lots)
        self.assertEqual(result.weighted_unit_cost, Decimal("11"))
