# products/services/bundle_cost.py

"""
BUNDLE FIFO COSTING

Purpose:
- Price N units of a bundle from the purchase lots its components would
  consume, oldest lot first, WITHOUT touching stock.

Rules:
- Each component needs component.quantity * N units, allocated with the pure
  FIFO allocator across as many lots as it takes.
- Reservations carry units already earmarked by other lines of the same
  invoice, and accumulate across components.
- A component that cannot be fully supplied adds an error and sets
  can_fulfill=False; costing continues for the other components.
- Custom expenses are per bundle unit: total_custom_expenses = Σ amount * N.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal

from core.money import money
from products.item_key import ItemKey
from products.models import Bundle, ProductVariant
from purchases.services.fifo import Allocation, InsufficientStock, InvalidQuantity, allocate, reserve
from purchases.services.stock_service import load_lot_snapshots_for

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class ComponentCost:
    variant_id: str
    item_key: ItemKey
    name: str
    sku: str
    quantity: int
    allocation: object
    variant: ProductVariant | None = field(default=None, compare=False)

    @property
    def consumptions(self):
        if isinstance(self.allocation, Allocation):
            return self.allocation.consumptions
        if isinstance(self.allocation, InsufficientStock):
            return self.allocation.partial
        return ()

    @property
    def total_cost(self) -> Decimal:
        return sum((c.total_cost for c in self.consumptions), ZERO)

    @property
    def fulfilled(self) -> bool:
        return isinstance(self.allocation, Allocation)


@dataclass(frozen=True)
class ExpenseLine:
    name: str
    amount: Decimal
    category: str = ""
    description: str = ""


@dataclass(frozen=True)
class BundleCostBreakdown:
    bundle_id: str
    quantity: int
    components: tuple[ComponentCost, ...] = field(default_factory=tuple)
    expenses: tuple[ExpenseLine, ...] = field(default_factory=tuple)
    errors: tuple[str, ...] = field(default_factory=tuple)
    reservations: dict = field(default_factory=dict)

    @property
    def can_fulfill(self) -> bool:
        return not self.errors

    @property
    def total_component_cost(self) -> Decimal:
        return sum((c.total_cost for c in self.components), ZERO)

    @property
    def total_custom_expenses(self) -> Decimal:
        return sum((e.amount for e in self.expenses), ZERO) * Decimal(self.quantity)

    @property
    def total_cost(self) -> Decimal:
        return self.total_component_cost + self.total_custom_expenses

    @property
    def unit_cost(self) -> Decimal:
        if not self.quantity:
            return ZERO
        return money(self.total_cost / Decimal(self.quantity))


def calculate_bundle_fifo_cost(
    bundle: Bundle,
    quantity: int,
    reservations: Mapping | None = None,
) -> BundleCostBreakdown:
    components = list(bundle.components.select_related("variant", "variant__product"))
    expenses = tuple(
        ExpenseLine(name=e.name, amount=money(e.amount), category=e.category, description=e.description)
        for e in bundle.expenses.all()
    )

    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        return BundleCostBreakdown(
            bundle_id=str(bundle.pk),
            quantity=0,
            expenses=expenses,
            errors=(f"Invalid bundle quantity {quantity!r}",),
            reservations=dict(reservations or {}),
        )

    keys = [c.variant.item_key for c in components]
    lots_by_key = load_lot_snapshots_for(keys)

    errors = []
    costed = []
    reserved = dict(reservations or {})

    if not components:
        errors.append(f"Bundle {bundle.sku} has no components")

    for component in components:
        key = component.variant.item_key
        required = int(component.quantity) * quantity

        result = allocate(key, required, lots_by_key.get(key, []), reserved)
        reserved = reserve(reserved, result)

        if isinstance(result, InvalidQuantity):
            errors.append(result.message)
        elif isinstance(result, InsufficientStock):
            errors.append(
                f"Insufficient stock for component {component.variant.sku}. "
                f"Need: {required}, Available: {result.available_quantity}"
            )

        costed.append(
            ComponentCost(
                variant_id=str(component.variant_id),
                item_key=key,
                name=f"{component.variant.product.name} {component.variant.name}".strip(),
                sku=component.variant.sku,
                quantity=required,
                allocation=result,
                variant=component.variant,
            )
        )

    return BundleCostBreakdown(
        bundle_id=str(bundle.pk),
        quantity=quantity,
        components=tuple(costed),
        expenses=expenses,
        errors=tuple(errors),
        reservations=reserved,
    )
