# sales/services/profit.py

"""
INVOICE PROFIT (PURE)

profit  = Σ (rate - original_rate) * quantity - invoice discount
          (a missing original_rate counts as 0; tax is not profit)
custom  = any line without original_rate, or rate away from it by > 0.01
"""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal

from core.money import money

CUSTOM_RATE_TOLERANCE = Decimal("0.01")


def _get(item, name):
    if isinstance(item, dict):
        return item.get(name)
    return getattr(item, name, None)


def calculate_invoice_profit(items: Iterable, discount_amount=0) -> Decimal:
    total = Decimal("0")
    for item in items:
        cost = _get(item, "original_rate")
        cost = Decimal(str(cost)) if cost is not None else Decimal("0")
        rate = Decimal(str(_get(item, "rate") or 0))
        quantity = Decimal(str(_get(item, "quantity") or 0))
        total += (rate - cost) * quantity

    return money(total - money(discount_amount))


def is_invoice_custom(items: Iterable) -> bool:
    for item in items:
        original = _get(item, "original_rate")
        if original is None:
            return True
        rate = Decimal(str(_get(item, "rate") or 0))
        if abs(rate - Decimal(str(original))) > CUSTOM_RATE_TOLERANCE:
            return True
    return False
