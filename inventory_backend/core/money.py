# core/money.py

from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def money(value) -> Decimal:
    """
    Normalize a monetary input to a 2dp Decimal.

    None / "" are treated as zero. Floats go through str() so 0.1 stays 0.10.
    """
    if value is None or value == "":
        return ZERO
    if isinstance(value, bool):
        raise ValueError("monetary value must be a number")
    try:
        return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError) as exc:
        raise ValueError(f"invalid monetary value: {value!r}") from exc
