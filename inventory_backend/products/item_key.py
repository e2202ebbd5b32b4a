# products/item_key.py

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, order=True)
class ItemKey:
    """Composite identity of a stocked item: product + variant."""

    product_id: str
    variant_id: str

    @classmethod
    def of(cls, product_id, variant_id) -> "ItemKey":
        return cls(product_id=str(product_id), variant_id=str(variant_id))

    def __str__(self):
        return f"{self.product_id}-{self.variant_id}"
