# ledger/models/__init__.py

from ledger.models.customer import Customer
from ledger.models.ledger_entry import LedgerEntry

__all__ = [
    "Customer",
    "LedgerEntry",
]
