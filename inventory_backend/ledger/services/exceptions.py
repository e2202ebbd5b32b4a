# ledger/services/exceptions.py

"""
LEDGER SERVICE ERRORS
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service failures."""


class CustomerNotFoundError(LedgerServiceError):
    """Raised when a customer id does not resolve to a Customer row."""


class InvalidLedgerEntryError(LedgerServiceError):
    """Raised when a new entry would violate debit/credit rules."""


class ConcurrentModificationError(LedgerServiceError):
    """
    Raised when an entry changed between the reconciliation read and its
    conditional update. The customer's reconciliation rolls back as a whole.
    """

    def __init__(self, entry_id):
        self.entry_id = entry_id
        super().__init__(
            f"Ledger entry {entry_id} changed during reconciliation; run it again."
        )
