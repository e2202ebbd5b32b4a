# sales/services/exceptions.py

"""
INVOICE SERVICE ERRORS

Stock failures (InsufficientStockError, InvalidQuantityError,
ConcurrentModificationError) come from purchases.services.stock_service and
are re-raised unchanged.
"""


class InvoiceServiceError(Exception):
    """Base exception for all invoice service failures."""


class InvoiceValidationError(InvoiceServiceError):
    """Raised when invoice input is incomplete or inconsistent."""


class InvoiceStateError(InvoiceServiceError):
    """Raised when an operation is not allowed in the invoice's current status."""


class PaymentError(InvoiceServiceError):
    """Raised when a payment cannot be recorded."""


class QuotationStateError(InvoiceServiceError):
    """Raised when a quotation cannot move to the requested status or be converted."""
