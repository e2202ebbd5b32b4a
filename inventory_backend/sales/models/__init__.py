# sales/models/__init__.py

"""
SALES MODELS PACKAGE EXPORTS
"""

from .invoice import Invoice
from .invoice_item import InvoiceItem, InvoiceItemAllocation
from .payment import Payment
from .quotation import Quotation, QuotationItem

__all__ = [
    "Invoice",
    "InvoiceItem",
    "InvoiceItemAllocation",
    "Payment",
    "Quotation",
    "QuotationItem",
]
