# ledger/services/posting.py

"""
======================================================
PATH: ledger/services/posting.py
======================================================
LEDGER POSTING

The only place new LedgerEntry rows are created.

Rules:
- Exactly one of debit / credit is positive.
- The customer row is locked while posting, so two postings for the same
  customer never read the same "previous balance".
- balance = balance of the latest entry at or before `date` + debit - credit.
- A back-dated entry (older than existing entries) shifts every later running
  balance: the customer is reconciled right after the insert.
- Cached customer financials are refreshed after every posting unless the
  caller batches that itself (refresh=False).

Numbering:
- invoice entries carry the invoice number.
- payment entries: PAY-<invoice number, or the full source id>-<n>,
  n = 1 + existing payments for the same source document.
- adjustment / credit_note / debit_note: ADJ / CN / DN sequences.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from core.money import money
from core.sequences import generate_id
from ledger.models import Customer, LedgerEntry
from ledger.services.exceptions import InvalidLedgerEntryError
from ledger.services.recalculator import canonical_payment_number
from ledger.services.reconciliation_service import payment_source_numbers, reconcile_customer
from ledger.services.summary_service import refresh_customer_financials

logger = logging.getLogger(__name__)

NUMBER_PREFIXES = {
    LedgerEntry.TransactionType.ADJUSTMENT: "ADJ",
    LedgerEntry.TransactionType.CREDIT_NOTE: "CN",
    LedgerEntry.TransactionType.DEBIT_NOTE: "DN",
}


def next_payment_number(transaction_id) -> str:
    transaction_id = str(transaction_id)
    existing = LedgerEntry.objects.filter(
        transaction_type=LedgerEntry.TransactionType.PAYMENT,
        transaction_id=transaction_id,
    ).count()
    reference = payment_source_numbers([transaction_id]).get(transaction_id, transaction_id)
    return canonical_payment_number(reference, existing + 1)


def _default_number(transaction_type, transaction_id) -> str:
    if transaction_type == LedgerEntry.TransactionType.PAYMENT:
        if not transaction_id:
            raise InvalidLedgerEntryError("payment entries need the source transaction_id")
        return next_payment_number(transaction_id)

    prefix = NUMBER_PREFIXES.get(transaction_type)
    if prefix is None:
        raise InvalidLedgerEntryError(f"{transaction_type} entries need an explicit transaction_number")
    return generate_id(prefix)


def _previous_balance(customer: Customer, date) -> Decimal:
    previous = (
        LedgerEntry.objects.filter(customer=customer, date__lte=date)
        .order_by("-date", "-created_at", "-id")
        .values_list("balance", flat=True)
        .first()
    )
    return money(previous)


@transaction.atomic
def record_entry(
    *,
    customer: Customer,
    transaction_type: str,
    description: str,
    debit=0,
    credit=0,
    transaction_id: str = "",
    transaction_number: str | None = None,
    date=None,
    payment_method: str = "",
    reference: str = "",
    created_by: str = "",
    refresh: bool = True,
) -> LedgerEntry:
    debit = money(debit)
    credit = money(credit)

    if debit < 0 or credit < 0:
        raise InvalidLedgerEntryError("debit and credit cannot be negative")
    if (debit > 0) == (credit > 0):
        raise InvalidLedgerEntryError("Entry must have exactly one of debit or credit")

    # Serialize postings per customer.
    customer = Customer.objects.select_for_update().get(pk=customer.pk)

    date = date or timezone.now()
    transaction_id = str(transaction_id or "")
    number = transaction_number or _default_number(transaction_type, transaction_id)

    back_dated = LedgerEntry.objects.filter(customer=customer, date__gt=date).exists()
    balance = _previous_balance(customer, date) + debit - credit

    entry = LedgerEntry(
        customer=customer,
        transaction_type=transaction_type,
        transaction_id=transaction_id,
        transaction_number=number,
        date=date,
        description=description,
        debit=debit,
        credit=credit,
        balance=balance,
        payment_method=payment_method,
        reference=reference,
        created_by=created_by,
    )
    entry.save()

    logger.info(
        "Posted ledger entry",
        extra={
            "customer_id": str(customer.pk),
            "transaction_number": number,
            "transaction_type": transaction_type,
            "debit": str(debit),
            "credit": str(credit),
        },
    )

    if back_dated:
        reconcile_customer(customer.pk)
        entry.refresh_from_db()

    if refresh:
        refresh_customer_financials(customer)

    return entry
