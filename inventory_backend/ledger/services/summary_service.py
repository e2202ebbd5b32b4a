# ledger/services/summary_service.py

"""
CUSTOMER LEDGER SUMMARIES

- summarize_entries(): pure totals over any iterable of entries.
- get_customer_summary(): totals over ALL of a customer's entries. On a
  reconciled ledger current_balance equals the latest entry's balance.
- refresh_customer_financials(): rewrites the cached Customer fields.
  Invoice entries of CANCELLED invoices stay in the ledger for audit but are
  excluded from the cached totals.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from django.db import DatabaseError, transaction
from django.db.models import Q, Sum

from core.money import money
from ledger.models import Customer, LedgerEntry

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class CustomerLedgerSummary:
    customer_id: str
    total_debit: Decimal
    total_credit: Decimal
    entry_count: int = 0

    @property
    def current_balance(self) -> Decimal:
        return self.total_debit - self.total_credit


def summarize_entries(customer_id, entries: Iterable) -> CustomerLedgerSummary:
    total_debit = ZERO
    total_credit = ZERO
    count = 0
    for entry in entries:
        total_debit += money(entry.debit)
        total_credit += money(entry.credit)
        count += 1

    return CustomerLedgerSummary(
        customer_id=str(customer_id),
        total_debit=total_debit,
        total_credit=total_credit,
        entry_count=count,
    )


def get_customer_summary(customer: Customer) -> CustomerLedgerSummary:
    agg = LedgerEntry.objects.filter(customer=customer).aggregate(
        total_debit=Sum("debit"),
        total_credit=Sum("credit"),
    )
    return CustomerLedgerSummary(
        customer_id=str(customer.pk),
        total_debit=money(agg["total_debit"]),
        total_credit=money(agg["total_credit"]),
        entry_count=LedgerEntry.objects.filter(customer=customer).count(),
    )


def latest_entry(customer: Customer) -> LedgerEntry | None:
    return (
        LedgerEntry.objects.filter(customer=customer)
        .order_by("-date", "-created_at", "-id")
        .first()
    )


def cancelled_invoice_ids(customer: Customer | None = None) -> list[str]:
    from sales.models import Invoice

    qs = Invoice.objects.filter(status=Invoice.Status.CANCELLED)
    if customer is not None:
        qs = qs.filter(customer=customer)
    return [str(pk) for pk in qs.values_list("id", flat=True)]


@transaction.atomic
def refresh_customer_financials(customer: Customer) -> Customer:
    cancelled = cancelled_invoice_ids(customer)

    active = LedgerEntry.objects.filter(customer=customer).filter(
        ~Q(transaction_type=LedgerEntry.TransactionType.INVOICE)
        | ~Q(transaction_id__in=cancelled)
    )

    agg = active.aggregate(total_debit=Sum("debit"), total_credit=Sum("credit"))
    total_invoiced = money(agg["total_debit"])
    total_paid = money(agg["total_credit"])

    last_invoice = (
        active.filter(transaction_type=LedgerEntry.TransactionType.INVOICE)
        .order_by("-date")
        .values_list("date", flat=True)
        .first()
    )
    last_payment = (
        active.filter(transaction_type=LedgerEntry.TransactionType.PAYMENT)
        .order_by("-date")
        .values_list("date", flat=True)
        .first()
    )

    Customer.objects.filter(pk=customer.pk).update(
        total_invoiced=total_invoiced,
        total_paid=total_paid,
        outstanding_balance=total_invoiced - total_paid,
        last_invoice_date=last_invoice,
        last_payment_date=last_payment,
    )
    customer.refresh_from_db()

    logger.debug(
        "Refreshed customer financials",
        extra={"customer_id": str(customer.pk), "outstanding": str(customer.outstanding_balance)},
    )
    return customer


def refresh_all_customer_financials(customers: Iterable[Customer] | None = None) -> tuple[int, list[str]]:
    """Returns (updated_count, errors). One customer's failure never stops the run."""
    updated = 0
    errors = []
    for customer in customers if customers is not None else Customer.objects.all():
        try:
            refresh_customer_financials(customer)
            updated += 1
        except DatabaseError as exc:
            logger.error(
                "Failed to refresh customer financials",
                extra={"customer_id": str(customer.pk), "error": str(exc)},
            )
            errors.append(f"Failed to update customer {customer.customer_code or customer.pk}: {exc}")
    return updated, errors
