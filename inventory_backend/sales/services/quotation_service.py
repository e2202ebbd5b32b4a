# sales/services/quotation_service.py

"""
QUOTATION SERVICE

- create_quotation(): same line rules and totals as invoices, no stock and
  no ledger.
- update_quotation_status(): draft -> sent -> accepted / rejected, or
  cancelled from any open status.
- convert_quotation_to_invoice(): issues a real invoice through
  create_invoice() and marks the quotation converted. Both happen in one
  transaction, so a stock failure leaves the quotation open.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import timedelta

from django.db import transaction
from django.utils import timezone

from ledger.models import Customer
from sales.models import Invoice, Quotation, QuotationItem
from sales.services.exceptions import QuotationStateError
from sales.services.invoice_service import compute_totals, create_invoice, normalize_lines

logger = logging.getLogger(__name__)

DEFAULT_DUE_DAYS = 30

ALLOWED_TRANSITIONS = {
    Quotation.Status.DRAFT.value: (Quotation.Status.SENT, Quotation.Status.CANCELLED),
    Quotation.Status.SENT.value: (
        Quotation.Status.ACCEPTED,
        Quotation.Status.REJECTED,
        Quotation.Status.CANCELLED,
    ),
    Quotation.Status.ACCEPTED.value: (Quotation.Status.CANCELLED,),
    Quotation.Status.REJECTED.value: (Quotation.Status.CANCELLED,),
}


@transaction.atomic
def create_quotation(
    *,
    customer: Customer,
    lines: Iterable,
    discount_amount=0,
    tax_amount=0,
    date=None,
    valid_until=None,
    billing_type: str = Invoice.BillingType.RETAIL,
    notes: str = "",
    created_by: str = "",
    project=None,
) -> Quotation:
    normalized = normalize_lines(lines)
    subtotal, discount, tax, total = compute_totals(normalized, discount_amount, tax_amount)

    quotation = Quotation.objects.create(
        customer=customer,
        project=project,
        date=date or timezone.now(),
        valid_until=valid_until,
        billing_type=billing_type,
        subtotal=subtotal,
        discount_amount=discount,
        tax_amount=tax,
        total_amount=total,
        notes=notes,
        created_by=created_by,
    )
    for line in normalized:
        QuotationItem.objects.create(
            quotation=quotation,
            variant=line.variant,
            bundle=line.bundle,
            description=line.description,
            quantity=line.quantity,
            rate=line.rate,
        )

    logger.info(
        "Created quotation",
        extra={"quotation_number": quotation.quotation_number, "total": str(total)},
    )
    return quotation


@transaction.atomic
def update_quotation_status(quotation: Quotation, status: str) -> Quotation:
    quotation = Quotation.objects.select_for_update().get(pk=quotation.pk)

    if status == Quotation.Status.CONVERTED:
        raise QuotationStateError("Use convert_quotation_to_invoice to convert a quotation")
    if status not in ALLOWED_TRANSITIONS.get(str(quotation.status), ()):
        raise QuotationStateError(f"Cannot move a {quotation.status} quotation to {status}")

    quotation.status = status
    quotation.save()
    return quotation


@transaction.atomic
def convert_quotation_to_invoice(
    quotation: Quotation,
    *,
    created_by: str = "",
    date=None,
    due_date=None,
    draft: bool = False,
    max_attempts: int | None = None,
) -> Invoice:
    quotation = Quotation.objects.select_for_update().get(pk=quotation.pk)

    if quotation.status not in Quotation.CONVERTIBLE_STATUSES:
        raise QuotationStateError(f"Cannot convert a {quotation.status} quotation")
    if quotation.is_expired():
        raise QuotationStateError(f"Quotation {quotation.quotation_number} expired on {quotation.valid_until}")

    date = date or timezone.now()
    lines = [
        {
            "variant": item.variant,
            "bundle": item.bundle,
            "description": item.description,
            "quantity": item.quantity,
            "rate": item.rate,
        }
        for item in quotation.items.select_related("variant__product", "bundle").order_by("id")
    ]

    invoice = create_invoice(
        customer=quotation.customer,
        lines=lines,
        discount_amount=quotation.discount_amount,
        tax_amount=quotation.tax_amount,
        date=date,
        due_date=due_date or (timezone.localdate(date) + timedelta(days=DEFAULT_DUE_DAYS)),
        billing_type=quotation.billing_type,
        notes=quotation.notes or f"Converted from quotation {quotation.quotation_number}",
        created_by=created_by,
        draft=draft,
        project=quotation.project,
        max_attempts=max_attempts,
    )

    quotation.status = Quotation.Status.CONVERTED
    quotation.converted_invoice = invoice
    quotation.converted_at = timezone.now()
    quotation.save()

    logger.info(
        "Converted quotation to invoice",
        extra={
            "quotation_number": quotation.quotation_number,
            "invoice_number": invoice.invoice_number,
        },
    )
    return invoice
