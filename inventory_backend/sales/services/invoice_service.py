# sales/services/invoice_service.py

"""
INVOICE SERVICE (APPLICATION SERVICE)

Purpose:
- Create invoices, deduct their stock FIFO, post them to the customer ledger.
- Record payments against invoices.
- Cancel unpaid invoices and put their stock back.

Hard rules:
- Quantities are integer units.
- Every stocked line of ONE invoice is allocated against the same fresh lot
  read, with reservations accumulated line by line, so two lines of the same
  item never double-book a lot.
- All lot decrements, invoice rows, allocation audit rows and the ledger
  debit succeed together or roll back together.
- A lost race on a lot (ConcurrentModificationError) restarts the whole
  attempt from fresh state, up to STOCK_ALLOCATION_MAX_ATTEMPTS times.
- Drafts hold no stock and post nothing until issued.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from core.money import money
from ledger.models import Customer, LedgerEntry
from ledger.services.posting import record_entry
from ledger.services.summary_service import refresh_customer_financials
from products.models import Bundle, ProductVariant
from products.services.bundle_cost import calculate_bundle_fifo_cost
from purchases.services.fifo import (
    Allocation,
    InsufficientStock,
    InvalidQuantity,
    LotConsumption,
    allocate,
    reserve,
)
from purchases.services.stock_service import (
    ConcurrentModificationError,
    InsufficientStockError,
    InvalidQuantityError,
    commit_allocation,
    load_lot_snapshots,
    restore_consumptions,
)
from sales.models import Invoice, InvoiceItem, InvoiceItemAllocation, Payment
from sales.services.exceptions import (
    InvoiceStateError,
    InvoiceValidationError,
    PaymentError,
)
from sales.services.profit import calculate_invoice_profit, is_invoice_custom

logger = logging.getLogger(__name__)


# ============================================================
# INPUT
# ============================================================

@dataclass(frozen=True)
class InvoiceLine:
    quantity: int
    rate: Decimal
    variant: ProductVariant | None = None
    bundle: Bundle | None = None
    description: str = ""


def _to_int_qty(value) -> int:
    if isinstance(value, bool):
        raise InvoiceValidationError("quantity must be a whole integer unit")
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    raise InvoiceValidationError("quantity must be a whole integer unit")


def normalize_lines(lines: Iterable) -> list[InvoiceLine]:
    normalized = []
    for idx, line in enumerate(lines or []):
        if isinstance(line, dict):
            line = InvoiceLine(
                quantity=line.get("quantity"),
                rate=line.get("rate"),
                variant=line.get("variant"),
                bundle=line.get("bundle"),
                description=line.get("description") or "",
            )

        if line.variant is not None and line.bundle is not None:
            raise InvoiceValidationError(f"Line {idx}: choose a variant or a bundle, not both")

        quantity = _to_int_qty(line.quantity)
        if quantity <= 0:
            raise InvoiceValidationError(f"Line {idx}: quantity must be greater than zero")

        try:
            rate = money(line.rate)
        except ValueError as exc:
            raise InvoiceValidationError(f"Line {idx}: invalid rate {line.rate!r}") from exc
        if rate < 0:
            raise InvoiceValidationError(f"Line {idx}: rate cannot be negative")

        description = (line.description or "").strip()
        if not description:
            if line.variant is not None:
                description = f"{line.variant.product.name} {line.variant.name}".strip()
            elif line.bundle is not None:
                description = line.bundle.name
            else:
                raise InvoiceValidationError(f"Line {idx}: manual lines need a description")

        normalized.append(
            InvoiceLine(
                quantity=quantity,
                rate=rate,
                variant=line.variant,
                bundle=line.bundle,
                description=description,
            )
        )

    if not normalized:
        raise InvoiceValidationError("Invoice must have at least one line")
    return normalized


def compute_totals(lines: list[InvoiceLine], discount_amount=0, tax_amount=0) -> tuple[Decimal, Decimal, Decimal, Decimal]:
    """(subtotal, discount, tax, total) for normalized lines."""
    discount = money(discount_amount)
    tax = money(tax_amount)
    if discount < 0 or tax < 0:
        raise InvoiceValidationError("discount and tax cannot be negative")

    subtotal = sum((money(Decimal(l.quantity) * l.rate) for l in lines), Decimal("0.00"))
    if discount > subtotal:
        raise InvoiceValidationError("discount cannot exceed the subtotal")
    return subtotal, discount, tax, subtotal - discount + tax


def _max_attempts(max_attempts: int | None) -> int:
    return int(max_attempts or getattr(settings, "STOCK_ALLOCATION_MAX_ATTEMPTS", 3) or 1)


# ============================================================
# STOCK PLANNING
# ============================================================

@dataclass(frozen=True)
class LinePlan:
    item: InvoiceItem
    allocations: tuple[tuple[ProductVariant, Allocation], ...]
    original_rate: Decimal | None


def _raise_for(result) -> None:
    if isinstance(result, InvalidQuantity):
        raise InvalidQuantityError(result)
    if isinstance(result, InsufficientStock):
        raise InsufficientStockError(result)


def _plan_stock(items: list[InvoiceItem]) -> list[LinePlan]:
    reservations: dict = {}
    plans = []

    for item in items:
        if item.variant_id:
            key = item.variant.item_key
            result = allocate(key, item.quantity, load_lot_snapshots(key), reservations)
            _raise_for(result)
            reservations = reserve(reservations, result)
            plans.append(
                LinePlan(
                    item=item,
                    allocations=((item.variant, result),),
                    original_rate=money(result.weighted_unit_cost),
                )
            )

        elif item.bundle_id:
            breakdown = calculate_bundle_fifo_cost(item.bundle, item.quantity, reservations)
            for component in breakdown.components:
                _raise_for(component.allocation)
            if not breakdown.can_fulfill:
                raise InvoiceValidationError("; ".join(breakdown.errors))

            reservations = breakdown.reservations
            plans.append(
                LinePlan(
                    item=item,
                    allocations=tuple(
                        (component.variant, component.allocation)
                        for component in breakdown.components
                    ),
                    original_rate=breakdown.unit_cost,
                )
            )

        else:
            plans.append(LinePlan(item=item, allocations=(), original_rate=None))

    return plans


def _apply_plans(plans: list[LinePlan]) -> None:
    for plan in plans:
        first_lot_id = None
        for variant, allocation in plan.allocations:
            commit_allocation(allocation)
            for consumption in allocation.consumptions:
                first_lot_id = first_lot_id or consumption.lot_id
                InvoiceItemAllocation.objects.create(
                    invoice_item=plan.item,
                    lot_id=consumption.lot_id,
                    variant=variant,
                    quantity=consumption.quantity,
                    unit_cost=consumption.unit_cost,
                )

        item = plan.item
        item.original_rate = plan.original_rate
        item.purchase_lot_id = first_lot_id
        item.save()


# ============================================================
# ISSUE (stock + ledger)
# ============================================================

def _issue(invoice: Invoice) -> Invoice:
    items = list(invoice.items.select_related("variant", "variant__product", "bundle").order_by("id"))

    plans = _plan_stock(items)
    _apply_plans(plans)

    items = [plan.item for plan in plans]
    invoice.profit = calculate_invoice_profit(items, invoice.discount_amount)
    invoice.custom = is_invoice_custom(items)
    invoice.stock_deducted = True
    invoice.status = Invoice.Status.ISSUED
    invoice.save()

    if invoice.total_amount > 0:
        record_entry(
            customer=invoice.customer,
            transaction_type=LedgerEntry.TransactionType.INVOICE,
            transaction_id=str(invoice.pk),
            transaction_number=invoice.invoice_number,
            date=invoice.date,
            debit=invoice.total_amount,
            description=f"Invoice {invoice.invoice_number}",
            created_by=invoice.created_by,
        )

    logger.info(
        "Issued invoice",
        extra={
            "invoice_number": invoice.invoice_number,
            "customer_id": str(invoice.customer_id),
            "total": str(invoice.total_amount),
            "profit": str(invoice.profit),
        },
    )
    return invoice


def _with_retry(fn, max_attempts: int | None, label: str):
    attempts = _max_attempts(max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            with transaction.atomic():
                return fn()
        except ConcurrentModificationError:
            if attempt >= attempts:
                raise
            logger.info(
                "Retrying after concurrent lot modification",
                extra={"operation": label, "attempt": attempt},
            )
    raise InvoiceStateError(f"{label} retry loop exited without a result")


# ============================================================
# PUBLIC API
# ============================================================

def create_invoice(
    *,
    customer: Customer,
    lines: Iterable,
    discount_amount=0,
    tax_amount=0,
    date=None,
    due_date=None,
    billing_type: str = Invoice.BillingType.RETAIL,
    notes: str = "",
    created_by: str = "",
    draft: bool = False,
    project=None,
    max_attempts: int | None = None,
) -> Invoice:
    normalized = normalize_lines(lines)
    subtotal, discount, tax, total = compute_totals(normalized, discount_amount, tax_amount)

    def attempt() -> Invoice:
        invoice = Invoice.objects.create(
            customer=customer,
            date=date or timezone.now(),
            due_date=due_date,
            billing_type=billing_type,
            status=Invoice.Status.DRAFT,
            subtotal=subtotal,
            discount_amount=discount,
            tax_amount=tax,
            total_amount=total,
            notes=notes,
            created_by=created_by,
            project=project,
        )
        for line in normalized:
            InvoiceItem.objects.create(
                invoice=invoice,
                variant=line.variant,
                bundle=line.bundle,
                description=line.description,
                quantity=line.quantity,
                rate=line.rate,
            )

        if draft:
            return invoice
        return _issue(invoice)

    return _with_retry(attempt, max_attempts, "create_invoice")


def issue_invoice(invoice: Invoice, *, max_attempts: int | None = None) -> Invoice:
    def attempt() -> Invoice:
        locked = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if locked.status != Invoice.Status.DRAFT:
            raise InvoiceStateError(f"Only draft invoices can be issued (status: {locked.status})")
        return _issue(locked)

    return _with_retry(attempt, max_attempts, "issue_invoice")


@transaction.atomic
def record_payment(
    invoice: Invoice,
    *,
    amount,
    method: str = LedgerEntry.PaymentMethod.CASH,
    date=None,
    reference: str = "",
    notes: str = "",
    created_by: str = "",
) -> Payment:
    invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)

    if invoice.status not in Invoice.PAYABLE_STATUSES:
        raise InvoiceStateError(f"Cannot record a payment on a {invoice.status} invoice")

    try:
        amount = money(amount)
    except ValueError as exc:
        raise PaymentError(f"Invalid payment amount {amount!r}") from exc
    if amount <= 0:
        raise PaymentError("Payment amount must be greater than zero")
    if amount > invoice.balance_amount:
        raise PaymentError(
            f"Payment {amount} exceeds the outstanding amount {invoice.balance_amount}"
        )
    if method not in LedgerEntry.PaymentMethod.values:
        raise PaymentError(f"Unknown payment method {method!r}")

    date = date or timezone.now()
    entry = record_entry(
        customer=invoice.customer,
        transaction_type=LedgerEntry.TransactionType.PAYMENT,
        transaction_id=str(invoice.pk),
        date=date,
        credit=amount,
        description=f"Payment for {invoice.invoice_number}",
        payment_method=method,
        reference=reference,
        created_by=created_by,
    )

    payment = Payment.objects.create(
        invoice=invoice,
        ledger_entry=entry,
        amount=amount,
        method=method,
        date=date,
        reference=reference,
        notes=notes,
        transaction_number=entry.transaction_number,
        created_by=created_by,
    )

    invoice.paid_amount = invoice.paid_amount + amount
    invoice.status = Invoice.Status.PAID if invoice.balance_amount <= 0 else Invoice.Status.PARTIAL
    invoice.save()

    logger.info(
        "Recorded invoice payment",
        extra={
            "invoice_number": invoice.invoice_number,
            "amount": str(amount),
            "transaction_number": entry.transaction_number,
            "status": invoice.status,
        },
    )
    return payment


@transaction.atomic
def cancel_invoice(invoice: Invoice, *, reason: str = "") -> Invoice:
    invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)

    if invoice.status == Invoice.Status.CANCELLED:
        raise InvoiceStateError("Invoice is already cancelled")
    if invoice.paid_amount > 0 or invoice.payments.exists():
        raise InvoiceStateError(
            f"Cannot cancel invoice with payments ({invoice.paid_amount} paid)"
        )

    allocations = list(
        InvoiceItemAllocation.objects.select_for_update()
        .filter(invoice_item__invoice=invoice, restored_at__isnull=True)
        .order_by("id")
    )
    if allocations:
        restore_consumptions(
            LotConsumption(lot_id=a.lot_id, quantity=a.quantity, unit_cost=a.unit_cost)
            for a in allocations
        )
        InvoiceItemAllocation.objects.filter(pk__in=[a.pk for a in allocations]).update(
            restored_at=timezone.now()
        )

    was_issued = invoice.status != Invoice.Status.DRAFT
    invoice.status = Invoice.Status.CANCELLED
    invoice.stock_deducted = False
    invoice.cancelled_at = timezone.now()
    invoice.cancel_reason = (reason or "").strip()[:255]
    invoice.save()

    # The invoice ledger entry stays for audit; cached totals exclude it.
    if was_issued:
        refresh_customer_financials(invoice.customer)

    logger.info(
        "Cancelled invoice",
        extra={
            "invoice_number": invoice.invoice_number,
            "restored_allocations": len(allocations),
        },
    )
    return invoice
