# ledger/services/consistency.py

"""
LEDGER CONSISTENCY CHECKS (READ-ONLY)

verify_ledger_consistency() returns a list of ConsistencyIssue; an empty list
means no problems were found. Nothing is repaired here: balances and payment
numbers are fixed by `fix_ledger_balances`, cached totals by
`recalculate_customer_financials`.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from django.db.models import Count

from ledger.models import Customer, LedgerEntry
from ledger.services.reconciliation_service import customers_with_entries, load_entry_snapshots
from ledger.services.recalculator import recalculate
from ledger.services.summary_service import get_customer_summary, latest_entry

DETAIL_LIMIT = 10

INFO = "info"
WARNING = "warning"
ERROR = "error"


@dataclass(frozen=True)
class ConsistencyIssue:
    type: str
    description: str
    count: int
    severity: str = WARNING
    details: dict = field(default_factory=dict)

    def as_dict(self) -> dict:
        return {
            "type": self.type,
            "description": self.description,
            "count": self.count,
            "severity": self.severity,
            "details": self.details,
        }


def _sample(values: list) -> dict:
    details = {"examples": values[:DETAIL_LIMIT]}
    if len(values) > DETAIL_LIMIT:
        details["note"] = f"Showing first {DETAIL_LIMIT} of {len(values)}"
    return details


# ============================================================
# LEDGER-ONLY CHECKS
# ============================================================

def check_duplicate_numbers() -> ConsistencyIssue | None:
    duplicates = list(
        LedgerEntry.objects.order_by()
        .values("transaction_number")
        .annotate(n=Count("id"))
        .filter(n__gt=1)
        .values_list("transaction_number", "n")
    )
    if not duplicates:
        return None
    return ConsistencyIssue(
        type="duplicate_transaction_numbers",
        description="Duplicate transaction numbers found",
        count=len(duplicates),
        severity=ERROR,
        details=_sample([{"transaction_number": num, "count": n} for num, n in duplicates]),
    )


def check_running_balances() -> list[ConsistencyIssue]:
    stale = []
    malformed = []
    mismatched = []

    for customer_id in customers_with_entries():
        result = recalculate(customer_id, load_entry_snapshots(customer_id))

        if result.corrections:
            stale.append({"customer_id": str(customer_id), "entries": result.changed_count})
        malformed.extend(str(e) for e in result.errors)

        customer = Customer.objects.get(pk=customer_id)
        summary = get_customer_summary(customer)
        latest = latest_entry(customer)
        if latest is not None and latest.balance != summary.current_balance:
            mismatched.append(
                {
                    "customer_id": str(customer_id),
                    "latest_balance": str(latest.balance),
                    "summary_balance": str(summary.current_balance),
                }
            )

    issues = []
    if stale:
        issues.append(
            ConsistencyIssue(
                type="stale_running_balances",
                description="Customers whose stored balances or payment numbers differ from a recalculation",
                count=len(stale),
                details=_sample(stale),
            )
        )
    if malformed:
        issues.append(
            ConsistencyIssue(
                type="malformed_entries",
                description="Entries with both or neither of debit and credit, or negative amounts",
                count=len(malformed),
                severity=ERROR,
                details=_sample(malformed),
            )
        )
    if mismatched:
        issues.append(
            ConsistencyIssue(
                type="summary_balance_mismatch",
                description="Customers whose latest entry balance differs from total debit minus total credit",
                count=len(mismatched),
                details=_sample(mismatched),
            )
        )
    return issues


# ============================================================
# INVOICE / LEDGER CROSS CHECKS
# ============================================================

def check_invoices() -> list[ConsistencyIssue]:
    from sales.models import Invoice

    issues = []
    cancelled_ids = [
        str(pk) for pk in Invoice.objects.filter(status=Invoice.Status.CANCELLED).values_list("id", flat=True)
    ]

    cancelled_entries = LedgerEntry.objects.filter(
        transaction_type__in=[LedgerEntry.TransactionType.INVOICE, LedgerEntry.TransactionType.PAYMENT],
        transaction_id__in=cancelled_ids,
    ).count()
    if cancelled_entries:
        issues.append(
            ConsistencyIssue(
                type="cancelled_invoice_entries",
                description=(
                    "Ledger entries exist for cancelled invoices "
                    "(excluded from customer totals, kept for audit)"
                ),
                count=cancelled_entries,
                severity=INFO,
                details={"cancelled_invoices": len(cancelled_ids)},
            )
        )

    payment_counts = LedgerEntry.objects.filter(
        transaction_type=LedgerEntry.TransactionType.PAYMENT
    ).order_by().values("transaction_id").annotate(n=Count("id"))
    ledger_payments = {row["transaction_id"]: row["n"] for row in payment_counts}

    mismatched = []
    invoices = Invoice.objects.annotate(payment_count=Count("payments")).filter(payment_count__gt=0)
    for invoice in invoices:
        if ledger_payments.get(str(invoice.pk), 0) != invoice.payment_count:
            mismatched.append(invoice.invoice_number)
    if mismatched:
        issues.append(
            ConsistencyIssue(
                type="mismatched_payments",
                description="Invoices where payment count does not match ledger entry count",
                count=len(mismatched),
                details=_sample(mismatched),
            )
        )

    wrong_status = Invoice.objects.filter(paid_amount__gt=0).exclude(
        status__in=[Invoice.Status.PAID, Invoice.Status.PARTIAL, Invoice.Status.CANCELLED]
    )
    if wrong_status.exists():
        issues.append(
            ConsistencyIssue(
                type="incorrect_invoice_status",
                description="Invoices with payments but incorrect status",
                count=wrong_status.count(),
                details=_sample(list(wrong_status.values_list("invoice_number", flat=True))),
            )
        )

    cancelled_paid = Invoice.objects.filter(status=Invoice.Status.CANCELLED, paid_amount__gt=0)
    if cancelled_paid.exists():
        issues.append(
            ConsistencyIssue(
                type="cancelled_with_payments",
                description="Cancelled invoices that have payments",
                count=cancelled_paid.count(),
                severity=ERROR,
                details=_sample(list(cancelled_paid.values_list("invoice_number", flat=True))),
            )
        )

    return issues


def verify_ledger_consistency() -> list[ConsistencyIssue]:
    issues = []

    duplicates = check_duplicate_numbers()
    if duplicates:
        issues.append(duplicates)

    issues.extend(check_running_balances())
    issues.extend(check_invoices())
    return issues
