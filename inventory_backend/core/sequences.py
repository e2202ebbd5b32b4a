# core/sequences.py

"""
DOCUMENT NUMBERING

Human-readable identifiers of the form PREFIX-YY-NNN:
- PR-25-001   purchase lots
- CU-25-014   customers
- INV-25-120  invoices
- ADJ/CN/DN   ledger adjustments and notes
- QT-25-004   quotations
- PRJ-25-002  projects
- EXP-25-031  expenses

Counters are keyed per prefix and year, so numbering restarts every year.
Incrementing happens under a row lock; two concurrent callers can never
receive the same number.
"""

from __future__ import annotations

from django.db import transaction
from django.db.models import F
from django.utils import timezone

from core.models import SequenceCounter


@transaction.atomic
def next_sequence(key: str) -> int:
    key = (key or "").strip()
    if not key:
        raise ValueError("sequence key is required")

    counter, _ = SequenceCounter.objects.select_for_update().get_or_create(key=key)
    SequenceCounter.objects.filter(pk=counter.pk).update(sequence=F("sequence") + 1)
    counter.refresh_from_db(fields=["sequence"])
    return counter.sequence


def generate_id(prefix: str, year: int | None = None) -> str:
    prefix = (prefix or "").strip().upper()
    if not prefix:
        raise ValueError("prefix is required")

    current_year = year or timezone.now().year
    sequence = next_sequence(f"{prefix.lower()}-{current_year}")

    return f"{prefix}-{str(current_year)[-2:]}-{sequence:03d}"
