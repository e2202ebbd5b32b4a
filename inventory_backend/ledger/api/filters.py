# ledger/api/filters.py

import django_filters

from ledger.models import LedgerEntry


class LedgerEntryFilter(django_filters.FilterSet):
    date_from = django_filters.IsoDateTimeFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.IsoDateTimeFilter(field_name="date", lookup_expr="lte")

    class Meta:
        model = LedgerEntry
        fields = ["customer", "transaction_type", "transaction_id", "payment_method"]
