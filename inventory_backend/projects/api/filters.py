# projects/api/filters.py

import django_filters

from projects.models import Expense


class ExpenseFilter(django_filters.FilterSet):
    date_from = django_filters.DateFilter(field_name="date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="date", lookup_expr="lte")
    month = django_filters.CharFilter(method="filter_month")
    billed = django_filters.BooleanFilter(method="filter_billed")
    unassigned = django_filters.BooleanFilter(field_name="project", lookup_expr="isnull")

    class Meta:
        model = Expense
        fields = ["project", "category"]

    def filter_month(self, queryset, name, value):
        """YYYY-MM"""
        try:
            year, month = (int(part) for part in value.split("-", 1))
        except ValueError:
            return queryset.none()
        return queryset.filter(date__year=year, date__month=month)

    def filter_billed(self, queryset, name, value):
        if value:
            return queryset.filter(Expense.BILLED)
        return queryset.exclude(Expense.BILLED)
