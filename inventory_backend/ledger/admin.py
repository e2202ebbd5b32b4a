# ledger/admin.py

from django.contrib import admin

from ledger.models import Customer, LedgerEntry


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = (
        "customer_code",
        "name",
        "company",
        "total_invoiced",
        "total_paid",
        "outstanding_balance",
        "is_active",
    )
    readonly_fields = (
        "customer_code",
        "total_invoiced",
        "total_paid",
        "outstanding_balance",
        "last_invoice_date",
        "last_payment_date",
        "created_at",
        "updated_at",
    )
    search_fields = ("customer_code", "name", "company", "email", "phone")
    list_filter = ("is_active",)


@admin.register(LedgerEntry)
class LedgerEntryAdmin(admin.ModelAdmin):
    """
    Ledger entries are append-only: no add, change or delete from admin.
    """

    list_display = (
        "transaction_number",
        "customer",
        "transaction_type",
        "date",
        "debit",
        "credit",
        "balance",
    )
    search_fields = ("transaction_number", "transaction_id", "customer__name", "reference")
    list_filter = ("transaction_type", "payment_method", "date")
    ordering = ("customer", "date", "created_at", "id")

    def get_readonly_fields(self, request, obj=None):
        return [f.name for f in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
