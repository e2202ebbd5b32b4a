# sales/admin.py

from django.contrib import admin

from sales.models import Invoice, InvoiceItem, InvoiceItemAllocation, Payment, Quotation, QuotationItem


# ======================================================
# INVOICE ADMIN
# ======================================================


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    can_delete = False
    readonly_fields = (
        "variant",
        "bundle",
        "purchase_lot",
        "description",
        "quantity",
        "rate",
        "original_rate",
        "line_total",
    )

    def has_add_permission(self, request, obj=None):
        return False


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    can_delete = False
    readonly_fields = ("transaction_number", "amount", "method", "date", "reference", "ledger_entry")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    """
    Read-mostly: invoices change through sales.services.invoice_service so
    stock and ledger stay in step.
    """

    list_display = (
        "invoice_number",
        "customer",
        "status",
        "total_amount",
        "paid_amount",
        "profit",
        "custom",
        "date",
    )
    readonly_fields = (
        "invoice_number",
        "customer",
        "status",
        "subtotal",
        "discount_amount",
        "tax_amount",
        "total_amount",
        "paid_amount",
        "profit",
        "custom",
        "stock_deducted",
        "cancelled_at",
        "cancel_reason",
        "created_at",
        "updated_at",
    )
    search_fields = ("invoice_number", "customer__name", "customer__customer_code")
    list_filter = ("status", "billing_type", "custom", "project", "date")
    inlines = [InvoiceItemInline, PaymentInline]


# ======================================================
# FIFO AUDIT ADMIN
# ======================================================


@admin.register(InvoiceItemAllocation)
class InvoiceItemAllocationAdmin(admin.ModelAdmin):
    list_display = ("invoice_item", "lot", "variant", "quantity", "unit_cost", "restored_at")
    readonly_fields = ("invoice_item", "lot", "variant", "quantity", "unit_cost", "restored_at", "created_at")
    search_fields = ("invoice_item__invoice__invoice_number", "lot__purchase_id")

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ======================================================
# QUOTATION ADMIN
# ======================================================


class QuotationItemInline(admin.TabularInline):
    model = QuotationItem
    extra = 0
    can_delete = False
    readonly_fields = ("variant", "bundle", "description", "quantity", "rate", "line_total")

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Quotation)
class QuotationAdmin(admin.ModelAdmin):
    list_display = (
        "quotation_number",
        "customer",
        "project",
        "status",
        "total_amount",
        "valid_until",
        "converted_invoice",
        "date",
    )
    readonly_fields = (
        "quotation_number",
        "customer",
        "status",
        "subtotal",
        "discount_amount",
        "tax_amount",
        "total_amount",
        "converted_invoice",
        "converted_at",
        "created_at",
        "updated_at",
    )
    search_fields = ("quotation_number", "customer__name", "customer__customer_code")
    list_filter = ("status", "billing_type", "date")
    inlines = [QuotationItemInline]
