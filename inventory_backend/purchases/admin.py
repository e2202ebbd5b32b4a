# purchases/admin.py

from django.contrib import admin

from purchases.models import PurchaseLot


@admin.register(PurchaseLot)
class PurchaseLotAdmin(admin.ModelAdmin):
    """
    remaining_quantity is owned by the FIFO stock service; it is never edited by hand.
    """

    list_display = (
        "purchase_id",
        "variant",
        "supplier",
        "quantity",
        "remaining_quantity",
        "unit_cost",
        "purchase_date",
    )
    readonly_fields = ("purchase_id", "remaining_quantity", "total_cost", "created_at", "updated_at")
    search_fields = ("purchase_id", "supplier", "variant__sku", "product__name")
    list_filter = ("supplier", "location", "purchase_date")
