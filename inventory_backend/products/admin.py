# products/admin.py

from django.contrib import admin

from products.models import Bundle, BundleComponent, BundleExpense, Product, ProductVariant


class ProductVariantInline(admin.TabularInline):
    model = ProductVariant
    extra = 0
    fields = ("sku", "name", "retail_price", "wholesale_price", "is_active")


@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "is_active", "updated_at")
    search_fields = ("name", "sku", "variants__sku")
    list_filter = ("is_active",)
    inlines = [ProductVariantInline]


@admin.register(ProductVariant)
class ProductVariantAdmin(admin.ModelAdmin):
    list_display = ("sku", "product", "name", "retail_price", "wholesale_price", "is_active")
    search_fields = ("sku", "name", "product__name")
    list_filter = ("is_active",)


class BundleComponentInline(admin.TabularInline):
    model = BundleComponent
    extra = 0


class BundleExpenseInline(admin.TabularInline):
    model = BundleExpense
    extra = 0


@admin.register(Bundle)
class BundleAdmin(admin.ModelAdmin):
    list_display = ("name", "sku", "base_price", "is_active")
    search_fields = ("name", "sku")
    list_filter = ("is_active",)
    inlines = [BundleComponentInline, BundleExpenseInline]
