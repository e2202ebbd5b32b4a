# core/admin.py

from django.contrib import admin

from core.models import SequenceCounter


@admin.register(SequenceCounter)
class SequenceCounterAdmin(admin.ModelAdmin):
    list_display = ("key", "sequence", "updated_at")
    search_fields = ("key",)
    readonly_fields = ("key", "sequence", "updated_at")
