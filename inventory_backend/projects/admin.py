# projects/admin.py

from django.contrib import admin

from projects.models import Expense, Project, ProjectAuditLog


class ExpenseInline(admin.TabularInline):
    model = Expense
    extra = 0
    fields = ("expense_number", "date", "category", "description", "amount", "invoice")
    readonly_fields = ("expense_number", "invoice")


@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    list_display = ("project_number", "title", "customer", "status", "budget", "start_date", "end_date")
    readonly_fields = ("project_number", "created_by", "created_at", "updated_at")
    search_fields = ("project_number", "title", "customer__name")
    list_filter = ("status",)
    inlines = [ExpenseInline]


@admin.register(Expense)
class ExpenseAdmin(admin.ModelAdmin):
    list_display = ("expense_number", "date", "category", "description", "amount", "project", "invoice")
    readonly_fields = ("expense_number", "invoice", "added_by", "created_at", "updated_at")
    search_fields = ("expense_number", "description", "vendor", "project__title")
    list_filter = ("category", "date")


@admin.register(ProjectAuditLog)
class ProjectAuditLogAdmin(admin.ModelAdmin):
    list_display = ("project", "action", "actor", "description", "created_at")
    readonly_fields = ("project", "action", "actor", "description", "metadata", "created_at")
    list_filter = ("action",)

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
