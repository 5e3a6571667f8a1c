"""Read-only admin for the audit log."""

from __future__ import annotations

from django.contrib import admin

from .models import AuditLogEntry


@admin.register(AuditLogEntry)
class AuditLogEntryAdmin(admin.ModelAdmin):
    list_display = ("timestamp", "action", "table_name", "record_id", "user_email")
    list_filter = ("action", "table_name")
    search_fields = ("record_id", "user_email")
    date_hierarchy = "timestamp"

    def get_readonly_fields(self, request, obj=None):  # type: ignore
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_change_permission(self, request, obj=None):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
