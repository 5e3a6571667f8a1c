"""Admin registrations for the lofts domain."""

from __future__ import annotations

from django.contrib import admin

from .models import BlockedPeriod, Loft, PricingRule


class PricingRuleInline(admin.TabularInline):
    model = PricingRule
    extra = 0
    fields = ("rule_name", "rule_type", "adjustment_type", "adjustment_value", "priority", "is_active")


class BlockedPeriodInline(admin.TabularInline):
    model = BlockedPeriod
    extra = 0
    fields = ("start_date", "end_date", "status", "reason", "source")


@admin.register(Loft)
class LoftAdmin(admin.ModelAdmin):
    list_display = (
        "name",
        "address",
        "status",
        "price_per_night",
        "max_guests",
        "minimum_nights",
        "owner",
    )
    list_filter = ("status", "currency")
    search_fields = ("name", "address", "owner__business_name")
    inlines = (PricingRuleInline, BlockedPeriodInline)
    readonly_fields = ("created_at", "updated_at")

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(PricingRule)
class PricingRuleAdmin(admin.ModelAdmin):
    list_display = ("rule_name", "loft", "rule_type", "adjustment_type", "adjustment_value", "priority", "is_active")
    list_filter = ("rule_type", "adjustment_type", "is_active")
    search_fields = ("rule_name", "loft__name")


@admin.register(BlockedPeriod)
class BlockedPeriodAdmin(admin.ModelAdmin):
    list_display = ("loft", "start_date", "end_date", "status", "source")
    list_filter = ("status", "source")
    search_fields = ("loft__name", "reason")
    date_hierarchy = "start_date"
