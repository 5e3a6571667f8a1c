"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Reservation, ReservationLock


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = (
        "reservation_code",
        "loft",
        "guest",
        "status",
        "payment_status",
        "check_in",
        "check_out",
        "total_price",
        "created_at",
    )
    list_filter = ("status", "payment_status", "check_in", "check_out")
    search_fields = ("reservation_code", "loft__name", "guest__email", "guest_email")
    readonly_fields = (
        "reservation_code",
        "created_at",
        "updated_at",
        "nightly_rate",
        "nights",
        "base_price",
        "cleaning_fee",
        "service_fee",
        "taxes",
        "total_price",
    )

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False


@admin.register(ReservationLock)
class ReservationLockAdmin(admin.ModelAdmin):
    list_display = ("loft", "user", "check_in", "check_out", "expires_at")
    list_filter = ("expires_at",)
    search_fields = ("loft__name", "user__email")
