"""Reservation domain models."""

from __future__ import annotations

import secrets
from decimal import Decimal

from django.conf import settings  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import DateRange


class Reservation(models.Model):
    """A guest's reservation of a loft, with the price frozen at booking time."""

    class Status(models.TextChoices):
        PENDING = "pending", _("Pending payment")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    class PaymentStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        PAID = "paid", _("Paid")
        REFUNDED = "refunded", _("Refunded")
        FAILED = "failed", _("Failed")

    BLOCKING_STATUSES = (Status.PENDING, Status.CONFIRMED)

    loft = models.ForeignKey(
        "lofts.Loft",
        on_delete=models.PROTECT,
        related_name="reservations",
    )
    guest = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="reservations",
    )
    reservation_code = models.CharField(max_length=12, unique=True, editable=False)
    check_in = models.DateField()
    check_out = models.DateField()
    guests_count = models.PositiveSmallIntegerField(default=1)
    guest_name = models.CharField(max_length=255, blank=True)
    guest_email = models.EmailField(blank=True)
    guest_phone = models.CharField(max_length=20, blank=True)
    special_requests = models.TextField(blank=True)

    nightly_rate = models.DecimalField(max_digits=10, decimal_places=2)
    nights = models.PositiveSmallIntegerField()
    base_price = models.DecimalField(max_digits=12, decimal_places=2)
    cleaning_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    service_fee = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    taxes = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("0.00"))
    total_price = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3, default="EUR")

    status = models.CharField(max_length=20, choices=Status.choices, default=Status.PENDING)
    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.PENDING,
    )
    expires_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text=_("End of the payment hold; unpaid reservations are cancelled afterwards."),
    )
    confirmed_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)
    cancellation_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Reservation")
        verbose_name_plural = _("Reservations")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="reservation_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["loft", "check_in", "check_out"], name="reservation_range_idx"),
            models.Index(fields=["status"], name="reservation_status_idx"),
        ]

    def __str__(self) -> str:
        return f"Reservation #{self.reservation_code} for loft {self.loft_id}"

    def save(self, *args, **kwargs):  # type: ignore
        if self._state.adding and not self.reservation_code:
            self.reservation_code = self.generate_reservation_code()
        super().save(*args, **kwargs)

    @staticmethod
    def generate_reservation_code() -> str:
        return secrets.token_hex(4).upper()

    @property
    def dates(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    def is_hold_expired(self, now=None) -> bool:
        now = now or timezone.now()
        return bool(self.status == self.Status.PENDING and self.expires_at and now > self.expires_at)

    def confirm_payment(self) -> None:
        if self.status != self.Status.PENDING:
            raise ValueError(f"Cannot confirm payment of a {self.status} reservation.")
        self.status = self.Status.CONFIRMED
        self.payment_status = self.PaymentStatus.PAID
        self.confirmed_at = timezone.now()
        self.save(update_fields=["status", "payment_status", "confirmed_at", "updated_at"])

    def cancel(self, reason: str = "") -> None:
        if self.status not in self.BLOCKING_STATUSES:
            raise ValueError(f"Cannot cancel a {self.status} reservation.")
        if self.payment_status == self.PaymentStatus.PAID:
            self.payment_status = self.PaymentStatus.REFUNDED
        self.status = self.Status.CANCELLED
        self.cancellation_reason = reason
        self.cancelled_at = timezone.now()
        self.save(
            update_fields=["status", "payment_status", "cancellation_reason", "cancelled_at", "updated_at"]
        )

    def complete(self) -> None:
        if self.status != self.Status.CONFIRMED:
            raise ValueError(f"Cannot complete a {self.status} reservation.")
        self.status = self.Status.COMPLETED
        self.completed_at = timezone.now()
        self.save(update_fields=["status", "completed_at", "updated_at"])

    def expire(self) -> None:
        if self.status != self.Status.PENDING:
            raise ValueError(f"Cannot expire a {self.status} reservation.")
        self.status = self.Status.CANCELLED
        self.payment_status = self.PaymentStatus.FAILED
        self.cancellation_reason = "Payment hold expired"
        self.cancelled_at = timezone.now()
        self.save(
            update_fields=["status", "payment_status", "cancellation_reason", "cancelled_at", "updated_at"]
        )


class ReservationLock(models.Model):
    """Short hold on a date range while a guest completes checkout."""

    loft = models.ForeignKey(
        "lofts.Loft",
        on_delete=models.CASCADE,
        related_name="reservation_locks",
    )
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="reservation_locks",
    )
    check_in = models.DateField()
    check_out = models.DateField()
    expires_at = models.DateTimeField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = _("Reservation lock")
        verbose_name_plural = _("Reservation locks")
        ordering = ["expires_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(check_out__gt=models.F("check_in")),
                name="reservation_lock_valid_dates",
            ),
        ]
        indexes = [
            models.Index(fields=["loft", "expires_at"], name="reservation_lock_active_idx"),
        ]

    def __str__(self) -> str:
        return f"Lock on loft {self.loft_id}: {self.check_in} - {self.check_out}"

    @property
    def dates(self) -> DateRange:
        return DateRange(self.check_in, self.check_out)

    def is_expired(self, now=None) -> bool:
        return (now or timezone.now()) >= self.expires_at
