"""Loft domain models.

A loft is priced from its nightly rate and its pricing rules, and is
unavailable on the nights covered by its blocked periods. Lofts are never
deleted; their status changes instead.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from django.core.exceptions import ValidationError  # type: ignore
from django.core.validators import MaxValueValidator, MinValueValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from shared.domain.value_objects import DateRange
from apps.bookings.domain.availability import BlockedRange, StayLimits
from apps.lofts.domain.pricing_rules import (
    AdjustmentType,
    PricingRule as PricingRuleStrategy,
    RuleType,
    build_rule,
)


def default_currency() -> str:
    return settings.LOFTS_DEFAULT_CURRENCY


def default_tax_rate() -> Decimal:
    return Decimal(str(settings.LOFTS_DEFAULT_TAX_RATE))


def normalize_amenities(values) -> list[str]:
    """De-duplicated, sorted amenity names."""
    return sorted({str(value).strip() for value in values or [] if str(value).strip()})


class Loft(models.Model):
    """Short-term rental loft."""

    class Status(models.TextChoices):
        AVAILABLE = "available", _("Available")
        OCCUPIED = "occupied", _("Occupied")
        MAINTENANCE = "maintenance", _("Maintenance")

    owner = models.ForeignKey(
        "users.PartnerProfile",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="lofts",
    )
    name = models.CharField(max_length=255)
    address = models.CharField(max_length=255)
    description = models.TextField(blank=True)
    price_per_night = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
    )
    cleaning_fee = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
    )
    tax_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=default_tax_rate,
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("1"))],
        help_text=_("Fraction of the taxable amount, e.g. 0.19."),
    )
    currency = models.CharField(max_length=3, default=default_currency)
    max_guests = models.PositiveSmallIntegerField(default=2, validators=[MinValueValidator(1)])
    bedrooms = models.PositiveSmallIntegerField(default=1)
    bathrooms = models.PositiveSmallIntegerField(default=1)
    amenities = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=20, choices=Status.choices, default=Status.AVAILABLE)
    minimum_nights = models.PositiveSmallIntegerField(default=1, validators=[MinValueValidator(1)])
    maximum_nights = models.PositiveSmallIntegerField(
        null=True,
        blank=True,
        validators=[MinValueValidator(1)],
    )
    company_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("50.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    owner_percentage = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal("50.00"),
        validators=[MinValueValidator(Decimal("0")), MaxValueValidator(Decimal("100"))],
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Loft")
        verbose_name_plural = _("Lofts")
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(
                    company_percentage=Decimal("100") - models.F("owner_percentage")
                ),
                name="loft_revenue_split_is_100",
            ),
            models.CheckConstraint(
                condition=(
                    models.Q(maximum_nights__isnull=True)
                    | models.Q(maximum_nights__gte=models.F("minimum_nights"))
                ),
                name="loft_stay_limits_valid",
            ),
        ]
        indexes = [
            models.Index(fields=["status"], name="loft_status_idx"),
            models.Index(fields=["owner", "status"], name="loft_owner_status_idx"),
        ]

    def __str__(self) -> str:
        return self.name

    def clean(self) -> None:
        super().clean()
        if (self.company_percentage or 0) + (self.owner_percentage or 0) != 100:
            raise ValidationError(
                {"owner_percentage": _("Company and owner percentages must add up to 100.")}
            )
        if self.maximum_nights is not None and self.maximum_nights < self.minimum_nights:
            raise ValidationError(
                {"maximum_nights": _("Maximum nights cannot be lower than minimum nights.")}
            )

    def save(self, *args, **kwargs):  # type: ignore
        self.amenities = normalize_amenities(self.amenities)
        super().save(*args, **kwargs)

    @property
    def is_open(self) -> bool:
        return self.status == self.Status.AVAILABLE

    def stay_limits(self) -> StayLimits:
        return StayLimits(
            minimum_nights=self.minimum_nights,
            maximum_nights=self.maximum_nights,
            is_open=self.is_open,
        )

    def set_status(self, status: str) -> None:
        if status not in self.Status.values:
            raise ValueError(f"Unknown loft status: {status}")
        self.status = status
        self.save(update_fields=["status", "updated_at"])


class PricingRule(models.Model):
    """Stored pricing rule; see apps.lofts.domain.pricing_rules for semantics."""

    class RuleTypeChoices(models.TextChoices):
        SEASONAL = RuleType.SEASONAL.value, _("Seasonal")
        WEEKEND = RuleType.WEEKEND.value, _("Weekend")
        HOLIDAY = RuleType.HOLIDAY.value, _("Holiday")
        EVENT = RuleType.EVENT.value, _("Event")
        LENGTH_OF_STAY = RuleType.LENGTH_OF_STAY.value, _("Length of stay")
        ADVANCE_BOOKING = RuleType.ADVANCE_BOOKING.value, _("Advance booking")

    class AdjustmentTypeChoices(models.TextChoices):
        PERCENTAGE = AdjustmentType.PERCENTAGE.value, _("Percentage")
        FIXED = AdjustmentType.FIXED.value, _("Fixed amount per night")
        OVERRIDE = AdjustmentType.OVERRIDE.value, _("Override price per night")

    loft = models.ForeignKey(Loft, on_delete=models.CASCADE, related_name="pricing_rules")
    rule_name = models.CharField(max_length=255)
    rule_type = models.CharField(max_length=20, choices=RuleTypeChoices.choices)
    adjustment_type = models.CharField(max_length=20, choices=AdjustmentTypeChoices.choices)
    adjustment_value = models.DecimalField(max_digits=10, decimal_places=2)
    priority = models.IntegerField(
        default=0,
        help_text=_("Rules are applied in ascending priority; the last one applied wins."),
    )
    is_active = models.BooleanField(default=True)
    start_date = models.DateField(null=True, blank=True)
    end_date = models.DateField(null=True, blank=True)
    days_of_week = models.JSONField(
        default=list,
        blank=True,
        help_text=_("Weekday numbers, Monday = 0 ... Sunday = 6."),
    )
    minimum_nights = models.PositiveSmallIntegerField(null=True, blank=True)
    maximum_nights = models.PositiveSmallIntegerField(null=True, blank=True)
    advance_booking_days = models.PositiveSmallIntegerField(null=True, blank=True)
    description = models.TextField(blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Pricing rule")
        verbose_name_plural = _("Pricing rules")
        ordering = ["priority", "id"]
        constraints = [
            models.CheckConstraint(
                condition=(
                    models.Q(start_date__isnull=True)
                    | models.Q(end_date__isnull=True)
                    | models.Q(end_date__gte=models.F("start_date"))
                ),
                name="pricing_rule_valid_date_range",
            ),
        ]
        indexes = [
            models.Index(fields=["loft", "is_active", "priority"], name="pricing_rule_lookup_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.loft}: {self.rule_name} ({self.rule_type})"

    def clean(self) -> None:
        super().clean()
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValidationError({"end_date": _("End date cannot be before start date.")})
        invalid_days = [day for day in self.days_of_week or [] if day not in range(7)]
        if invalid_days:
            raise ValidationError({"days_of_week": _("Weekdays must be between 0 and 6.")})
        if self.rule_type == self.RuleTypeChoices.ADVANCE_BOOKING and self.advance_booking_days is None:
            raise ValidationError(
                {"advance_booking_days": _("Advance booking rules need advance_booking_days.")}
            )

    def to_domain(self) -> PricingRuleStrategy:
        return build_rule(
            {
                "rule_name": self.rule_name,
                "rule_type": self.rule_type,
                "adjustment_type": self.adjustment_type,
                "adjustment_value": self.adjustment_value,
                "priority": self.priority,
                "is_active": self.is_active,
                "start_date": self.start_date,
                "end_date": self.end_date,
                "days_of_week": self.days_of_week,
                "minimum_nights": self.minimum_nights,
                "maximum_nights": self.maximum_nights,
                "advance_booking_days": self.advance_booking_days,
            }
        )


class BlockedPeriod(models.Model):
    """Nights [start_date, end_date) on which a loft cannot be booked."""

    class BlockStatus(models.TextChoices):
        BLOCKED = "blocked", _("Blocked by owner")
        MAINTENANCE = "maintenance", _("Maintenance")
        BOOKED = "booked", _("Booked elsewhere")

    class Source(models.TextChoices):
        MANUAL = "manual", _("Manual")
        BOOKING = "booking", _("Booking")
        SYNC = "sync", _("Calendar sync")

    loft = models.ForeignKey(Loft, on_delete=models.CASCADE, related_name="blocked_periods")
    start_date = models.DateField()
    end_date = models.DateField(help_text=_("First night that is free again."))
    status = models.CharField(max_length=20, choices=BlockStatus.choices, default=BlockStatus.BLOCKED)
    reason = models.CharField(max_length=255, blank=True)
    source = models.CharField(max_length=20, choices=Source.choices, default=Source.MANUAL)
    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="created_blocked_periods",
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Blocked period")
        verbose_name_plural = _("Blocked periods")
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(end_date__gt=models.F("start_date")),
                name="blocked_period_valid_date_range",
            ),
        ]
        indexes = [
            models.Index(fields=["loft", "start_date", "end_date"], name="blocked_period_range_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.loft}: {self.start_date} - {self.end_date} ({self.status})"

    def clean(self) -> None:
        super().clean()
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({"end_date": _("End date must be after start date.")})

    @property
    def dates(self) -> DateRange:
        return DateRange(self.start_date, self.end_date)

    def to_blocked_range(self) -> BlockedRange:
        return BlockedRange(dates=self.dates, source=self.status, reason=self.reason)
