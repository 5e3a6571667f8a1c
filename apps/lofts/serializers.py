"""Serializers for the lofts domain."""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings  # type: ignore
from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import DateRange
from apps.lofts.domain.pricing_rules import AdjustmentType, RuleType

from .models import BlockedPeriod, Loft, PricingRule, normalize_amenities


def money_field(**kwargs) -> serializers.DecimalField:
    return serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, **kwargs)


class LoftSerializer(serializers.ModelSerializer):
    amenities = serializers.ListField(child=serializers.CharField(max_length=100), required=False)
    price_per_night = money_field(min_value=Decimal("0.01"))
    cleaning_fee = money_field(min_value=Decimal("0"), required=False)
    tax_rate = serializers.DecimalField(
        max_digits=5,
        decimal_places=4,
        min_value=Decimal("0"),
        max_value=Decimal("1"),
        coerce_to_string=False,
        required=False,
    )
    status_display = serializers.ReadOnlyField(source="get_status_display")

    class Meta:
        model = Loft
        fields = [
            "id",
            "owner",
            "name",
            "address",
            "description",
            "price_per_night",
            "cleaning_fee",
            "tax_rate",
            "currency",
            "max_guests",
            "bedrooms",
            "bathrooms",
            "amenities",
            "status",
            "status_display",
            "minimum_nights",
            "maximum_nights",
            "company_percentage",
            "owner_percentage",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["status", "created_at", "updated_at"]

    def validate_amenities(self, value):  # type: ignore
        return normalize_amenities(value)

    def validate(self, attrs):  # type: ignore
        instance = self.instance
        company = attrs.get("company_percentage", getattr(instance, "company_percentage", Decimal("50")))
        owner = attrs.get("owner_percentage", getattr(instance, "owner_percentage", Decimal("50")))
        if company + owner != 100:
            raise serializers.ValidationError(
                {"owner_percentage": "Company and owner percentages must add up to 100."}
            )
        minimum = attrs.get("minimum_nights", getattr(instance, "minimum_nights", 1))
        maximum = attrs.get("maximum_nights", getattr(instance, "maximum_nights", None))
        if maximum is not None and maximum < minimum:
            raise serializers.ValidationError(
                {"maximum_nights": "Maximum nights cannot be lower than minimum nights."}
            )
        return attrs


class LoftStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Loft.Status.choices)


class PricingRuleSerializer(serializers.ModelSerializer):
    adjustment_value = money_field()
    days_of_week = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False,
    )

    class Meta:
        model = PricingRule
        fields = [
            "id",
            "loft",
            "rule_name",
            "rule_type",
            "adjustment_type",
            "adjustment_value",
            "priority",
            "is_active",
            "start_date",
            "end_date",
            "days_of_week",
            "minimum_nights",
            "maximum_nights",
            "advance_booking_days",
            "description",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["loft", "created_at", "updated_at"]

    def validate_days_of_week(self, value):  # type: ignore
        return sorted(set(value))

    def validate(self, attrs):  # type: ignore
        def current(name):
            return attrs.get(name, getattr(self.instance, name, None))

        start_date, end_date = current("start_date"), current("end_date")
        if start_date and end_date and end_date < start_date:
            raise serializers.ValidationError({"end_date": "End date cannot be before start date."})
        minimum, maximum = current("minimum_nights"), current("maximum_nights")
        if minimum is not None and maximum is not None and maximum < minimum:
            raise serializers.ValidationError(
                {"maximum_nights": "Maximum nights cannot be lower than minimum nights."}
            )
        if current("rule_type") == RuleType.ADVANCE_BOOKING.value and current("advance_booking_days") is None:
            raise serializers.ValidationError(
                {"advance_booking_days": "Advance booking rules need advance_booking_days."}
            )
        return attrs


class BlockedPeriodSerializer(serializers.ModelSerializer):
    created_by = serializers.ReadOnlyField(source="created_by_id")

    class Meta:
        model = BlockedPeriod
        fields = [
            "id",
            "loft",
            "start_date",
            "end_date",
            "status",
            "reason",
            "source",
            "created_by",
            "created_at",
            "updated_at",
        ]
        read_only_fields = ["loft", "created_by", "created_at", "updated_at"]

    def validate(self, attrs):  # type: ignore
        start_date = attrs.get("start_date", getattr(self.instance, "start_date", None))
        end_date = attrs.get("end_date", getattr(self.instance, "end_date", None))
        if start_date and end_date and end_date <= start_date:
            raise serializers.ValidationError({"end_date": "End date must be after start date."})
        return attrs


class StayQuerySerializer(serializers.Serializer):
    """check_in/check_out as ISO dates or date-times; yields a DateRange."""

    check_in = serializers.CharField()
    check_out = serializers.CharField()

    def validate(self, attrs):  # type: ignore
        try:
            attrs["dates"] = DateRange.from_values(attrs["check_in"], attrs["check_out"])
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc
        max_nights = settings.LOFTS_MAX_STAY_NIGHTS
        if len(attrs["dates"]) > max_nights:
            raise serializers.ValidationError(f"Stay cannot exceed {max_nights} nights.")
        return attrs


class CalendarQuerySerializer(serializers.Serializer):
    start = serializers.DateField()
    end = serializers.DateField()

    def validate(self, attrs):  # type: ignore
        if attrs["end"] < attrs["start"]:
            raise serializers.ValidationError("Calendar end date cannot be before its start date.")
        return attrs


class PricingRuleInputSerializer(serializers.Serializer):
    """A pricing rule passed inline to the stateless calculator."""

    rule_name = serializers.CharField(required=False, allow_blank=True, max_length=255)
    rule_type = serializers.ChoiceField(choices=[rule.value for rule in RuleType])
    adjustment_type = serializers.ChoiceField(choices=[adjustment.value for adjustment in AdjustmentType])
    adjustment_value = serializers.DecimalField(max_digits=12, decimal_places=2)
    priority = serializers.IntegerField(required=False, default=0)
    is_active = serializers.BooleanField(required=False, default=True)
    start_date = serializers.DateField(required=False, allow_null=True)
    end_date = serializers.DateField(required=False, allow_null=True)
    days_of_week = serializers.ListField(
        child=serializers.IntegerField(min_value=0, max_value=6),
        required=False,
    )
    minimum_nights = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    maximum_nights = serializers.IntegerField(required=False, allow_null=True, min_value=1)
    advance_booking_days = serializers.IntegerField(required=False, allow_null=True, min_value=0)


class PricingRequestSerializer(serializers.Serializer):
    nightly_rate = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, allow_null=True)
    check_in = serializers.CharField()
    check_out = serializers.CharField()
    cleaning_fee = serializers.DecimalField(max_digits=12, decimal_places=2, required=False, default=Decimal("0"))
    tax_rate = serializers.DecimalField(max_digits=5, decimal_places=4, required=False, allow_null=True)
    pricing_rules = PricingRuleInputSerializer(many=True, required=False)
    booked_on = serializers.DateField(required=False, allow_null=True)
    currency = serializers.CharField(required=False, max_length=3)

    def validate_tax_rate(self, value):  # type: ignore
        if value is None:
            return Decimal(str(settings.LOFTS_DEFAULT_TAX_RATE))
        return value

    def validate_pricing_rules(self, value):  # type: ignore
        limit = settings.LOFTS_MAX_INLINE_PRICING_RULES
        if len(value) > limit:
            raise serializers.ValidationError(f"At most {limit} pricing rules can be passed.")
        return value


class AppliedRuleSerializer(serializers.Serializer):
    rule_name = serializers.CharField()
    rule_type = serializers.CharField()
    nights = serializers.IntegerField()
    amount = money_field()


class PricingBreakdownSerializer(serializers.Serializer):
    nightly_rate = money_field()
    nights = serializers.IntegerField()
    subtotal = money_field()
    base_price = money_field()
    cleaning_fee = money_field()
    service_fee = money_field()
    taxes = money_field()
    total = money_field()
    currency = serializers.CharField()
    applied_rules = AppliedRuleSerializer(many=True)


class AvailabilityResultSerializer(serializers.Serializer):
    available = serializers.BooleanField()
    bookable = serializers.BooleanField()
    known = serializers.BooleanField()
    restrictions = serializers.ListField(child=serializers.CharField())
    unavailable_dates = serializers.ListField(child=serializers.DateField())
    minimum_stay = serializers.IntegerField()
    maximum_stay = serializers.IntegerField(allow_null=True)


class CalendarDaySerializer(serializers.Serializer):
    date = serializers.DateField()
    available = serializers.BooleanField()
    nightly_rate = money_field()
