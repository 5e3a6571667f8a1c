from datetime import date
from decimal import Decimal

import pytest
from django.test import SimpleTestCase

from apps.lofts.domain.pricing import PricingCalculator, calculate_pricing
from apps.lofts.domain.pricing_rules import (
    AdjustmentType,
    AdvanceBookingRule,
    LengthOfStayRule,
    RuleType,
    SeasonalRule,
    StayContext,
    WeekendRule,
    build_rule,
)
from shared.domain.value_objects import DateRange


def _price(rules, nightly_rate=100, check_in="2024-12-15", check_out="2024-12-18", booked_on=None):
    return calculate_pricing(
        nightly_rate=nightly_rate,
        check_in=check_in,
        check_out=check_out,
        pricing_rules=rules,
        booked_on=booked_on or date(2024, 1, 1),
    )


def test_weekend_rule_only_touches_friday_and_saturday_nights():
    # Thursday 12 Dec to Monday 16 Dec: Thu, Fri, Sat, Sun nights
    rule = WeekendRule(
        rule_name="Weekend",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("20"),
    )
    breakdown = _price([rule], check_in="2024-12-12", check_out="2024-12-16")

    assert breakdown.subtotal == Decimal("400.00")
    assert breakdown.base_price == Decimal("440.00")
    applied = breakdown.applied_rules[0]
    assert applied.rule_type == "weekend"
    assert applied.nights == 2
    assert applied.amount == Decimal("40.00")


def test_weekend_rule_ignores_weekday_only_stay():
    rule = WeekendRule(
        rule_name="Weekend",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("20"),
    )
    # Monday 16 Dec to Thursday 19 Dec
    breakdown = _price([rule], check_in="2024-12-16", check_out="2024-12-19")

    assert breakdown.base_price == Decimal("300.00")
    assert breakdown.applied_rules == ()


def test_seasonal_fixed_rule_adds_per_covered_night():
    rule = SeasonalRule(
        rule_name="Market day",
        adjustment_type=AdjustmentType.FIXED,
        adjustment_value=Decimal("10"),
        start_date=date(2024, 12, 16),
        end_date=date(2024, 12, 16),
    )
    breakdown = _price([rule], nightly_rate=150)

    assert breakdown.base_price == Decimal("460.00")


def test_override_replaces_covered_share_only():
    rule = SeasonalRule(
        rule_name="Flat rate",
        adjustment_type=AdjustmentType.OVERRIDE,
        adjustment_value=Decimal("50"),
        start_date=date(2024, 12, 17),
        end_date=date(2024, 12, 31),
    )
    breakdown = _price([rule])

    assert breakdown.base_price == Decimal("250.00")
    assert breakdown.applied_rules[0].amount == Decimal("-50.00")


def test_length_of_stay_discount_requires_minimum_nights():
    rule = LengthOfStayRule(
        rule_name="Weekly",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("-10"),
        minimum_nights=7,
    )

    assert _price([rule], check_in="2025-01-01", check_out="2025-01-08").base_price == Decimal("630.00")
    assert _price([rule], check_in="2025-01-01", check_out="2025-01-07").base_price == Decimal("600.00")


def test_advance_booking_discount_depends_on_lead_time():
    rule = AdvanceBookingRule(
        rule_name="Early bird",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("-15"),
        advance_booking_days=30,
    )

    early = _price([rule], nightly_rate=150, booked_on=date(2024, 11, 1))
    late = _price([rule], nightly_rate=150, booked_on=date(2024, 12, 1))

    assert early.base_price == Decimal("382.50")
    assert late.base_price == Decimal("450.00")


def test_rule_minimum_nights_disqualifies_short_stay():
    rule = SeasonalRule(
        rule_name="Peak",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("50"),
        minimum_nights=5,
    )
    breakdown = _price([rule], nightly_rate=150)

    assert breakdown.base_price == Decimal("450.00")
    assert breakdown.applied_rules == ()


def test_rules_apply_in_ascending_priority():
    percentage = SeasonalRule(
        rule_name="Plus ten percent",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("10"),
        priority=5,
    )
    fixed = SeasonalRule(
        rule_name="Plus ten",
        adjustment_type=AdjustmentType.FIXED,
        adjustment_value=Decimal("10"),
        priority=0,
    )

    # fixed first: (300 + 30) * 1.1
    breakdown = _price([percentage, fixed])

    assert breakdown.base_price == Decimal("363.00")
    assert [rule.rule_name for rule in breakdown.applied_rules] == ["Plus ten", "Plus ten percent"]


def test_equal_priorities_keep_input_order():
    percentage = SeasonalRule(
        rule_name="Plus ten percent",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("10"),
    )
    fixed = SeasonalRule(
        rule_name="Plus ten",
        adjustment_type=AdjustmentType.FIXED,
        adjustment_value=Decimal("10"),
    )

    assert _price([percentage, fixed]).base_price == Decimal("360.00")
    assert _price([fixed, percentage]).base_price == Decimal("363.00")


def test_price_never_goes_negative():
    rule = SeasonalRule(
        rule_name="Giveaway",
        adjustment_type=AdjustmentType.FIXED,
        adjustment_value=Decimal("-200"),
    )
    breakdown = _price([rule])

    assert breakdown.base_price == Decimal("0.00")
    assert breakdown.total == Decimal("0.00")


def _weekend_override():
    return WeekendRule(
        rule_name="Weekend flat",
        adjustment_type=AdjustmentType.OVERRIDE,
        adjustment_value=Decimal("200"),
        priority=1,
    )


def test_rules_on_disjoint_nights_keep_each_other_intact():
    # Thursday 2 Jan to Sunday 5 Jan 2025: Thu, Fri, Sat nights
    thursday = SeasonalRule(
        rule_name="Thursday flat",
        adjustment_type=AdjustmentType.OVERRIDE,
        adjustment_value=Decimal("50"),
        start_date=date(2025, 1, 2),
        end_date=date(2025, 1, 2),
        priority=2,
    )
    breakdown = _price([_weekend_override(), thursday], check_in="2025-01-02", check_out="2025-01-05")

    assert breakdown.base_price == Decimal("450.00")
    assert [rule.amount for rule in breakdown.applied_rules] == [Decimal("200.00"), Decimal("-50.00")]


def test_percentage_scales_only_its_own_nights():
    thursday = SeasonalRule(
        rule_name="Thursday discount",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("-10"),
        start_date=date(2025, 1, 2),
        end_date=date(2025, 1, 2),
        priority=2,
    )
    breakdown = _price([_weekend_override(), thursday], check_in="2025-01-02", check_out="2025-01-05")

    assert breakdown.base_price == Decimal("490.00")
    assert breakdown.applied_rules[1].nights == 1
    assert breakdown.applied_rules[1].amount == Decimal("-10.00")


def test_nightly_rates_add_up_to_the_stay_price():
    rules = [
        _weekend_override(),
        SeasonalRule(
            rule_name="Thursday discount",
            adjustment_type=AdjustmentType.PERCENTAGE,
            adjustment_value=Decimal("-10"),
            start_date=date(2025, 1, 2),
            end_date=date(2025, 1, 2),
            priority=2,
        ),
    ]
    calculator = PricingCalculator()
    nights = DateRange(date(2025, 1, 2), date(2025, 1, 5)).each_night()

    nightly = [calculator.nightly_rate_for(Decimal("100"), night, rules, date(2024, 1, 1)) for night in nights]

    assert nightly == [Decimal("90.00"), Decimal("200.00"), Decimal("200.00")]
    assert sum(nightly) == _price(rules, check_in="2025-01-02", check_out="2025-01-05").base_price


def test_days_of_week_limit_seasonal_rule():
    rule = SeasonalRule(
        rule_name="Monday special",
        adjustment_type=AdjustmentType.OVERRIDE,
        adjustment_value=Decimal("60"),
        days_of_week=(0,),
    )
    stay = StayContext(dates=DateRange(date(2024, 12, 15), date(2024, 12, 18)), booked_on=date(2024, 1, 1))

    assert rule.covered_nights(stay) == [date(2024, 12, 16)]


def test_build_rule_picks_variant_from_rule_type():
    rule = build_rule({
        "rule_type": "advance_booking",
        "adjustment_type": "percentage",
        "adjustment_value": "-5",
        "advance_booking_days": 14,
        "priority": 2,
    })

    assert isinstance(rule, AdvanceBookingRule)
    assert rule.rule_type == RuleType.ADVANCE_BOOKING
    assert rule.adjustment_value == Decimal("-5")
    assert rule.rule_name == "advance_booking"
    assert rule.priority == 2


@pytest.mark.parametrize(
    "data",
    [
        {"rule_type": "lunar", "adjustment_type": "percentage", "adjustment_value": 5},
        {"rule_type": "seasonal", "adjustment_type": "multiply", "adjustment_value": 5},
        {"adjustment_type": "percentage", "adjustment_value": 5},
        {"rule_type": "seasonal", "adjustment_type": "fixed", "adjustment_value": "abc"},
        {"rule_type": "seasonal", "adjustment_type": "fixed", "adjustment_value": "NaN"},
    ],
)
def test_build_rule_rejects_invalid_attributes(data):
    with pytest.raises(ValueError):
        build_rule(data)


class OverlappingOverrideTests(SimpleTestCase):
    def test_highest_priority_override_wins_with_warning(self):
        low = SeasonalRule(
            rule_name="Low",
            adjustment_type=AdjustmentType.OVERRIDE,
            adjustment_value=Decimal("80"),
            priority=1,
        )
        high = SeasonalRule(
            rule_name="High",
            adjustment_type=AdjustmentType.OVERRIDE,
            adjustment_value=Decimal("90"),
            priority=2,
        )

        with self.assertLogs("apps.lofts.domain.pricing", "WARNING") as logs:
            breakdown = _price([high, low])

        self.assertEqual(breakdown.base_price, Decimal("270.00"))
        self.assertIn("override rules apply", logs.output[0])
