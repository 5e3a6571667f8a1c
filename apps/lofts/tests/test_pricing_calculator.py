from datetime import date
from decimal import Decimal

import pytest

from apps.lofts.domain.pricing import (
    MAX_NIGHTS,
    PricingCalculator,
    PricingRequest,
    PricingValidationError,
    calculate_pricing,
)
from apps.lofts.domain.pricing_rules import AdjustmentType, SeasonalRule


def test_reference_stay_breakdown():
    breakdown = calculate_pricing(
        nightly_rate=Decimal("150"),
        check_in="2024-12-15",
        check_out="2024-12-18",
        cleaning_fee=Decimal("50"),
        tax_rate=Decimal("0.19"),
    )

    assert breakdown.nights == 3
    assert breakdown.base_price == Decimal("450.00")
    assert breakdown.cleaning_fee == Decimal("50.00")
    assert breakdown.service_fee == Decimal("50.00")
    assert breakdown.taxes == Decimal("104.50")
    assert breakdown.total == Decimal("654.50")
    assert breakdown.currency == "EUR"
    assert breakdown.applied_rules == ()


def test_total_is_sum_of_rounded_components():
    breakdown = calculate_pricing(
        nightly_rate=Decimal("99.99"),
        check_in=date(2025, 3, 1),
        check_out=date(2025, 3, 4),
        cleaning_fee=Decimal("33.33"),
        tax_rate=Decimal("0.07"),
    )

    assert breakdown.total == (
        breakdown.base_price + breakdown.cleaning_fee + breakdown.service_fee + breakdown.taxes
    )
    for amount in (breakdown.base_price, breakdown.service_fee, breakdown.taxes, breakdown.total):
        assert amount == amount.quantize(Decimal("0.01"))


@pytest.mark.parametrize(
    "check_in,check_out,nights",
    [
        ("2024-12-15", "2024-12-16", 1),
        ("2024-12-30", "2025-01-02", 3),
        ("2024-02-27", "2024-03-01", 3),
        ("2024-12-15T14:00:00", "2024-12-18T10:00:00", 3),
        ("2024-12-15T10:00:00Z", "2024-12-15T18:00:00Z", 1),
    ],
)
def test_nights_round_partial_days_up(check_in, check_out, nights):
    breakdown = calculate_pricing(nightly_rate=100, check_in=check_in, check_out=check_out)

    assert breakdown.nights == nights
    assert breakdown.base_price == Decimal(100 * nights).quantize(Decimal("0.01"))


def test_same_day_check_out_is_rejected():
    with pytest.raises(PricingValidationError):
        calculate_pricing(nightly_rate=100, check_in="2024-12-15", check_out="2024-12-15")


def test_check_out_before_check_in_is_rejected():
    with pytest.raises(PricingValidationError, match="must be after check-in"):
        calculate_pricing(nightly_rate=100, check_in="2024-12-18", check_out="2024-12-15")


def test_invalid_date_is_rejected():
    with pytest.raises(PricingValidationError, match="Invalid date format"):
        calculate_pricing(nightly_rate=100, check_in="15/12/2024", check_out="2024-12-18")


@pytest.mark.parametrize("rate,message", [(None, "required"), ("", "required"), (0, "positive"), (-5, "positive")])
def test_missing_or_non_positive_rate_is_rejected(rate, message):
    with pytest.raises(PricingValidationError, match=message):
        calculate_pricing(nightly_rate=rate, check_in="2024-12-15", check_out="2024-12-18")


def test_negative_fees_are_rejected():
    with pytest.raises(PricingValidationError, match="Cleaning fee"):
        calculate_pricing(
            nightly_rate=100, check_in="2024-12-15", check_out="2024-12-18", cleaning_fee=Decimal("-1")
        )
    with pytest.raises(PricingValidationError, match="Tax rate"):
        calculate_pricing(
            nightly_rate=100, check_in="2024-12-15", check_out="2024-12-18", tax_rate=Decimal("-0.1")
        )


def test_calculator_is_idempotent():
    calculator = PricingCalculator()
    request = PricingRequest(
        nightly_rate=Decimal("120"),
        check_in="2025-06-01",
        check_out="2025-06-08",
        cleaning_fee=Decimal("40"),
        tax_rate=Decimal("0.19"),
        pricing_rules=(
            SeasonalRule(
                rule_name="Summer",
                adjustment_type=AdjustmentType.PERCENTAGE,
                adjustment_value=Decimal("15"),
                start_date=date(2025, 6, 1),
                end_date=date(2025, 8, 31),
            ),
        ),
        booked_on=date(2025, 1, 1),
    )

    assert calculator.calculate(request) == calculator.calculate(request)


def test_total_grows_with_nightly_rate():
    totals = [
        calculate_pricing(
            nightly_rate=rate,
            check_in="2025-05-01",
            check_out="2025-05-05",
            cleaning_fee=Decimal("25"),
            tax_rate=Decimal("0.19"),
        ).total
        for rate in (Decimal("50"), Decimal("50.01"), Decimal("80"), Decimal("200"))
    ]

    assert totals == sorted(totals)


def test_total_is_at_least_base_price():
    breakdown = calculate_pricing(nightly_rate=75, check_in="2025-05-01", check_out="2025-05-03")

    assert breakdown.total >= breakdown.base_price


def test_inactive_rules_leave_price_unchanged():
    rule = SeasonalRule(
        rule_name="Disabled",
        adjustment_type=AdjustmentType.PERCENTAGE,
        adjustment_value=Decimal("50"),
        is_active=False,
    )
    breakdown = calculate_pricing(
        nightly_rate=150, check_in="2024-12-15", check_out="2024-12-18", pricing_rules=[rule]
    )

    assert breakdown.base_price == Decimal("450.00")
    assert breakdown.subtotal == Decimal("450.00")


def test_service_fee_rate_is_configurable():
    breakdown = PricingCalculator(service_fee_rate=Decimal("0.05")).calculate(
        PricingRequest(nightly_rate=100, check_in="2024-12-15", check_out="2024-12-17")
    )

    assert breakdown.service_fee == Decimal("10.00")


def test_stay_longer_than_the_cap_is_rejected():
    with pytest.raises(PricingValidationError, match="cannot exceed 30 nights"):
        calculate_pricing(
            nightly_rate=100, check_in="2025-01-01", check_out="2025-02-01", max_nights=30
        )


def test_stay_far_beyond_the_default_cap_is_rejected():
    with pytest.raises(PricingValidationError, match=f"cannot exceed {MAX_NIGHTS} nights"):
        calculate_pricing(nightly_rate=100, check_in="2025-01-01", check_out="9999-12-31")


def test_stay_at_the_cap_is_priced():
    breakdown = calculate_pricing(
        nightly_rate=100, check_in="2025-01-01", check_out="2025-01-31", max_nights=30
    )

    assert breakdown.nights == 30
    assert breakdown.base_price == Decimal("3000.00")
