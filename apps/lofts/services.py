"""Pricing services that bind stored lofts and rules to the pricing domain."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional

from django.conf import settings  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import DateRange
from apps.lofts.domain.pricing import PricingBreakdown, PricingCalculator, PricingRequest
from apps.lofts.domain.pricing_rules import PricingRule as PricingRuleStrategy

from .models import Loft


def pricing_calculator() -> PricingCalculator:
    return PricingCalculator(
        service_fee_rate=Decimal(str(settings.LOFTS_SERVICE_FEE_RATE)),
        max_nights=settings.LOFTS_MAX_STAY_NIGHTS,
    )


def active_pricing_rules(loft: Loft) -> List[PricingRuleStrategy]:
    """Active stored rules of a loft as pricing strategies, in priority order."""

    return [rule.to_domain() for rule in loft.pricing_rules.filter(is_active=True).order_by("priority", "id")]


def quote_stay(loft: Loft, dates: DateRange, booked_on: Optional[date] = None) -> PricingBreakdown:
    """Price a stay at a loft with the loft's fees and active rules."""

    return pricing_calculator().calculate(
        PricingRequest(
            nightly_rate=loft.price_per_night,
            check_in=dates.start_date,
            check_out=dates.end_date,
            cleaning_fee=loft.cleaning_fee,
            tax_rate=loft.tax_rate,
            pricing_rules=tuple(active_pricing_rules(loft)),
            booked_on=booked_on or timezone.localdate(),
            currency=loft.currency,
        )
    )


def nightly_rates(loft: Loft, dates: DateRange, booked_on: Optional[date] = None) -> Dict[date, Decimal]:
    """Per-night rate of every night in `dates`, each night priced on its own."""

    calculator = pricing_calculator()
    rules = active_pricing_rules(loft)
    booked_on = booked_on or timezone.localdate()
    return {
        night: calculator.nightly_rate_for(loft.price_per_night, night, rules, booked_on=booked_on)
        for night in dates.each_night()
    }
