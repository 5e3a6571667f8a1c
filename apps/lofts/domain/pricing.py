"""
Pricing Calculator

Computes the pricing breakdown of a stay:

    nights      = ceil((check_out - check_in) / 1 day)
    base_price  = sum of the nightly prices after the pricing rules
    service_fee = (base_price + cleaning_fee) * service fee rate (10%)
    taxes       = (base_price + cleaning_fee + service_fee) * tax_rate
    total       = base_price + cleaning_fee + service_fee + taxes

The calculator is a pure function of its input: it performs no I/O and
keeps no state between calls.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Dict, Iterable, List, Optional, Tuple

from shared.domain.base import ValueObject
from shared.domain.value_objects import DateInput, DateRange
from apps.lofts.domain.pricing_rules import AdjustmentType, PricingRule, StayContext

logger = logging.getLogger(__name__)

SERVICE_FEE_RATE = Decimal("0.10")
DEFAULT_CURRENCY = 'EUR'
TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")
MAX_NIGHTS = 730


class PricingValidationError(ValueError):
    """Raised when a pricing request cannot be priced."""


def money(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_decimal(value, name: str) -> Decimal:
    if isinstance(value, Decimal):
        return value
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise PricingValidationError(f"{name} must be a number") from exc


@dataclass(frozen=True)
class PricingRequest(ValueObject):
    """Everything needed to price a stay."""
    nightly_rate: Optional[Decimal]
    check_in: DateInput
    check_out: DateInput
    cleaning_fee: Decimal = Decimal("0")
    tax_rate: Decimal = Decimal("0")
    pricing_rules: Tuple[PricingRule, ...] = ()
    booked_on: Optional[date] = None
    currency: str = DEFAULT_CURRENCY


@dataclass(frozen=True)
class AppliedRule(ValueObject):
    """A rule that changed the stay price, and by how much."""
    rule_name: str
    rule_type: str
    nights: int
    amount: Decimal


@dataclass(frozen=True)
class PricingBreakdown(ValueObject):
    nightly_rate: Decimal
    nights: int
    subtotal: Decimal
    base_price: Decimal
    cleaning_fee: Decimal
    service_fee: Decimal
    taxes: Decimal
    total: Decimal
    currency: str = DEFAULT_CURRENCY
    applied_rules: Tuple[AppliedRule, ...] = field(default_factory=tuple)


def order_rules(rules: Iterable[PricingRule]) -> List[PricingRule]:
    """Active rules in ascending priority; equal priorities keep their input order."""
    return sorted((rule for rule in rules if rule.is_active), key=lambda rule: rule.priority)


class PricingCalculator:
    """
    Stay pricing calculator

    Usage:
        calculator = PricingCalculator()
        breakdown = calculator.calculate(PricingRequest(
            nightly_rate=Decimal("150"),
            check_in="2024-12-15",
            check_out="2024-12-18",
            cleaning_fee=Decimal("50"),
            tax_rate=Decimal("0.19"),
        ))
        breakdown.total  # Decimal("654.50")
    """

    def __init__(self, service_fee_rate: Decimal = SERVICE_FEE_RATE, max_nights: int = MAX_NIGHTS):
        self.service_fee_rate = service_fee_rate
        self.max_nights = max_nights

    def calculate(self, request: PricingRequest) -> PricingBreakdown:
        nightly_rate = self._validate_rate(request.nightly_rate)
        cleaning_fee = to_decimal(request.cleaning_fee or 0, "Cleaning fee")
        tax_rate = to_decimal(request.tax_rate or 0, "Tax rate")
        if cleaning_fee < 0:
            raise PricingValidationError("Cleaning fee cannot be negative")
        if tax_rate < 0:
            raise PricingValidationError("Tax rate cannot be negative")

        try:
            dates = DateRange.from_values(request.check_in, request.check_out)
        except ValueError as exc:
            raise PricingValidationError(str(exc)) from exc
        if len(dates) > self.max_nights:
            raise PricingValidationError(f"Stay cannot exceed {self.max_nights} nights")

        stay = StayContext(dates=dates, booked_on=request.booked_on or date.today())
        subtotal = nightly_rate * stay.nights
        prices, applied = self.apply_rules(nightly_rate, stay, request.pricing_rules)

        base_price = money(sum(prices.values(), ZERO))
        cleaning_fee = money(cleaning_fee)
        service_fee = money((base_price + cleaning_fee) * self.service_fee_rate)
        taxes = money((base_price + cleaning_fee + service_fee) * tax_rate)
        total = base_price + cleaning_fee + service_fee + taxes

        logger.debug(
            f"Priced {stay.nights} night(s) {dates}: base {base_price}, total {total} "
            f"({len(applied)} rule(s) applied)"
        )
        return PricingBreakdown(
            nightly_rate=money(nightly_rate),
            nights=stay.nights,
            subtotal=money(subtotal),
            base_price=base_price,
            cleaning_fee=cleaning_fee,
            service_fee=service_fee,
            taxes=taxes,
            total=total,
            currency=request.currency or DEFAULT_CURRENCY,
            applied_rules=tuple(applied),
        )

    def apply_rules(
        self,
        nightly_rate: Decimal,
        stay: StayContext,
        rules: Iterable[PricingRule],
    ) -> Tuple[Dict[date, Decimal], List[AppliedRule]]:
        """
        Compose the rules night by night, lowest priority first.

        Returns the price of every night of the stay and, for each rule that
        covered at least one night, the amount it added to the stay.
        """
        prices: Dict[date, Decimal] = {night: nightly_rate for night in stay.dates.each_night()}
        applied: List[AppliedRule] = []
        overrides = 0
        for rule in order_rules(rules):
            covered = len(rule.covered_nights(stay))
            if not covered:
                continue
            adjusted = rule.apply(prices, stay)
            if rule.adjustment_type == AdjustmentType.OVERRIDE:
                overrides += 1
            applied.append(AppliedRule(
                rule_name=rule.rule_name,
                rule_type=rule.rule_type.value,
                nights=covered,
                amount=money(sum(adjusted.values(), ZERO) - sum(prices.values(), ZERO)),
            ))
            prices = adjusted

        if overrides > 1:
            logger.warning(
                f"{overrides} override rules apply to stay {stay.dates}; "
                f"the highest priority override wins on shared nights"
            )
        return prices, applied

    def nightly_rate_for(
        self,
        nightly_rate: Decimal,
        night: date,
        rules: Iterable[PricingRule],
        booked_on: Optional[date] = None,
    ) -> Decimal:
        """Price of a single night starting on `night`, as shown on a calendar."""
        rate = self._validate_rate(nightly_rate)
        stay = StayContext(
            dates=DateRange(night, night + timedelta(days=1)),
            booked_on=booked_on or date.today(),
        )
        prices, _ = self.apply_rules(rate, stay, rules)
        return money(prices[night])

    @staticmethod
    def _validate_rate(nightly_rate) -> Decimal:
        if nightly_rate is None or nightly_rate == '':
            raise PricingValidationError("Nightly rate is required")
        rate = to_decimal(nightly_rate, "Nightly rate")
        if rate <= 0:
            raise PricingValidationError("Nightly rate must be positive")
        return rate


def calculate_pricing(
    nightly_rate,
    check_in: DateInput,
    check_out: DateInput,
    cleaning_fee=Decimal("0"),
    tax_rate=Decimal("0"),
    pricing_rules: Iterable[PricingRule] = (),
    booked_on: Optional[date] = None,
    currency: str = DEFAULT_CURRENCY,
    service_fee_rate: Decimal = SERVICE_FEE_RATE,
    max_nights: int = MAX_NIGHTS,
) -> PricingBreakdown:
    """Functional shortcut around PricingCalculator.calculate()."""
    return PricingCalculator(service_fee_rate, max_nights).calculate(PricingRequest(
        nightly_rate=nightly_rate,
        check_in=check_in,
        check_out=check_out,
        cleaning_fee=cleaning_fee,
        tax_rate=tax_rate,
        pricing_rules=tuple(pricing_rules),
        booked_on=booked_on,
        currency=currency,
    ))
