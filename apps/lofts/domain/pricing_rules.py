"""
Pricing Rule Strategies

One variant per rule type. Every rule decides which nights of a stay it
covers and adjusts the price of each of those nights, leaving the other
nights untouched:

- percentage: the night price is scaled by (1 + value / 100)
- fixed: value is added to the night price (negative values subtract)
- override: the night price is replaced by value

A night price never drops below zero.

Rules are composed by the pricing calculator in ascending priority order.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import ClassVar, Dict, List, Mapping, Optional, Tuple, Type

from shared.domain.base import ValueObject
from shared.domain.value_objects import DateRange

HUNDRED = Decimal("100")
ZERO = Decimal("0")

# Monday = 0 ... Sunday = 6, as returned by date.weekday()
FRIDAY = 4
SATURDAY = 5


class RuleType(str, Enum):
    SEASONAL = 'seasonal'
    WEEKEND = 'weekend'
    HOLIDAY = 'holiday'
    EVENT = 'event'
    LENGTH_OF_STAY = 'length_of_stay'
    ADVANCE_BOOKING = 'advance_booking'


class AdjustmentType(str, Enum):
    PERCENTAGE = 'percentage'
    FIXED = 'fixed'
    OVERRIDE = 'override'


@dataclass(frozen=True)
class StayContext(ValueObject):
    """The stay being priced and the day it is booked on."""
    dates: DateRange
    booked_on: date

    @property
    def nights(self) -> int:
        return len(self.dates)

    @property
    def lead_days(self) -> int:
        return (self.dates.start_date - self.booked_on).days


@dataclass(frozen=True)
class PricingRule(ValueObject):
    """
    Base pricing rule

    A rule qualifies for a stay when it is active and the stay length is
    within [minimum_nights, maximum_nights]. A qualified rule covers the
    nights that fall inside its active date range and on its days of week.
    """
    rule_name: str
    adjustment_type: AdjustmentType
    adjustment_value: Decimal
    priority: int = 0
    is_active: bool = True
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    days_of_week: Tuple[int, ...] = ()
    minimum_nights: Optional[int] = None
    maximum_nights: Optional[int] = None
    advance_booking_days: Optional[int] = None

    rule_type: ClassVar[RuleType]

    def qualifies(self, stay: StayContext) -> bool:
        if not self.is_active:
            return False
        if self.minimum_nights is not None and stay.nights < self.minimum_nights:
            return False
        if self.maximum_nights is not None and stay.nights > self.maximum_nights:
            return False
        return True

    def in_active_range(self, night: date) -> bool:
        if self.start_date is not None and night < self.start_date:
            return False
        if self.end_date is not None and night > self.end_date:
            return False
        return True

    def covers_night(self, night: date) -> bool:
        if not self.in_active_range(night):
            return False
        if self.days_of_week and night.weekday() not in self.days_of_week:
            return False
        return True

    def covered_nights(self, stay: StayContext) -> List[date]:
        if not self.qualifies(stay):
            return []
        return [night for night in stay.dates.each_night() if self.covers_night(night)]

    def adjust(self, rate: Decimal) -> Decimal:
        """Price of one covered night after this rule."""
        if self.adjustment_type == AdjustmentType.PERCENTAGE:
            adjusted = rate * (1 + self.adjustment_value / HUNDRED)
        elif self.adjustment_type == AdjustmentType.FIXED:
            adjusted = rate + self.adjustment_value
        else:
            adjusted = self.adjustment_value
        return max(adjusted, ZERO)

    def apply(self, nightly_prices: Mapping[date, Decimal], stay: StayContext) -> Dict[date, Decimal]:
        """Return the night prices after this rule; uncovered nights keep their price."""
        covered = set(self.covered_nights(stay))
        return {
            night: self.adjust(price) if night in covered else price
            for night, price in nightly_prices.items()
        }


@dataclass(frozen=True)
class SeasonalRule(PricingRule):
    rule_type: ClassVar[RuleType] = RuleType.SEASONAL


@dataclass(frozen=True)
class HolidayRule(PricingRule):
    rule_type: ClassVar[RuleType] = RuleType.HOLIDAY


@dataclass(frozen=True)
class EventRule(PricingRule):
    rule_type: ClassVar[RuleType] = RuleType.EVENT


@dataclass(frozen=True)
class WeekendRule(PricingRule):
    """Covers Friday and Saturday nights unless days_of_week says otherwise."""
    rule_type: ClassVar[RuleType] = RuleType.WEEKEND

    def covers_night(self, night: date) -> bool:
        if not self.in_active_range(night):
            return False
        days = self.days_of_week or (FRIDAY, SATURDAY)
        return night.weekday() in days


@dataclass(frozen=True)
class LengthOfStayRule(PricingRule):
    """Discount or surcharge on the whole stay once its length qualifies."""
    rule_type: ClassVar[RuleType] = RuleType.LENGTH_OF_STAY

    def qualifies(self, stay: StayContext) -> bool:
        return super().qualifies(stay) and self.in_active_range(stay.dates.start_date)

    def covers_night(self, night: date) -> bool:
        return True


@dataclass(frozen=True)
class AdvanceBookingRule(PricingRule):
    """Applies to the whole stay when it is booked far enough ahead."""
    rule_type: ClassVar[RuleType] = RuleType.ADVANCE_BOOKING

    def qualifies(self, stay: StayContext) -> bool:
        if not super().qualifies(stay):
            return False
        if not self.in_active_range(stay.dates.start_date):
            return False
        return stay.lead_days >= (self.advance_booking_days or 0)

    def covers_night(self, night: date) -> bool:
        return True


RULE_TYPES: Dict[RuleType, Type[PricingRule]] = {
    rule.rule_type: rule
    for rule in (
        SeasonalRule,
        WeekendRule,
        HolidayRule,
        EventRule,
        LengthOfStayRule,
        AdvanceBookingRule,
    )
}


def build_rule(data: Mapping) -> PricingRule:
    """
    Build the rule variant for a mapping of rule attributes.

    Accepts the same keys as the stored pricing rule (rule_type,
    adjustment_type, adjustment_value, ...). Unknown rule or adjustment
    types and non-numeric adjustment values raise ValueError.
    """
    try:
        rule_type = RuleType(data['rule_type'])
        adjustment_type = AdjustmentType(data['adjustment_type'])
    except KeyError as exc:
        raise ValueError(f"Pricing rule is missing {exc.args[0]}") from exc

    try:
        adjustment_value = Decimal(str(data.get('adjustment_value', 0)))
    except (InvalidOperation, ValueError) as exc:
        raise ValueError("Pricing rule adjustment_value must be a number") from exc
    if not adjustment_value.is_finite():
        raise ValueError("Pricing rule adjustment_value must be a number")

    rule_cls = RULE_TYPES[rule_type]
    return rule_cls(
        rule_name=data.get('rule_name') or rule_type.value,
        adjustment_type=adjustment_type,
        adjustment_value=adjustment_value,
        priority=int(data.get('priority') or 0),
        is_active=bool(data.get('is_active', True)),
        start_date=data.get('start_date'),
        end_date=data.get('end_date'),
        days_of_week=tuple(data.get('days_of_week') or ()),
        minimum_nights=data.get('minimum_nights'),
        maximum_nights=data.get('maximum_nights'),
        advance_booking_days=data.get('advance_booking_days'),
    )
