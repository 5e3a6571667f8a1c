"""
Common Value Objects

Value objects used across the loft domains:
- DateRange: Represents a stay (check-in to check-out)
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from typing import Iterator, Union

from shared.domain.base import ValueObject

DateInput = Union[date, datetime, str]

ONE_DAY = timedelta(days=1)


def _as_datetime(value: date) -> datetime:
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def parse_date_value(value: DateInput) -> Union[date, datetime]:
    """
    Accept a date, a datetime or an ISO 8601 string.

    Strings carrying a time component are parsed as datetimes so that
    partial days can be rounded up into nights.
    """
    if isinstance(value, (date, datetime)):
        return value
    if not isinstance(value, str):
        raise ValueError(f"Invalid date value: {value!r}")
    text = value.strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Invalid date format: {value!r}") from exc


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    Represents a range from start_date (inclusive) to end_date (exclusive).
    Used for stays, blocked periods, locks and availability checks.
    """
    start_date: date
    end_date: date

    def __post_init__(self):
        # Validation
        if self.start_date >= self.end_date:
            raise ValueError(
                f"Check-out date ({self.end_date}) must be after check-in date ({self.start_date})"
            )

    @classmethod
    def from_values(cls, check_in: DateInput, check_out: DateInput) -> 'DateRange':
        """
        Build a stay from raw check-in/check-out values.

        Nights are ceil((check_out - check_in) / 1 day), so a stay from
        15 Dec 14:00 to 18 Dec 10:00 still counts three nights. The result
        is normalised to plain dates.
        """
        start = parse_date_value(check_in)
        end = parse_date_value(check_out)
        if isinstance(start, datetime) or isinstance(end, datetime):
            start = _as_datetime(start)
            end = _as_datetime(end)
            if (start.tzinfo is None) != (end.tzinfo is None):
                start = start.replace(tzinfo=None)
                end = end.replace(tzinfo=None)

        if end <= start:
            raise ValueError(f"Check-out date ({end}) must be after check-in date ({start})")

        nights = math.ceil((end - start) / ONE_DAY)
        first_night = start.date() if isinstance(start, datetime) else start
        return cls(first_night, first_night + timedelta(days=nights))

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Check if this range overlaps with another

        Two ranges overlap if they share any nights.
        Note: end_date is exclusive, so adjacent ranges don't overlap.

        Examples:
            - DateRange(25, 28) overlaps with DateRange(27, 30) -> True
            - DateRange(25, 28) overlaps with DateRange(28, 31) -> False (adjacent)
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")

        # Overlap formula: start1 < end2 AND end1 > start2
        return (self.start_date < other.end_date and
                self.end_date > other.start_date)

    def contains(self, check_date: date) -> bool:
        """
        Check if a date is within this range

        Note: start_date is inclusive, end_date is exclusive
        """
        return self.start_date <= check_date < self.end_date

    def each_night(self) -> Iterator[date]:
        """Yield the date of every night in the range."""
        current = self.start_date
        while current < self.end_date:
            yield current
            current += ONE_DAY

    def __len__(self) -> int:
        """
        Return the number of nights in this range
        """
        return (self.end_date - self.start_date).days

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
