"""
Availability Checker

Decides whether a loft can be booked for a date range.

A range is unavailable when any blocking row (owner block, maintenance,
active reservation or unexpired reservation lock) overlaps the requested
nights. Independently, the requested night count is validated against the
loft's minimum and maximum stay and a human readable restriction is
reported for each violated bound.

Persistence is injected through AvailabilityRepository so the checker can
run against the Django ORM in production and an in-memory store in tests.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional, Tuple

from shared.domain.base import ValueObject
from shared.domain.value_objects import DateRange

logger = logging.getLogger(__name__)

UNKNOWN_AVAILABILITY_MESSAGE = "Availability could not be determined"
LOFT_CLOSED_MESSAGE = "Loft is currently not available for booking"


class AvailabilityLookupError(Exception):
    """Raised by repositories when availability data cannot be fetched."""


@dataclass(frozen=True)
class StayLimits(ValueObject):
    """Stay constraints configured on a loft."""
    minimum_nights: int = 1
    maximum_nights: Optional[int] = None
    is_open: bool = True


@dataclass(frozen=True)
class BlockedRange(ValueObject):
    """A range of nights that cannot be booked, and why."""
    dates: DateRange
    source: str = 'blocked'
    reason: str = ''


@dataclass(frozen=True)
class AvailabilityResult(ValueObject):
    available: bool
    restrictions: Tuple[str, ...] = ()
    unavailable_dates: Tuple[date, ...] = ()
    minimum_stay: int = 1
    maximum_stay: Optional[int] = None
    known: bool = True

    @property
    def bookable(self) -> bool:
        """Free of blocking rows and of stay-length restrictions."""
        return self.available and not self.restrictions


class AvailabilityRepository(ABC):
    """Persistence interface used by the availability checker"""

    @abstractmethod
    def get_stay_limits(self, loft_id) -> StayLimits:
        """
        Return the loft's stay constraints

        Raises AvailabilityLookupError if the loft cannot be read.
        """
        pass

    @abstractmethod
    def get_blocked_ranges(
        self,
        loft_id,
        dates: DateRange,
        exclude_lock_id=None,
    ) -> List[BlockedRange]:
        """
        Return every blocking row overlapping `dates`

        `exclude_lock_id` lets a caller ignore its own reservation lock.
        Raises AvailabilityLookupError if the rows cannot be read.
        """
        pass


class AvailabilityChecker:
    """
    Availability checker

    Usage:
        checker = AvailabilityChecker(DjangoAvailabilityRepository())
        result = checker.check(loft.id, DateRange(check_in, check_out))
        if not result.bookable:
            ...
    """

    def __init__(self, repository: AvailabilityRepository):
        self.repository = repository

    def check(self, loft_id, dates: DateRange, exclude_lock_id=None) -> AvailabilityResult:
        """
        Check availability of `dates` for a loft

        Lookup failures never raise: they produce an "unknown" result that
        callers must treat as unavailable.
        """
        try:
            limits = self.repository.get_stay_limits(loft_id)
            blocked = self.repository.get_blocked_ranges(
                loft_id, dates, exclude_lock_id=exclude_lock_id
            )
        except AvailabilityLookupError as e:
            logger.error(
                f"Availability lookup failed for loft {loft_id}, dates {dates}: {e}",
                exc_info=True
            )
            return AvailabilityResult(
                available=False,
                restrictions=(UNKNOWN_AVAILABILITY_MESSAGE,),
                known=False,
            )

        restrictions: List[str] = []
        if not limits.is_open:
            restrictions.append(LOFT_CLOSED_MESSAGE)

        nights = len(dates)
        if nights < limits.minimum_nights:
            restrictions.append(f"Minimum stay is {limits.minimum_nights} night(s)")
        if limits.maximum_nights is not None and nights > limits.maximum_nights:
            restrictions.append(f"Maximum stay is {limits.maximum_nights} night(s)")

        overlapping = [row for row in blocked if row.dates.overlaps_with(dates)]
        unavailable = sorted({
            night
            for row in overlapping
            for night in dates.each_night()
            if row.dates.contains(night)
        })

        return AvailabilityResult(
            available=limits.is_open and not overlapping,
            restrictions=tuple(restrictions),
            unavailable_dates=tuple(unavailable),
            minimum_stay=limits.minimum_nights,
            maximum_stay=limits.maximum_nights,
        )

    def calendar(self, loft_id, dates: DateRange) -> Dict[date, bool]:
        """
        Night-by-night availability for `dates`

        Raises AvailabilityLookupError; a calendar has no fail-safe form.
        """
        blocked = self.repository.get_blocked_ranges(loft_id, dates)
        return {
            night: not any(row.dates.contains(night) for row in blocked)
            for night in dates.each_night()
        }
