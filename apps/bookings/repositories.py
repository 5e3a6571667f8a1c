"""Django ORM implementation of the availability repository."""

from __future__ import annotations

from typing import List

from django.db import DatabaseError, transaction  # type: ignore
from django.db.models import Q  # type: ignore
from django.db.utils import NotSupportedError  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import DateRange
from apps.bookings.domain.availability import (
    AvailabilityLookupError,
    AvailabilityRepository,
    BlockedRange,
    StayLimits,
)
from apps.lofts.models import BlockedPeriod, Loft

from .models import Reservation, ReservationLock


def _lock_queryset_if_possible(queryset):
    """Apply select_for_update when inside transaction.atomic()."""

    if not transaction.get_connection().in_atomic_block:
        return queryset

    try:
        return queryset.select_for_update()
    except NotSupportedError:
        return queryset


def _overlapping(dates: DateRange, start_field: str, end_field: str) -> Q:
    return Q(**{f"{start_field}__lt": dates.end_date}) & Q(**{f"{end_field}__gt": dates.start_date})


class DjangoAvailabilityRepository(AvailabilityRepository):
    """
    Reads blocking rows from blocked periods, active reservations and
    unexpired reservation locks.

    Inside a transaction the rows are read with select_for_update so that
    a concurrent reservation of the same nights waits for this one.
    """

    def get_stay_limits(self, loft_id) -> StayLimits:
        try:
            loft = Loft.objects.only("status", "minimum_nights", "maximum_nights").get(pk=loft_id)
        except Loft.DoesNotExist as exc:
            raise AvailabilityLookupError(f"Loft {loft_id} does not exist") from exc
        except DatabaseError as exc:
            raise AvailabilityLookupError(f"Could not read loft {loft_id}") from exc
        return loft.stay_limits()

    def get_blocked_ranges(self, loft_id, dates: DateRange, exclude_lock_id=None) -> List[BlockedRange]:
        try:
            return self._fetch_blocked_ranges(loft_id, dates, exclude_lock_id)
        except DatabaseError as exc:
            raise AvailabilityLookupError(f"Could not read blocked dates of loft {loft_id}") from exc

    def _fetch_blocked_ranges(self, loft_id, dates: DateRange, exclude_lock_id) -> List[BlockedRange]:
        blocked_qs = BlockedPeriod.objects.filter(loft_id=loft_id).filter(
            _overlapping(dates, "start_date", "end_date")
        )
        reservations_qs = Reservation.objects.filter(
            loft_id=loft_id,
            status__in=Reservation.BLOCKING_STATUSES,
        ).filter(_overlapping(dates, "check_in", "check_out"))
        locks_qs = ReservationLock.objects.filter(
            loft_id=loft_id,
            expires_at__gt=timezone.now(),
        ).filter(_overlapping(dates, "check_in", "check_out"))
        if exclude_lock_id is not None:
            locks_qs = locks_qs.exclude(pk=exclude_lock_id)

        ranges = [period.to_blocked_range() for period in _lock_queryset_if_possible(blocked_qs)]
        ranges.extend(
            BlockedRange(
                dates=reservation.dates,
                source="reservation",
                reason=f"Reservation {reservation.reservation_code}",
            )
            for reservation in _lock_queryset_if_possible(reservations_qs)
        )
        ranges.extend(
            BlockedRange(dates=lock.dates, source="lock", reason="Checkout in progress")
            for lock in _lock_queryset_if_possible(locks_qs)
        )
        return ranges
