"""Domain services for reservation workflows."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import List, Optional

from django.conf import settings  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from shared.domain.value_objects import DateRange
from apps.bookings.domain.availability import AvailabilityChecker, AvailabilityResult
from apps.lofts.models import Loft
from apps.lofts.services import nightly_rates, quote_stay

from .models import Reservation, ReservationLock
from .repositories import DjangoAvailabilityRepository, _lock_queryset_if_possible

logger = logging.getLogger(__name__)

MAX_CALENDAR_DAYS = 366


class BookingConflictError(Exception):
    """Raised when a loft is busy for requested dates."""


class StayRestrictionError(ValueError):
    """Raised when the requested stay violates the loft's stay limits."""


def availability_checker() -> AvailabilityChecker:
    return AvailabilityChecker(DjangoAvailabilityRepository())


def check_loft_availability(loft_id, dates: DateRange, *, exclude_lock_id=None) -> AvailabilityResult:
    return availability_checker().check(loft_id, dates, exclude_lock_id=exclude_lock_id)


def ensure_loft_is_bookable(loft_id, dates: DateRange, *, exclude_lock_id=None) -> AvailabilityResult:
    """Raise unless the nights are free and the stay satisfies the loft's limits."""

    result = check_loft_availability(loft_id, dates, exclude_lock_id=exclude_lock_id)
    if not result.available:
        message = "; ".join(result.restrictions) or "Loft is not available for the selected dates."
        raise BookingConflictError(message)
    if result.restrictions:
        raise StayRestrictionError("; ".join(result.restrictions))
    return result


def validate_booking_window(dates: DateRange, today: Optional[date] = None) -> None:
    today = today or timezone.localdate()
    if dates.start_date < today:
        raise ValueError("Check-in date cannot be in the past.")
    window = settings.BOOKING_WINDOW_DAYS
    if dates.start_date > today + timedelta(days=window):
        raise ValueError(f"Check-in date must be within {window} days from today.")
    max_nights = settings.LOFTS_MAX_STAY_NIGHTS
    if len(dates) > max_nights:
        raise ValueError(f"Stay cannot exceed {max_nights} nights.")


def lock_dates(loft: Loft, user, dates: DateRange) -> ReservationLock:
    """Hold `dates` for `user` while checkout is in progress."""

    validate_booking_window(dates)
    with transaction.atomic():
        _lock_queryset_if_possible(Loft.objects.filter(pk=loft.pk)).get()
        ensure_loft_is_bookable(loft.pk, dates)
        lock = ReservationLock.objects.create(
            loft=loft,
            user=user,
            check_in=dates.start_date,
            check_out=dates.end_date,
            expires_at=timezone.now() + timedelta(minutes=settings.RESERVATION_LOCK_MINUTES),
        )
    logger.info(f"Reservation lock {lock.id} taken on loft {loft.pk} for {dates} by user {user.pk}")
    return lock


def release_lock(lock: ReservationLock) -> None:
    lock_id = lock.pk
    lock.delete()
    logger.info(f"Reservation lock {lock_id} released")


def purge_expired_locks(now=None) -> int:
    deleted, _ = ReservationLock.objects.filter(expires_at__lte=now or timezone.now()).delete()
    return deleted


def _active_lock_for(loft: Loft, user, lock_id) -> ReservationLock:
    lock = ReservationLock.objects.filter(
        pk=lock_id,
        loft=loft,
        user=user,
        expires_at__gt=timezone.now(),
    ).first()
    if lock is None:
        raise ValueError("Reservation lock is missing or expired.")
    return lock


def create_reservation(
    loft: Loft,
    guest,
    dates: DateRange,
    *,
    guests_count: int = 1,
    lock_id=None,
    guest_name: str = "",
    guest_email: str = "",
    guest_phone: str = "",
    special_requests: str = "",
) -> Reservation:
    """
    Create a pending reservation with a frozen pricing snapshot.

    The caller's own reservation lock, when given, is ignored by the
    availability check and consumed.
    """

    validate_booking_window(dates)
    if guests_count < 1:
        raise ValueError("At least one guest is required.")
    if guests_count > loft.max_guests:
        raise ValueError(f"This loft accepts at most {loft.max_guests} guest(s).")

    with transaction.atomic():
        lock = _active_lock_for(loft, guest, lock_id) if lock_id is not None else None
        loft = _lock_queryset_if_possible(Loft.objects.filter(pk=loft.pk)).get()
        ensure_loft_is_bookable(loft.pk, dates, exclude_lock_id=lock.pk if lock else None)

        breakdown = quote_stay(loft, dates)
        reservation = Reservation.objects.create(
            loft=loft,
            guest=guest,
            check_in=dates.start_date,
            check_out=dates.end_date,
            guests_count=guests_count,
            guest_name=guest_name or guest.get_full_name(),
            guest_email=guest_email or guest.email,
            guest_phone=guest_phone or (guest.phone or ""),
            special_requests=special_requests,
            nightly_rate=breakdown.nightly_rate,
            nights=breakdown.nights,
            base_price=breakdown.base_price,
            cleaning_fee=breakdown.cleaning_fee,
            service_fee=breakdown.service_fee,
            taxes=breakdown.taxes,
            total_price=breakdown.total,
            currency=breakdown.currency,
            expires_at=timezone.now() + timedelta(minutes=settings.RESERVATION_HOLD_MINUTES),
        )
        if lock is not None:
            lock.delete()

    logger.info(
        f"Reservation {reservation.reservation_code} created for loft {loft.pk}, "
        f"{dates}, total {reservation.total_price} {reservation.currency}"
    )
    return reservation


def availability_calendar(loft: Loft, start: date, end: date) -> List[dict]:
    """
    One entry per date in [start, end] with its availability and nightly rate.

    Raises AvailabilityLookupError when blocked dates cannot be read.
    """

    if end < start:
        raise ValueError("Calendar end date cannot be before its start date.")
    dates = DateRange(start, end + timedelta(days=1))
    if len(dates) > MAX_CALENDAR_DAYS:
        raise ValueError(f"Calendar range cannot exceed {MAX_CALENDAR_DAYS} days.")

    free_nights = availability_checker().calendar(loft.pk, dates)
    rates = nightly_rates(loft, dates)
    return [
        {
            "date": night,
            "available": free_nights[night] and loft.is_open,
            "nightly_rate": rates[night],
        }
        for night in dates.each_night()
    ]
