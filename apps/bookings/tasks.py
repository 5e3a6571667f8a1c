"""Celery tasks for the booking domain."""

from __future__ import annotations

import logging

from celery import shared_task  # type: ignore
from django.db import transaction  # type: ignore
from django.utils import timezone  # type: ignore

from .models import Reservation
from .services import purge_expired_locks

logger = logging.getLogger(__name__)


@shared_task(name="bookings.expire_pending_reservations")
def expire_pending_reservations() -> dict[str, int]:
    """
    Cancel pending reservations whose payment hold has run out.

    Returns:
        dict: {"expired": number of cancelled reservations}
    """
    now = timezone.now()
    expired_count = 0

    expired_reservations = Reservation.objects.filter(
        status=Reservation.Status.PENDING,
        expires_at__lte=now,
    )

    for reservation in expired_reservations:
        try:
            with transaction.atomic():
                reservation.expire()
            expired_count += 1
            logger.info(f"Reservation {reservation.reservation_code} expired automatically")
        except Exception as e:
            logger.error(f"Error expiring reservation {reservation.id}: {e}", exc_info=True)

    if expired_count > 0:
        logger.info(f"Expired {expired_count} pending reservations")

    return {"expired": expired_count}


@shared_task(name="bookings.complete_finished_reservations")
def complete_finished_reservations() -> dict[str, int]:
    """
    Complete confirmed reservations once the check-out date has passed.

    Returns:
        dict: {"completed": number of completed reservations}
    """
    today = timezone.localdate()
    completed_count = 0

    finished_reservations = Reservation.objects.filter(
        status=Reservation.Status.CONFIRMED,
        check_out__lte=today,
    )

    for reservation in finished_reservations:
        try:
            reservation.complete()
            completed_count += 1
            logger.info(f"Reservation {reservation.reservation_code} completed")
        except Exception as e:
            logger.error(f"Error completing reservation {reservation.id}: {e}", exc_info=True)

    if completed_count > 0:
        logger.info(f"Completed {completed_count} reservations")

    return {"completed": completed_count}


@shared_task(name="bookings.purge_expired_reservation_locks")
def purge_expired_reservation_locks() -> dict[str, int]:
    """Delete reservation locks that have expired."""
    purged = purge_expired_locks()
    if purged:
        logger.info(f"Purged {purged} expired reservation locks")
    return {"purged": purged}
