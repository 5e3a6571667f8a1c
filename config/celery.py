import os

from celery import Celery
from celery.schedules import crontab  # type: ignore

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings.dev")

app = Celery("loft_rental")

app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()


# ============================================================================
# CELERY BEAT SCHEDULE (Periodic Tasks)
# ============================================================================

app.conf.beat_schedule = {
    # Cancel reservations whose payment hold ran out - every minute
    "expire-pending-reservations": {
        "task": "bookings.expire_pending_reservations",
        "schedule": 60.0,
        "options": {"expires": 50},
    },
    # Drop expired checkout locks - every 5 minutes
    "purge-expired-reservation-locks": {
        "task": "bookings.purge_expired_reservation_locks",
        "schedule": 300.0,
        "options": {"expires": 250},
    },
    # Complete reservations after check-out - hourly
    "complete-finished-reservations": {
        "task": "bookings.complete_finished_reservations",
        "schedule": crontab(minute=15),
    },
}
