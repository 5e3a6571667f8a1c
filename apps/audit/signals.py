"""Model signal handlers that append to the audit log."""

from django.db.models.signals import post_delete, post_save, pre_save
from django.dispatch import receiver

from apps.bookings.models import Reservation
from apps.lofts.models import BlockedPeriod, Loft, PricingRule
from apps.users.models import PartnerProfile

from .models import AuditLogEntry
from .services import record_change, snapshot


@receiver(pre_save, sender=Loft)
@receiver(pre_save, sender=PricingRule)
@receiver(pre_save, sender=BlockedPeriod)
@receiver(pre_save, sender=Reservation)
@receiver(pre_save, sender=PartnerProfile)
def store_previous_state(sender, instance, raw=False, **kwargs):
    """Keep the stored values of a record about to be updated."""
    instance._audit_previous_values = None
    if raw or instance.pk is None:
        return
    previous = sender.objects.filter(pk=instance.pk).first()
    if previous is not None:
        instance._audit_previous_values = snapshot(previous)


@receiver(post_save, sender=Loft)
@receiver(post_save, sender=PricingRule)
@receiver(post_save, sender=BlockedPeriod)
@receiver(post_save, sender=Reservation)
@receiver(post_save, sender=PartnerProfile)
def log_save(sender, instance, created, raw=False, **kwargs):
    if raw:
        return
    previous = getattr(instance, "_audit_previous_values", None)
    if created or previous is None:
        record_change(instance, AuditLogEntry.Action.INSERT, new_values=snapshot(instance))
    else:
        record_change(instance, AuditLogEntry.Action.UPDATE, old_values=previous, new_values=snapshot(instance))
    if hasattr(instance, "_audit_previous_values"):
        delattr(instance, "_audit_previous_values")


@receiver(post_delete, sender=Loft)
@receiver(post_delete, sender=PricingRule)
@receiver(post_delete, sender=BlockedPeriod)
@receiver(post_delete, sender=Reservation)
@receiver(post_delete, sender=PartnerProfile)
def log_delete(sender, instance, **kwargs):
    record_change(instance, AuditLogEntry.Action.DELETE, old_values=snapshot(instance))
