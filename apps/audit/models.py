"""Audit log models."""

from __future__ import annotations

from django.conf import settings  # type: ignore
from django.core.serializers.json import DjangoJSONEncoder  # type: ignore
from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


class AuditLogImmutableError(Exception):
    """Raised on any attempt to change or remove an audit log entry."""


class AuditLogQuerySet(models.QuerySet):
    def update(self, **kwargs):  # type: ignore
        raise AuditLogImmutableError("Audit log entries cannot be updated.")

    def delete(self):  # type: ignore
        raise AuditLogImmutableError("Audit log entries cannot be deleted.")


class AuditLogEntry(models.Model):
    """One insert, update or delete of an audited record."""

    class Action(models.TextChoices):
        INSERT = "insert", _("Insert")
        UPDATE = "update", _("Update")
        DELETE = "delete", _("Delete")

    table_name = models.CharField(max_length=100)
    record_id = models.CharField(max_length=64)
    action = models.CharField(max_length=10, choices=Action.choices)
    old_values = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    new_values = models.JSONField(null=True, blank=True, encoder=DjangoJSONEncoder)
    changed_fields = models.JSONField(default=list, blank=True)
    # Users may be deleted; their entries keep the id and email.
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.DO_NOTHING,
        db_constraint=False,
        null=True,
        blank=True,
        related_name="+",
    )
    user_email = models.CharField(max_length=254, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    objects = AuditLogQuerySet.as_manager()

    class Meta:
        verbose_name = _("Audit log entry")
        verbose_name_plural = _("Audit log entries")
        ordering = ["-timestamp", "-id"]
        indexes = [
            models.Index(fields=["table_name", "record_id"], name="audit_record_idx"),
            models.Index(fields=["timestamp"], name="audit_timestamp_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.action} {self.table_name}#{self.record_id} at {self.timestamp}"

    def save(self, *args, **kwargs):  # type: ignore
        if not self._state.adding:
            raise AuditLogImmutableError("Audit log entries cannot be modified.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):  # type: ignore
        raise AuditLogImmutableError("Audit log entries cannot be deleted.")
