"""Writing audit log entries."""

from __future__ import annotations

import json
from decimal import Decimal
from typing import Any, Dict, List, Optional

import structlog
from django.core.serializers.json import DjangoJSONEncoder  # type: ignore
from django.db import models  # type: ignore

from .context import get_current_user
from .models import AuditLogEntry

logger = structlog.get_logger(__name__)

# Touched on every save; a change of these alone is not worth an entry.
IGNORED_FIELDS = frozenset({"updated_at"})


def _field_value(field, instance):
    value = field.value_from_object(instance)
    # Unsaved instances may hold 0.19 where the database returns 0.1900.
    if isinstance(field, models.DecimalField) and value is not None:
        value = field.to_python(value).quantize(Decimal(1).scaleb(-field.decimal_places))
    return value


def snapshot(instance) -> Dict[str, Any]:
    """JSON-safe values of every concrete field, keyed by attribute name."""
    values = {field.attname: _field_value(field, instance) for field in instance._meta.concrete_fields}
    return json.loads(json.dumps(values, cls=DjangoJSONEncoder))


def changed_fields(old: Optional[Dict[str, Any]], new: Optional[Dict[str, Any]]) -> List[str]:
    old = old or {}
    new = new or {}
    return sorted(name for name in set(old) | set(new) if old.get(name) != new.get(name))


def record_change(
    instance,
    action: str,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
) -> Optional[AuditLogEntry]:
    """
    Append an entry for a change of `instance`.

    Updates that only touch IGNORED_FIELDS are skipped and return None.
    """
    fields = changed_fields(old_values, new_values)
    if action == AuditLogEntry.Action.UPDATE and not set(fields) - IGNORED_FIELDS:
        return None

    user = get_current_user()
    entry = AuditLogEntry.objects.create(
        table_name=instance._meta.db_table,
        record_id=str(instance.pk),
        action=action,
        old_values=old_values,
        new_values=new_values,
        changed_fields=fields,
        user=user,
        user_email=getattr(user, "email", "") or "",
    )
    logger.debug(
        "audit.recorded",
        table=entry.table_name,
        record_id=entry.record_id,
        action=action,
        fields=fields,
    )
    return entry
