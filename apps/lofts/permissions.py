"""Permissions for managing lofts and their calendars."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore

from apps.users.permissions import IsVerifiedPartnerOrStaff, is_platform_staff

from .models import Loft


def manages_loft(user, loft: Loft) -> bool:
    if is_platform_staff(user):
        return True
    profile = getattr(user, "partner_profile", None)
    return bool(profile and loft.owner_id == profile.id)


class IsLoftManagerOrReadOnly(IsVerifiedPartnerOrStaff):
    """Reads are public; writes belong to the loft's partner and to staff."""

    def has_object_permission(self, request, view, obj: Loft):  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        return manages_loft(request.user, obj)
