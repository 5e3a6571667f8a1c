"""Permission classes shared by the loft platform API."""

from __future__ import annotations

from rest_framework import permissions  # type: ignore


def is_platform_staff(user) -> bool:
    if not user or not user.is_authenticated:
        return False
    if getattr(user, "is_staff", False) or getattr(user, "is_superuser", False):
        return True
    return hasattr(user, "is_platform_staff") and user.is_platform_staff()


class IsPlatformStaff(permissions.BasePermission):
    """Admins, managers and executives (and Django staff)."""

    def has_permission(self, request, view) -> bool:  # type: ignore
        return is_platform_staff(request.user)


class IsVerifiedPartnerOrStaff(permissions.BasePermission):
    """
    Writes require a verified partner or platform staff.

    Reads are left to the view's own permissions.
    """

    message = "Only verified partners can manage lofts."

    def has_permission(self, request, view) -> bool:  # type: ignore
        if request.method in permissions.SAFE_METHODS:
            return True
        user = request.user
        if not user.is_authenticated:
            return False
        if is_platform_staff(user):
            return True
        return hasattr(user, "is_verified_partner") and user.is_verified_partner()
