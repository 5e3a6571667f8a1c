"""User domain models for the loft platform.

The platform serves guests, property partners (owners) and internal staff
(admin, manager, executive). Partners complete a business profile which
staff verify before the partner may list lofts.
"""

from __future__ import annotations

from typing import Any

from django.conf import settings  # type: ignore
from django.contrib.auth.models import AbstractUser, BaseUserManager  # type: ignore
from django.core.validators import RegexValidator  # type: ignore
from django.db import models  # type: ignore
from django.utils import timezone  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore


PHONE_VALIDATOR = RegexValidator(
    regex=r"^\+?\d{7,15}$",
    message=_("Invalid phone number. Use the international format without spaces."),
)


class CustomUserManager(BaseUserManager):
    """User manager that uses the email address as the login."""

    use_in_migrations = True

    def _create_user(self, email: str, password: str | None, **extra_fields: Any):
        if not email:
            raise ValueError("Email is required to create a user.")
        email = self.normalize_email(email)

        phone = extra_fields.get("phone")
        if phone:
            extra_fields["phone"] = self.normalize_phone(phone)

        user = self.model(email=email, **extra_fields)
        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()
        user.save(using=self._db)
        return user

    def create_user(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("role", CustomUser.RoleChoices.GUEST)
        return self._create_user(email, password, **extra_fields)

    def create_superuser(self, email: str, password: str | None = None, **extra_fields: Any):
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)
        extra_fields.setdefault("role", CustomUser.RoleChoices.ADMIN)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self._create_user(email, password, **extra_fields)

    @staticmethod
    def normalize_phone(phone: str) -> str:
        """Strip spaces and dashes so phones are stored uniformly."""
        return phone.replace(" ", "").replace("-", "")


class CustomUser(AbstractUser):
    """Platform user with a role."""

    class RoleChoices(models.TextChoices):
        GUEST = "guest", _("Guest")
        PARTNER = "partner", _("Partner")
        ADMIN = "admin", _("Admin")
        MANAGER = "manager", _("Manager")
        EXECUTIVE = "executive", _("Executive")

    STAFF_ROLES = (RoleChoices.ADMIN, RoleChoices.MANAGER, RoleChoices.EXECUTIVE)

    username = models.CharField(
        _("Display name"),
        max_length=150,
        blank=True,
        help_text=_("Optional, shown in interfaces and notifications."),
    )
    email = models.EmailField(_("Email"), unique=True)
    phone = models.CharField(
        _("Phone"),
        max_length=20,
        unique=True,
        null=True,
        blank=True,
        validators=[PHONE_VALIDATOR],
    )
    role = models.CharField(
        _("Role"),
        max_length=20,
        choices=RoleChoices.choices,
        default=RoleChoices.GUEST,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = CustomUserManager()

    USERNAME_FIELD = "email"
    REQUIRED_FIELDS = ["username"]

    class Meta:
        verbose_name = _("User")
        verbose_name_plural = _("Users")
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"{self.email} ({self.get_role_display()})"

    def is_partner(self) -> bool:
        return self.role == self.RoleChoices.PARTNER

    def is_platform_staff(self) -> bool:
        return self.role in self.STAFF_ROLES or self.is_staff or self.is_superuser

    def is_verified_partner(self) -> bool:
        profile = getattr(self, "partner_profile", None)
        return bool(self.is_partner() and profile and profile.is_verified)


class PartnerProfile(models.Model):
    """Business profile of a property partner (owner)."""

    class VerificationStatus(models.TextChoices):
        PENDING = "pending", _("Pending")
        VERIFIED = "verified", _("Verified")
        REJECTED = "rejected", _("Rejected")
        SUSPENDED = "suspended", _("Suspended")

    class BusinessType(models.TextChoices):
        INDIVIDUAL = "individual", _("Individual")
        COMPANY = "company", _("Company")

    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="partner_profile",
    )
    business_name = models.CharField(max_length=255)
    business_type = models.CharField(
        max_length=20,
        choices=BusinessType.choices,
        default=BusinessType.INDIVIDUAL,
    )
    tax_id = models.CharField(max_length=50, blank=True)
    phone = models.CharField(max_length=20, blank=True, validators=[PHONE_VALIDATOR])
    address = models.CharField(max_length=255, blank=True)
    verification_status = models.CharField(
        max_length=20,
        choices=VerificationStatus.choices,
        default=VerificationStatus.PENDING,
    )
    verified_at = models.DateTimeField(null=True, blank=True)
    verified_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="verified_partners",
    )
    rejection_reason = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = _("Partner profile")
        verbose_name_plural = _("Partner profiles")
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["verification_status"], name="partner_verification_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.business_name} ({self.get_verification_status_display()})"

    @property
    def is_verified(self) -> bool:
        return self.verification_status == self.VerificationStatus.VERIFIED

    def verify(self, verified_by) -> None:
        if self.verification_status == self.VerificationStatus.VERIFIED:
            raise ValueError("Partner is already verified.")
        self.verification_status = self.VerificationStatus.VERIFIED
        self.verified_at = timezone.now()
        self.verified_by = verified_by
        self.rejection_reason = ""
        self.save(update_fields=["verification_status", "verified_at", "verified_by", "rejection_reason", "updated_at"])

    def reject(self, verified_by, reason: str) -> None:
        if self.verification_status != self.VerificationStatus.PENDING:
            raise ValueError(
                f"Cannot reject a partner with status {self.verification_status}."
            )
        if not reason:
            raise ValueError("A rejection reason is required.")
        self.verification_status = self.VerificationStatus.REJECTED
        self.verified_by = verified_by
        self.rejection_reason = reason
        self.save(update_fields=["verification_status", "verified_by", "rejection_reason", "updated_at"])

    def suspend(self, reason: str = "") -> None:
        if self.verification_status != self.VerificationStatus.VERIFIED:
            raise ValueError("Only verified partners can be suspended.")
        self.verification_status = self.VerificationStatus.SUSPENDED
        self.rejection_reason = reason
        self.save(update_fields=["verification_status", "rejection_reason", "updated_at"])


User = CustomUser
