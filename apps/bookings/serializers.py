"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from shared.domain.value_objects import DateRange
from apps.lofts.models import Loft

from .models import Reservation, ReservationLock
from .services import BookingConflictError, create_reservation


class StayDatesMixin:
    """Turns check_in/check_out into a DateRange under attrs["dates"]."""

    def validate(self, attrs):  # type: ignore
        try:
            attrs["dates"] = DateRange(attrs["check_in"], attrs["check_out"])
        except ValueError as exc:
            raise serializers.ValidationError(str(exc)) from exc
        loft: Loft = attrs["loft"]
        if not loft.is_open:
            raise serializers.ValidationError("Loft is currently not available for booking")
        return attrs


class ReservationCreateSerializer(StayDatesMixin, serializers.ModelSerializer):
    """Reservation of a loft by the requesting guest."""

    guests_count = serializers.IntegerField(min_value=1, default=1)
    lock_id = serializers.IntegerField(required=False, allow_null=True, write_only=True)

    class Meta:
        model = Reservation
        fields = [
            "loft",
            "check_in",
            "check_out",
            "guests_count",
            "lock_id",
            "guest_name",
            "guest_email",
            "guest_phone",
            "special_requests",
        ]
        extra_kwargs = {
            "guest_name": {"required": False, "allow_blank": True},
            "guest_email": {"required": False, "allow_blank": True},
            "guest_phone": {"required": False, "allow_blank": True},
            "special_requests": {"required": False, "allow_blank": True},
        }

    def create(self, validated_data):  # type: ignore
        request = self.context["request"]
        try:
            return create_reservation(
                validated_data["loft"],
                request.user,
                validated_data["dates"],
                guests_count=validated_data.get("guests_count", 1),
                lock_id=validated_data.get("lock_id"),
                guest_name=validated_data.get("guest_name", ""),
                guest_email=validated_data.get("guest_email", ""),
                guest_phone=validated_data.get("guest_phone", ""),
                special_requests=validated_data.get("special_requests", ""),
            )
        except BookingConflictError as exc:
            raise serializers.ValidationError({"non_field_errors": [str(exc)]})


class ReservationSerializer(serializers.ModelSerializer):
    """Reservation with its pricing snapshot."""

    guest_id = serializers.ReadOnlyField(source="guest.id")
    loft_id = serializers.ReadOnlyField(source="loft.id")
    loft_name = serializers.ReadOnlyField(source="loft.name")
    nightly_rate = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    base_price = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, read_only=True)
    cleaning_fee = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    service_fee = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    taxes = serializers.DecimalField(max_digits=10, decimal_places=2, coerce_to_string=False, read_only=True)
    total_price = serializers.DecimalField(max_digits=12, decimal_places=2, coerce_to_string=False, read_only=True)

    class Meta:
        model = Reservation
        fields = [
            "id",
            "reservation_code",
            "guest_id",
            "loft_id",
            "loft_name",
            "check_in",
            "check_out",
            "guests_count",
            "guest_name",
            "guest_email",
            "guest_phone",
            "special_requests",
            "status",
            "payment_status",
            "nightly_rate",
            "nights",
            "base_price",
            "cleaning_fee",
            "service_fee",
            "taxes",
            "total_price",
            "currency",
            "expires_at",
            "confirmed_at",
            "completed_at",
            "cancelled_at",
            "cancellation_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ReservationCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)


class ReservationLockSerializer(StayDatesMixin, serializers.ModelSerializer):
    user_id = serializers.ReadOnlyField(source="user.id")

    class Meta:
        model = ReservationLock
        fields = ["id", "loft", "user_id", "check_in", "check_out", "expires_at", "created_at"]
        read_only_fields = ["id", "user_id", "expires_at", "created_at"]
