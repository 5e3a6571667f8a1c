"""Serializers for partner onboarding."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import PartnerProfile


class PartnerProfileSerializer(serializers.ModelSerializer):
    user_id = serializers.ReadOnlyField(source="user.id")
    email = serializers.ReadOnlyField(source="user.email")
    verification_status_display = serializers.ReadOnlyField(source="get_verification_status_display")

    class Meta:
        model = PartnerProfile
        fields = [
            "id",
            "user_id",
            "email",
            "business_name",
            "business_type",
            "tax_id",
            "phone",
            "address",
            "verification_status",
            "verification_status_display",
            "verified_at",
            "rejection_reason",
            "created_at",
            "updated_at",
        ]
        read_only_fields = [
            "verification_status",
            "verified_at",
            "rejection_reason",
            "created_at",
            "updated_at",
        ]

    def validate(self, attrs):  # type: ignore
        request = self.context.get("request")
        if self.instance is None and request is not None:
            if PartnerProfile.objects.filter(user=request.user).exists():
                raise serializers.ValidationError("A partner profile already exists for this user.")
        return attrs


class PartnerDecisionSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)
