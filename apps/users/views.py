"""Partner onboarding and verification API."""

from __future__ import annotations

import logging

from django.db import transaction  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from .models import CustomUser, PartnerProfile
from .permissions import IsPlatformStaff, is_platform_staff
from .serializers import PartnerDecisionSerializer, PartnerProfileSerializer

logger = logging.getLogger(__name__)


class PartnerProfileViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    mixins.UpdateModelMixin,
    viewsets.GenericViewSet,
):
    """Partners register and edit their profile; staff review them."""

    queryset = PartnerProfile.objects.select_related("user", "verified_by").all()
    serializer_class = PartnerProfileSerializer
    permission_classes = [permissions.IsAuthenticated]
    filterset_fields = ["verification_status", "business_type"]

    def get_queryset(self):  # type: ignore
        qs = super().get_queryset()
        if is_platform_staff(self.request.user):
            return qs
        return qs.filter(user=self.request.user)

    def perform_create(self, serializer):  # type: ignore
        user = self.request.user
        with transaction.atomic():
            profile = serializer.save(user=user)
            if not user.is_platform_staff():
                user.role = CustomUser.RoleChoices.PARTNER
                user.save(update_fields=["role"])
        logger.info(f"Partner profile {profile.id} registered by user {user.id}")

    def _decide(self, request, decision: str) -> Response:
        profile: PartnerProfile = self.get_object()  # type: ignore
        payload = PartnerDecisionSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        reason = payload.validated_data.get("reason", "")
        try:
            if decision == "verify":
                profile.verify(request.user)
            elif decision == "reject":
                profile.reject(request.user, reason)
            else:
                profile.suspend(reason)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(f"Partner profile {profile.id} {decision} by user {request.user.id}")
        return Response(self.get_serializer(profile).data)

    @action(detail=True, methods=["post"], permission_classes=[IsPlatformStaff])
    def verify(self, request, pk=None):  # type: ignore
        return self._decide(request, "verify")

    @action(detail=True, methods=["post"], permission_classes=[IsPlatformStaff])
    def reject(self, request, pk=None):  # type: ignore
        return self._decide(request, "reject")

    @action(detail=True, methods=["post"], permission_classes=[IsPlatformStaff])
    def suspend(self, request, pk=None):  # type: ignore
        return self._decide(request, "suspend")
