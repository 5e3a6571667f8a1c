"""API views for the booking domain."""

from __future__ import annotations

import logging

from django.db.models import Q  # type: ignore
from rest_framework import mixins, permissions, status, viewsets  # type: ignore
from rest_framework.decorators import action  # type: ignore
from rest_framework.response import Response  # type: ignore

from apps.lofts.permissions import manages_loft
from apps.users.permissions import is_platform_staff

from .models import Reservation, ReservationLock
from .serializers import (
    ReservationCancelSerializer,
    ReservationCreateSerializer,
    ReservationLockSerializer,
    ReservationSerializer,
)
from .services import BookingConflictError, lock_dates, release_lock

logger = logging.getLogger(__name__)


class IsReservationStakeholder(permissions.BasePermission):
    """Guests, the loft's partner and platform staff can access a reservation."""

    def has_object_permission(self, request, view, obj: Reservation):  # type: ignore
        user = request.user
        if not user.is_authenticated:
            return False
        if obj.guest_id == user.id:
            return True
        return manages_loft(user, obj.loft)


class ReservationViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet,
):
    """Reservations are created by guests and move through status transitions; never deleted."""

    queryset = Reservation.objects.select_related("loft", "loft__owner", "guest").all()
    permission_classes = [permissions.IsAuthenticated, IsReservationStakeholder]
    filterset_fields = ["status", "payment_status", "loft"]

    def get_serializer_class(self):  # type: ignore
        if self.action == "create":
            return ReservationCreateSerializer
        return ReservationSerializer

    def get_queryset(self):  # type: ignore
        user = self.request.user
        qs = super().get_queryset()
        if is_platform_staff(user):
            return qs
        profile = getattr(user, "partner_profile", None)
        if profile is not None:
            return qs.filter(Q(loft__owner=profile) | Q(guest=user))
        return qs.filter(guest=user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        try:
            reservation = serializer.save()
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        read_serializer = ReservationSerializer(reservation, context=self.get_serializer_context())
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def _transition(self, request, reservation: Reservation, name: str, *args) -> Response:
        try:
            getattr(reservation, name)(*args)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        logger.info(
            f"Reservation {reservation.reservation_code} -> {reservation.status} "
            f"({name}) by user {request.user.id}"
        )
        return Response(ReservationSerializer(reservation, context=self.get_serializer_context()).data)

    @action(detail=True, methods=["post"])
    def confirm_payment(self, request, pk=None):  # type: ignore
        reservation: Reservation = self.get_object()
        if not manages_loft(request.user, reservation.loft):
            return Response(
                {"detail": "Only the loft's partner or staff can confirm a payment."},
                status=status.HTTP_403_FORBIDDEN,
            )
        if reservation.is_hold_expired():
            return Response(
                {"detail": "The payment hold of this reservation has expired."},
                status=status.HTTP_400_BAD_REQUEST,
            )
        return self._transition(request, reservation, "confirm_payment")

    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):  # type: ignore
        reservation: Reservation = self.get_object()
        payload = ReservationCancelSerializer(data=request.data)
        payload.is_valid(raise_exception=True)
        return self._transition(request, reservation, "cancel", payload.validated_data.get("reason", ""))

    @action(detail=True, methods=["post"])
    def complete(self, request, pk=None):  # type: ignore
        reservation: Reservation = self.get_object()
        if not manages_loft(request.user, reservation.loft):
            return Response(
                {"detail": "Only the loft's partner or staff can complete a reservation."},
                status=status.HTTP_403_FORBIDDEN,
            )
        return self._transition(request, reservation, "complete")


class ReservationLockViewSet(
    mixins.CreateModelMixin,
    mixins.ListModelMixin,
    mixins.DestroyModelMixin,
    viewsets.GenericViewSet,
):
    """Checkout holds of the requesting user."""

    serializer_class = ReservationLockSerializer
    permission_classes = [permissions.IsAuthenticated]
    queryset = ReservationLock.objects.select_related("loft").all()

    def get_queryset(self):  # type: ignore
        return super().get_queryset().filter(user=self.request.user)

    def create(self, request, *args, **kwargs):  # type: ignore
        serializer = self.get_serializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        try:
            lock = lock_dates(data["loft"], request.user, data["dates"])
        except BookingConflictError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_409_CONFLICT)
        except ValueError as exc:
            return Response({"detail": str(exc)}, status=status.HTTP_400_BAD_REQUEST)
        read_serializer = self.get_serializer(lock)
        headers = self.get_success_headers(read_serializer.data)
        return Response(read_serializer.data, status=status.HTTP_201_CREATED, headers=headers)

    def perform_destroy(self, instance):  # type: ignore
        release_lock(instance)
