"""API tests for reservations, reservation locks and their periodic tasks."""

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal

from django.test import override_settings
from django.urls import reverse
from django.utils import timezone
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.models import Reservation, ReservationLock
from apps.bookings.tasks import (
    complete_finished_reservations,
    expire_pending_reservations,
    purge_expired_reservation_locks,
)
from apps.lofts.models import BlockedPeriod, Loft
from apps.users.models import CustomUser, PartnerProfile, User


class ReservationAPITests(APITestCase):
    def setUp(self) -> None:
        self.owner = User.objects.create_user(
            email="owner@example.com",
            password="StrongPass123",
            role=CustomUser.RoleChoices.PARTNER,
        )
        PartnerProfile.objects.create(
            user=self.owner,
            business_name="Owner Lofts",
            verification_status=PartnerProfile.VerificationStatus.VERIFIED,
        )
        self.guest = User.objects.create_user(
            email="guest@example.com",
            password="StrongPass123",
            first_name="Ada",
            last_name="Guest",
        )
        self.other_guest = User.objects.create_user(email="other@example.com", password="StrongPass123")
        self.loft = Loft.objects.create(
            owner=self.owner.partner_profile,
            name="River Loft",
            address="Flussufer 4",
            price_per_night=Decimal("100.00"),
            cleaning_fee=Decimal("20.00"),
            tax_rate=Decimal("0.10"),
            max_guests=3,
        )
        self.check_in = timezone.localdate() + timedelta(days=10)
        self.check_out = self.check_in + timedelta(days=3)

    def _payload(self, **overrides) -> dict:
        payload = {
            "loft": self.loft.id,
            "check_in": self.check_in.isoformat(),
            "check_out": self.check_out.isoformat(),
            "guests_count": 2,
        }
        payload.update(overrides)
        return payload

    def _reserve(self, user=None, **overrides):
        self.client.force_authenticate(user or self.guest)
        return self.client.post(reverse("reservation-list"), self._payload(**overrides), format="json")

    def test_create_freezes_pricing_snapshot(self) -> None:
        response = self._reserve()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "pending")
        self.assertEqual(response.data["payment_status"], "pending")
        self.assertEqual(response.data["nights"], 3)
        self.assertEqual(response.data["base_price"], Decimal("300.00"))
        self.assertEqual(response.data["service_fee"], Decimal("32.00"))
        self.assertEqual(response.data["taxes"], Decimal("35.20"))
        self.assertEqual(response.data["total_price"], Decimal("387.20"))
        self.assertEqual(response.data["guest_name"], "Ada Guest")
        self.assertEqual(response.data["guest_email"], "guest@example.com")
        self.assertEqual(len(response.data["reservation_code"]), 8)
        self.assertIsNotNone(response.data["expires_at"])

        # later price changes do not touch the snapshot
        self.loft.price_per_night = Decimal("500.00")
        self.loft.save()
        reservation = Reservation.objects.get(pk=response.data["id"])
        self.assertEqual(reservation.total_price, Decimal("387.20"))

    def test_overlapping_reservation_is_rejected(self) -> None:
        self.assertEqual(self._reserve().status_code, status.HTTP_201_CREATED)

        response = self._reserve(
            self.other_guest,
            check_in=(self.check_in + timedelta(days=2)).isoformat(),
            check_out=(self.check_out + timedelta(days=2)).isoformat(),
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("non_field_errors", response.data)

        # back-to-back stays are fine
        response = self._reserve(
            self.other_guest,
            check_in=self.check_out.isoformat(),
            check_out=(self.check_out + timedelta(days=2)).isoformat(),
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

    def test_blocked_period_prevents_reservation(self) -> None:
        BlockedPeriod.objects.create(loft=self.loft, start_date=self.check_in, end_date=self.check_out)
        response = self._reserve()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("non_field_errors", response.data)

    def test_stay_limits_and_guest_count(self) -> None:
        response = self._reserve(guests_count=4)
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("at most 3 guest(s)", response.data["detail"])

        self.loft.minimum_nights = 5
        self.loft.save()
        response = self._reserve()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Minimum stay is 5 night(s)")

    def test_past_and_invalid_dates_are_rejected(self) -> None:
        yesterday = timezone.localdate() - timedelta(days=1)
        response = self._reserve(
            check_in=yesterday.isoformat(),
            check_out=(yesterday + timedelta(days=2)).isoformat(),
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Check-in date cannot be in the past.")

        response = self._reserve(check_out=self.check_in.isoformat())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    @override_settings(LOFTS_MAX_STAY_NIGHTS=5)
    def test_stay_length_is_capped(self) -> None:
        response = self._reserve(check_out=(self.check_in + timedelta(days=6)).isoformat())
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Stay cannot exceed 5 nights.")
        self.assertFalse(Reservation.objects.exists())

        response = self._reserve(check_out=(self.check_in + timedelta(days=5)).isoformat())
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["nights"], 5)

    def test_closed_loft_cannot_be_reserved(self) -> None:
        self.loft.set_status(Loft.Status.MAINTENANCE)
        response = self._reserve()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_payment_then_cancellation_refunds(self) -> None:
        reservation_id = self._reserve().data["id"]

        self.client.force_authenticate(self.owner)
        response = self.client.post(reverse("reservation-confirm-payment", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "confirmed")
        self.assertEqual(response.data["payment_status"], "paid")
        self.assertIsNotNone(response.data["confirmed_at"])

        self.client.force_authenticate(self.guest)
        response = self.client.post(
            reverse("reservation-cancel", args=[reservation_id]),
            {"reason": "Plans changed"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "cancelled")
        self.assertEqual(response.data["payment_status"], "refunded")
        self.assertEqual(response.data["cancellation_reason"], "Plans changed")

        self.client.force_authenticate(self.owner)
        response = self.client.post(reverse("reservation-confirm-payment", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        # cancelled reservations free their nights
        self.assertEqual(self._reserve(self.other_guest).status_code, status.HTTP_201_CREATED)

    def test_expired_hold_cannot_be_paid(self) -> None:
        reservation_id = self._reserve().data["id"]
        Reservation.objects.filter(pk=reservation_id).update(expires_at=timezone.now() - timedelta(minutes=1))

        self.client.force_authenticate(self.owner)
        response = self.client.post(reverse("reservation-confirm-payment", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_only_loft_partner_completes(self) -> None:
        reservation_id = self._reserve().data["id"]
        self.client.force_authenticate(self.owner)
        self.client.post(reverse("reservation-confirm-payment", args=[reservation_id]))

        self.client.force_authenticate(self.guest)
        response = self.client.post(reverse("reservation-complete", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

        self.client.force_authenticate(self.owner)
        response = self.client.post(reverse("reservation-complete", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)
        self.assertEqual(response.data["status"], "completed")

    def test_guest_cannot_confirm_own_payment(self) -> None:
        reservation_id = self._reserve().data["id"]

        response = self.client.post(reverse("reservation-confirm-payment", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        reservation = Reservation.objects.get(pk=reservation_id)
        self.assertEqual(reservation.status, Reservation.Status.PENDING)
        self.assertEqual(reservation.payment_status, Reservation.PaymentStatus.PENDING)

    def test_reservations_are_visible_to_stakeholders_only(self) -> None:
        reservation_id = self._reserve().data["id"]
        detail_url = reverse("reservation-detail", args=[reservation_id])

        self.client.force_authenticate(self.other_guest)
        self.assertEqual(self.client.get(detail_url).status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.client.get(reverse("reservation-list")).data["count"], 0)

        self.client.force_authenticate(self.owner)
        self.assertEqual(self.client.get(detail_url).status_code, status.HTTP_200_OK)

        self.client.force_authenticate(user=None)
        self.assertEqual(self.client.get(detail_url).status_code, status.HTTP_403_FORBIDDEN)

    def test_reservations_cannot_be_deleted(self) -> None:
        reservation_id = self._reserve().data["id"]
        response = self.client.delete(reverse("reservation-detail", args=[reservation_id]))
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)


class ReservationLockAPITests(APITestCase):
    def setUp(self) -> None:
        self.guest = User.objects.create_user(email="guest@example.com", password="StrongPass123")
        self.other_guest = User.objects.create_user(email="other@example.com", password="StrongPass123")
        self.loft = Loft.objects.create(
            name="Attic Loft",
            address="Dachgasse 7",
            price_per_night=Decimal("80.00"),
        )
        self.check_in = timezone.localdate() + timedelta(days=5)
        self.dates = {
            "check_in": self.check_in.isoformat(),
            "check_out": (self.check_in + timedelta(days=2)).isoformat(),
        }

    def _lock(self, user):
        self.client.force_authenticate(user)
        return self.client.post(reverse("reservation-lock-list"), {"loft": self.loft.id, **self.dates}, format="json")

    def test_lock_holds_dates_against_others(self) -> None:
        response = self._lock(self.guest)
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["user_id"], self.guest.id)

        response = self._lock(self.other_guest)
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)

        response = self.client.post(reverse("reservation-list"), {"loft": self.loft.id, **self.dates}, format="json")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("non_field_errors", response.data)

    def test_own_lock_is_consumed_by_reservation(self) -> None:
        lock_id = self._lock(self.guest).data["id"]

        response = self.client.post(
            reverse("reservation-list"),
            {"loft": self.loft.id, "lock_id": lock_id, **self.dates},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertFalse(ReservationLock.objects.filter(pk=lock_id).exists())

    def test_someone_elses_lock_id_is_rejected(self) -> None:
        lock_id = self._lock(self.guest).data["id"]

        self.client.force_authenticate(self.other_guest)
        response = self.client.post(
            reverse("reservation-list"),
            {"loft": self.loft.id, "lock_id": lock_id, **self.dates},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data["detail"], "Reservation lock is missing or expired.")

    def test_expired_lock_does_not_block(self) -> None:
        lock_id = self._lock(self.guest).data["id"]
        ReservationLock.objects.filter(pk=lock_id).update(expires_at=timezone.now() - timedelta(seconds=1))

        self.assertEqual(self._lock(self.other_guest).status_code, status.HTTP_201_CREATED)

    def test_release_lock(self) -> None:
        lock_id = self._lock(self.guest).data["id"]

        response = self.client.get(reverse("reservation-lock-list"))
        self.assertEqual(response.data["count"], 1)

        response = self.client.delete(reverse("reservation-lock-detail", args=[lock_id]))
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertEqual(self._lock(self.other_guest).status_code, status.HTTP_201_CREATED)


class ReservationTaskTests(APITestCase):
    def setUp(self) -> None:
        self.guest = User.objects.create_user(email="guest@example.com", password="StrongPass123")
        self.loft = Loft.objects.create(
            name="Tower Loft",
            address="Turmweg 1",
            price_per_night=Decimal("100.00"),
        )

    def _reservation(self, check_in, nights=2, **fields) -> Reservation:
        defaults = {
            "loft": self.loft,
            "guest": self.guest,
            "check_in": check_in,
            "check_out": check_in + timedelta(days=nights),
            "nightly_rate": Decimal("100.00"),
            "nights": nights,
            "base_price": Decimal("100.00") * nights,
            "total_price": Decimal("100.00") * nights,
        }
        defaults.update(fields)
        return Reservation.objects.create(**defaults)

    def test_expire_pending_reservations(self) -> None:
        today = timezone.localdate()
        stale = self._reservation(today + timedelta(days=3), expires_at=timezone.now() - timedelta(minutes=1))
        fresh = self._reservation(today + timedelta(days=10), expires_at=timezone.now() + timedelta(minutes=10))

        result = expire_pending_reservations.delay().get()

        self.assertEqual(result, {"expired": 1})
        stale.refresh_from_db()
        fresh.refresh_from_db()
        self.assertEqual(stale.status, Reservation.Status.CANCELLED)
        self.assertEqual(stale.payment_status, Reservation.PaymentStatus.FAILED)
        self.assertEqual(stale.cancellation_reason, "Payment hold expired")
        self.assertEqual(fresh.status, Reservation.Status.PENDING)

    def test_complete_finished_reservations(self) -> None:
        today = timezone.localdate()
        finished = self._reservation(today - timedelta(days=3), status=Reservation.Status.CONFIRMED)
        ongoing = self._reservation(today - timedelta(days=1), status=Reservation.Status.CONFIRMED)
        pending = self._reservation(today - timedelta(days=5), status=Reservation.Status.PENDING)

        self.assertEqual(complete_finished_reservations(), {"completed": 1})
        finished.refresh_from_db()
        ongoing.refresh_from_db()
        pending.refresh_from_db()
        self.assertEqual(finished.status, Reservation.Status.COMPLETED)
        self.assertIsNotNone(finished.completed_at)
        self.assertEqual(ongoing.status, Reservation.Status.CONFIRMED)
        self.assertEqual(pending.status, Reservation.Status.PENDING)

    def test_purge_expired_locks(self) -> None:
        check_in = timezone.localdate() + timedelta(days=1)
        ReservationLock.objects.create(
            loft=self.loft,
            user=self.guest,
            check_in=check_in,
            check_out=check_in + timedelta(days=1),
            expires_at=timezone.now() - timedelta(minutes=1),
        )
        live = ReservationLock.objects.create(
            loft=self.loft,
            user=self.guest,
            check_in=check_in,
            check_out=check_in + timedelta(days=1),
            expires_at=timezone.now() + timedelta(minutes=10),
        )

        self.assertEqual(purge_expired_reservation_locks(), {"purged": 1})
        self.assertEqual(list(ReservationLock.objects.values_list("id", flat=True)), [live.id])
