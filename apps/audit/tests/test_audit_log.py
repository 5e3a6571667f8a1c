"""Tests for the append-only audit log."""

from __future__ import annotations

from decimal import Decimal

from django.urls import reverse
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from apps.audit.models import AuditLogEntry, AuditLogImmutableError
from apps.audit.services import changed_fields
from apps.lofts.models import BlockedPeriod, Loft
from apps.users.models import CustomUser, PartnerProfile, User


def entries_for(instance):
    return AuditLogEntry.objects.filter(
        table_name=instance._meta.db_table,
        record_id=str(instance.pk),
    ).order_by("id")


class AuditSignalTests(TestCase):
    def setUp(self) -> None:
        self.loft = Loft.objects.create(
            name="Audit Loft",
            address="Protokollweg 1",
            price_per_night=Decimal("100.00"),
        )

    def test_insert_is_recorded(self) -> None:
        entry = entries_for(self.loft).get()
        self.assertEqual(entry.action, AuditLogEntry.Action.INSERT)
        self.assertEqual(entry.table_name, "lofts_loft")
        self.assertIsNone(entry.old_values)
        self.assertEqual(entry.new_values["name"], "Audit Loft")
        self.assertEqual(entry.new_values["price_per_night"], "100.00")
        self.assertIsNone(entry.user)

    def test_update_records_old_and_new_values(self) -> None:
        self.loft.price_per_night = Decimal("120.00")
        self.loft.save()

        entry = entries_for(self.loft).last()
        self.assertEqual(entry.action, AuditLogEntry.Action.UPDATE)
        self.assertEqual(entry.old_values["price_per_night"], "100.00")
        self.assertEqual(entry.new_values["price_per_night"], "120.00")
        self.assertEqual(entry.changed_fields, ["price_per_night", "updated_at"])

    def test_save_without_changes_is_not_recorded(self) -> None:
        self.loft.save()
        self.assertEqual(entries_for(self.loft).count(), 1)

    def test_delete_is_recorded(self) -> None:
        period = BlockedPeriod.objects.create(
            loft=self.loft,
            start_date="2030-01-01",
            end_date="2030-01-05",
        )
        period_id = period.pk
        period.delete()

        entry = AuditLogEntry.objects.filter(
            table_name="lofts_blockedperiod",
            record_id=str(period_id),
            action=AuditLogEntry.Action.DELETE,
        ).get()
        self.assertEqual(entry.old_values["start_date"], "2030-01-01")
        self.assertIsNone(entry.new_values)

    def test_entries_are_immutable(self) -> None:
        entry = entries_for(self.loft).get()

        entry.record_id = "999"
        with self.assertRaises(AuditLogImmutableError):
            entry.save()
        with self.assertRaises(AuditLogImmutableError):
            entry.delete()
        with self.assertRaises(AuditLogImmutableError):
            AuditLogEntry.objects.filter(pk=entry.pk).update(record_id="999")
        with self.assertRaises(AuditLogImmutableError):
            AuditLogEntry.objects.all().delete()

        self.assertEqual(AuditLogEntry.objects.get(pk=entry.pk).record_id, str(self.loft.pk))

    def test_changed_fields_compares_both_sides(self) -> None:
        self.assertEqual(changed_fields({"a": 1, "b": 2}, {"a": 1, "b": 3, "c": 4}), ["b", "c"])
        self.assertEqual(changed_fields(None, {"a": 1}), ["a"])


class AuditAttributionTests(APITestCase):
    def test_api_changes_are_attributed_to_the_user(self) -> None:
        partner = User.objects.create_user(
            email="owner@example.com",
            password="StrongPass123",
            role=CustomUser.RoleChoices.PARTNER,
        )
        PartnerProfile.objects.create(
            user=partner,
            business_name="Owner Lofts",
            verification_status=PartnerProfile.VerificationStatus.VERIFIED,
        )
        self.client.force_authenticate(partner)

        response = self.client.post(
            reverse("loft-list"),
            {"name": "Tracked Loft", "address": "Spurweg 2", "price_per_night": "90.00"},
            format="json",
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)

        loft = Loft.objects.get(pk=response.data["id"])
        entry = entries_for(loft).get()
        self.assertEqual(entry.user, partner)
        self.assertEqual(entry.user_email, "owner@example.com")

        response = self.client.post(reverse("loft-status", args=[loft.id]), {"status": "maintenance"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_200_OK, response.data)

        entry = entries_for(loft).last()
        self.assertEqual(entry.action, AuditLogEntry.Action.UPDATE)
        self.assertEqual(entry.changed_fields, ["status", "updated_at"])
        self.assertEqual(entry.old_values["status"], "available")
        self.assertEqual(entry.new_values["status"], "maintenance")
        self.assertEqual(entry.user, partner)
