import django.core.validators
import django.db.models.deletion
from decimal import Decimal
from django.conf import settings
from django.db import migrations, models

import apps.lofts.models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        ("users", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Loft",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("name", models.CharField(max_length=255)),
                ("address", models.CharField(max_length=255)),
                ("description", models.TextField(blank=True)),
                (
                    "price_per_night",
                    models.DecimalField(
                        decimal_places=2,
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.01"))],
                    ),
                ),
                (
                    "cleaning_fee",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        max_digits=10,
                        validators=[django.core.validators.MinValueValidator(Decimal("0.00"))],
                    ),
                ),
                (
                    "tax_rate",
                    models.DecimalField(
                        decimal_places=4,
                        default=apps.lofts.models.default_tax_rate,
                        help_text="Fraction of the taxable amount, e.g. 0.19.",
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("1")),
                        ],
                    ),
                ),
                ("currency", models.CharField(default=apps.lofts.models.default_currency, max_length=3)),
                (
                    "max_guests",
                    models.PositiveSmallIntegerField(
                        default=2, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                ("bedrooms", models.PositiveSmallIntegerField(default=1)),
                ("bathrooms", models.PositiveSmallIntegerField(default=1)),
                ("amenities", models.JSONField(blank=True, default=list)),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("available", "Available"),
                            ("occupied", "Occupied"),
                            ("maintenance", "Maintenance"),
                        ],
                        default="available",
                        max_length=20,
                    ),
                ),
                (
                    "minimum_nights",
                    models.PositiveSmallIntegerField(
                        default=1, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "maximum_nights",
                    models.PositiveSmallIntegerField(
                        blank=True, null=True, validators=[django.core.validators.MinValueValidator(1)]
                    ),
                ),
                (
                    "company_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("50.00"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("100")),
                        ],
                    ),
                ),
                (
                    "owner_percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("50.00"),
                        max_digits=5,
                        validators=[
                            django.core.validators.MinValueValidator(Decimal("0")),
                            django.core.validators.MaxValueValidator(Decimal("100")),
                        ],
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "owner",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="lofts",
                        to="users.partnerprofile",
                    ),
                ),
            ],
            options={
                "verbose_name": "Loft",
                "verbose_name_plural": "Lofts",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("company_percentage", Decimal("100") - models.F("owner_percentage"))
                        ),
                        name="loft_revenue_split_is_100",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(
                            ("maximum_nights__isnull", True),
                            ("maximum_nights__gte", models.F("minimum_nights")),
                            _connector="OR",
                        ),
                        name="loft_stay_limits_valid",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["status"], name="loft_status_idx"),
                    models.Index(fields=["owner", "status"], name="loft_owner_status_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="PricingRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("rule_name", models.CharField(max_length=255)),
                (
                    "rule_type",
                    models.CharField(
                        choices=[
                            ("seasonal", "Seasonal"),
                            ("weekend", "Weekend"),
                            ("holiday", "Holiday"),
                            ("event", "Event"),
                            ("length_of_stay", "Length of stay"),
                            ("advance_booking", "Advance booking"),
                        ],
                        max_length=20,
                    ),
                ),
                (
                    "adjustment_type",
                    models.CharField(
                        choices=[
                            ("percentage", "Percentage"),
                            ("fixed", "Fixed amount per night"),
                            ("override", "Override price per night"),
                        ],
                        max_length=20,
                    ),
                ),
                ("adjustment_value", models.DecimalField(decimal_places=2, max_digits=10)),
                (
                    "priority",
                    models.IntegerField(
                        default=0,
                        help_text="Rules are applied in ascending priority; the last one applied wins.",
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("start_date", models.DateField(blank=True, null=True)),
                ("end_date", models.DateField(blank=True, null=True)),
                (
                    "days_of_week",
                    models.JSONField(blank=True, default=list, help_text="Weekday numbers, Monday = 0 ... Sunday = 6."),
                ),
                ("minimum_nights", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("maximum_nights", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("advance_booking_days", models.PositiveSmallIntegerField(blank=True, null=True)),
                ("description", models.TextField(blank=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "loft",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="pricing_rules",
                        to="lofts.loft",
                    ),
                ),
            ],
            options={
                "verbose_name": "Pricing rule",
                "verbose_name_plural": "Pricing rules",
                "ordering": ["priority", "id"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(
                            ("start_date__isnull", True),
                            ("end_date__isnull", True),
                            ("end_date__gte", models.F("start_date")),
                            _connector="OR",
                        ),
                        name="pricing_rule_valid_date_range",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["loft", "is_active", "priority"], name="pricing_rule_lookup_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="BlockedPeriod",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(help_text="First night that is free again.")),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("blocked", "Blocked by owner"),
                            ("maintenance", "Maintenance"),
                            ("booked", "Booked elsewhere"),
                        ],
                        default="blocked",
                        max_length=20,
                    ),
                ),
                ("reason", models.CharField(blank=True, max_length=255)),
                (
                    "source",
                    models.CharField(
                        choices=[("manual", "Manual"), ("booking", "Booking"), ("sync", "Calendar sync")],
                        default="manual",
                        max_length=20,
                    ),
                ),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="created_blocked_periods",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "loft",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="blocked_periods",
                        to="lofts.loft",
                    ),
                ),
            ],
            options={
                "verbose_name": "Blocked period",
                "verbose_name_plural": "Blocked periods",
                "ordering": ["start_date"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("end_date__gt", models.F("start_date"))),
                        name="blocked_period_valid_date_range",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["loft", "start_date", "end_date"], name="blocked_period_range_idx"),
                ],
            },
        ),
    ]
