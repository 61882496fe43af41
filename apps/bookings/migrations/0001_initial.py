from decimal import Decimal

from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


def _user_fk():
    return models.ForeignKey(
        blank=True,
        null=True,
        on_delete=django.db.models.deletion.SET_NULL,
        related_name="+",
        to=settings.AUTH_USER_MODEL,
    )


def _money(**kwargs):
    return models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12, **kwargs)


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
        ("tenants", "0001_initial"),
        ("schedules", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Booking",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("location_id", models.PositiveBigIntegerField()),
                ("member_id", models.PositiveBigIntegerField()),
                ("booking_number", models.CharField(editable=False, max_length=12, unique=True)),
                ("participant_count", models.PositiveIntegerField()),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("confirmed", "Confirmed"),
                            ("checked_in", "Checked in"),
                            ("completed", "Completed"),
                            ("cancelled", "Cancelled"),
                            ("no_show", "No show"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("total_amount", _money()),
                ("amount_paid", _money()),
                ("amount_refunded", _money()),
                ("balance_due", _money(help_text="Negative when the booking is overpaid.")),
                (
                    "payment_status",
                    models.CharField(
                        choices=[
                            ("pending", "Pending"),
                            ("deposit_paid", "Deposit paid"),
                            ("partially_paid", "Partially paid"),
                            ("fully_paid", "Fully paid"),
                        ],
                        default="pending",
                        max_length=20,
                    ),
                ),
                ("currency", models.CharField(default="USD", max_length=3)),
                ("customer_notes", models.TextField(blank=True)),
                (
                    "payment_due_date",
                    models.DateTimeField(
                        blank=True,
                        help_text="Unpaid pending bookings are cancelled after this moment.",
                        null=True,
                    ),
                ),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("checked_in_at", models.DateTimeField(blank=True, null=True)),
                ("checked_out_at", models.DateTimeField(blank=True, null=True)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("cancellation_reason", models.CharField(blank=True, max_length=255)),
                ("no_show_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "tenant",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="+",
                        to="tenants.tenant",
                    ),
                ),
                (
                    "schedule",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="bookings",
                        to="schedules.scheduleinstance",
                    ),
                ),
                ("created_by", _user_fk()),
                ("checked_in_by", _user_fk()),
                ("checked_out_by", _user_fk()),
                ("cancelled_by", _user_fk()),
            ],
            options={
                "verbose_name": "Booking",
                "verbose_name_plural": "Bookings",
                "db_table": "bookings",
                "ordering": ["-created_at"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("participant_count__gte", 1)),
                        name="booking_participant_count_positive",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["tenant", "status"], name="bookings_tenant_status_idx"),
                    models.Index(fields=["schedule", "status"], name="bookings_schedule_status_idx"),
                    models.Index(fields=["tenant", "payment_due_date"], name="bookings_tenant_due_idx"),
                ],
            },
        ),
    ]
