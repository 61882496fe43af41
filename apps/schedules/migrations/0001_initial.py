from decimal import Decimal

from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("tenants", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="ScheduleInstance",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("location_id", models.PositiveBigIntegerField()),
                ("product_id", models.PositiveBigIntegerField(blank=True, null=True)),
                ("title", models.CharField(blank=True, max_length=255)),
                ("date", models.DateField()),
                ("start_time", models.TimeField()),
                ("end_time", models.TimeField(blank=True, null=True)),
                (
                    "max_participants",
                    models.PositiveIntegerField(
                        blank=True,
                        help_text="Capacity ceiling. Leave empty for an unbounded schedule.",
                        null=True,
                    ),
                ),
                (
                    "price_per_participant",
                    models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=10),
                ),
                (
                    "status",
                    models.CharField(
                        choices=[
                            ("scheduled", "Scheduled"),
                            ("confirmed", "Confirmed"),
                            ("cancelled", "Cancelled"),
                            ("completed", "Completed"),
                        ],
                        default="scheduled",
                        max_length=20,
                    ),
                ),
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
            ],
            options={
                "verbose_name": "Schedule instance",
                "verbose_name_plural": "Schedule instances",
                "db_table": "schedules",
                "ordering": ["date", "start_time"],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(("max_participants__isnull", True), ("max_participants__gte", 1), _connector="OR"),
                        name="schedule_capacity_positive_or_unbounded",
                    ),
                ],
                "indexes": [
                    models.Index(fields=["tenant", "date"], name="schedules_tenant_date_idx"),
                    models.Index(fields=["tenant", "location_id"], name="schedules_tenant_location_idx"),
                ],
            },
        ),
    ]
