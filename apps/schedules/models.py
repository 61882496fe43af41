"""Schedule models for SlotBook."""

from __future__ import annotations

from decimal import Decimal

from django.db import models  # type: ignore
from django.utils.translation import gettext_lazy as _  # type: ignore

from apps.tenants.models import TenantOwnedModel


class ScheduleInstance(TenantOwnedModel):
    """Dated occurrence of an offering with a capacity ceiling."""

    class Status(models.TextChoices):
        SCHEDULED = "scheduled", _("Scheduled")
        CONFIRMED = "confirmed", _("Confirmed")
        CANCELLED = "cancelled", _("Cancelled")
        COMPLETED = "completed", _("Completed")

    BOOKABLE_STATUSES = (Status.SCHEDULED, Status.CONFIRMED)

    location_id = models.PositiveBigIntegerField()
    product_id = models.PositiveBigIntegerField(null=True, blank=True)
    title = models.CharField(max_length=255, blank=True)
    date = models.DateField()
    start_time = models.TimeField()
    end_time = models.TimeField(null=True, blank=True)
    max_participants = models.PositiveIntegerField(
        null=True,
        blank=True,
        help_text=_("Capacity ceiling. Leave empty for an unbounded schedule."),
    )
    price_per_participant = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SCHEDULED,
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "schedules"
        verbose_name = _("Schedule instance")
        verbose_name_plural = _("Schedule instances")
        ordering = ["date", "start_time"]
        constraints = [
            models.CheckConstraint(
                condition=models.Q(max_participants__isnull=True) | models.Q(max_participants__gte=1),
                name="schedule_capacity_positive_or_unbounded",
            ),
        ]
        indexes = [
            models.Index(fields=["tenant", "date"], name="schedules_tenant_date_idx"),
            models.Index(fields=["tenant", "location_id"], name="schedules_tenant_location_idx"),
        ]

    def __str__(self) -> str:
        return f"{self.title or 'Schedule'} {self.date} {self.start_time:%H:%M}"

    @property
    def is_unbounded(self) -> bool:
        return self.max_participants is None

    def can_be_booked(self) -> bool:
        return self.status in self.BOOKABLE_STATUSES
