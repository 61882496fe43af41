"""Capacity allocation for schedule instances."""

from __future__ import annotations

import structlog
from django.db.models import Sum  # type: ignore

from apps.schedules.models import ScheduleInstance
from apps.tenants.context import require_tenant_context
from shared.domain.exceptions import CapacityExceeded, CrossTenantAccess, ValidationError
from shared.infrastructure.locking import bounded_lock_wait, lock_queryset

from .domain.capacity import Availability, CapacitySnapshot, Release, Reservation, validate_participant_count
from .domain.state_machine import CAPACITY_RELEASED_STATES
from .models import Booking

logger = structlog.get_logger(__name__)


class CapacityAllocator:
    """
    Reserves and releases room on a schedule instance.

    Must run inside the caller's unit of work with a tenant context active.
    The schedule row lock taken by ``reserve`` and ``release`` is held until
    that transaction ends, so the booked count derived under it and the
    booking insert or status change that follows are indivisible.
    """

    def __init__(self, lock_timeout_ms: int | None = None):
        self.lock_timeout_ms = lock_timeout_ms

    def _scoped(self):
        ctx = require_tenant_context()
        return ScheduleInstance.all_tenants.filter(tenant_id=ctx.tenant_id)

    def lock_schedule(self, schedule_id: int) -> ScheduleInstance:
        queryset = self._scoped().filter(pk=schedule_id)
        with bounded_lock_wait(f"schedule {schedule_id}", self.lock_timeout_ms):
            schedule = lock_queryset(queryset).first()
        if schedule is None:
            raise CrossTenantAccess("schedule")
        return schedule

    @staticmethod
    def booked_count(schedule: ScheduleInstance) -> int:
        released = [status.value for status in CAPACITY_RELEASED_STATES]
        total = (
            Booking.all_tenants.filter(tenant_id=schedule.tenant_id, schedule_id=schedule.pk)
            .exclude(status__in=released)
            .aggregate(total=Sum("participant_count"))["total"]
        )
        return total or 0

    def _snapshot(self, schedule: ScheduleInstance) -> CapacitySnapshot:
        return CapacitySnapshot(
            schedule_id=schedule.pk,
            max_participants=schedule.max_participants,
            booked=self.booked_count(schedule),
        )

    def reserve(self, schedule_id: int, participant_count: int) -> Reservation:
        validate_participant_count(participant_count)
        return self.reserve_on(self.lock_schedule(schedule_id), participant_count)

    def reserve_on(self, schedule: ScheduleInstance, participant_count: int) -> Reservation:
        """Reserve on a schedule already locked by ``lock_schedule`` in this transaction."""
        validate_participant_count(participant_count)
        if not schedule.can_be_booked():
            raise ValidationError(
                f"Schedule {schedule.pk} is {schedule.status} and cannot be booked.",
                field="schedule_id",
            )

        snapshot = self._snapshot(schedule)
        try:
            reservation = snapshot.reserve(participant_count)
        except CapacityExceeded as exc:
            logger.info(
                "capacity.exceeded",
                tenant_id=schedule.tenant_id,
                schedule_id=schedule.pk,
                requested=participant_count,
                available=exc.available,
            )
            raise

        logger.info(
            "capacity.reserved",
            tenant_id=schedule.tenant_id,
            schedule_id=schedule.pk,
            participant_count=participant_count,
            booked=reservation.booked,
            unbounded=reservation.unbounded,
        )
        return reservation

    def release(self, schedule_id: int, participant_count: int) -> Release:
        """
        Hand capacity back after a cancel or no-show transition.

        Nothing is written: the released booking's status already removes it
        from the derived count. The lock orders the release against
        concurrent reservations on the same schedule.
        """
        schedule = self.lock_schedule(schedule_id)
        release = self._snapshot(schedule).released(participant_count)
        logger.info(
            "capacity.released",
            tenant_id=schedule.tenant_id,
            schedule_id=schedule.pk,
            participant_count=participant_count,
            available=release.available,
        )
        return release

    def availability(self, schedule_id: int) -> Availability:
        schedule = self._scoped().filter(pk=schedule_id).first()
        if schedule is None:
            raise CrossTenantAccess("schedule")
        return self._snapshot(schedule).availability()
