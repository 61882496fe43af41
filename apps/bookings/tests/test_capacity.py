"""Tests for the capacity rule and the CapacityAllocator."""

from __future__ import annotations

import pytest
from django.db import transaction

from apps.bookings.application import coordinator
from apps.bookings.domain.capacity import CapacitySnapshot
from apps.bookings.services import CapacityAllocator
from apps.schedules.models import ScheduleInstance
from apps.tenants.context import TenantContext, tenant_context
from shared.domain.exceptions import CapacityExceeded, CrossTenantAccess, ValidationError


class TestCapacitySnapshot:
    def test_reserve_within_ceiling(self) -> None:
        reservation = CapacitySnapshot(schedule_id=1, max_participants=10, booked=8).reserve(2)
        assert reservation.booked == 8
        assert reservation.available == 2

    def test_reserve_beyond_ceiling(self) -> None:
        with pytest.raises(CapacityExceeded) as exc_info:
            CapacitySnapshot(schedule_id=1, max_participants=10, booked=9).reserve(2)
        assert exc_info.value.available == 1
        assert exc_info.value.requested == 2
        assert exc_info.value.to_dict()["code"] == "capacity_exceeded"

    def test_unbounded_always_fits(self) -> None:
        snapshot = CapacitySnapshot(schedule_id=1, max_participants=None, booked=5000)
        assert snapshot.unbounded
        assert snapshot.available is None
        assert snapshot.reserve(1000).unbounded

    @pytest.mark.parametrize("count", [0, -1, True, "2", 1.5])
    def test_participant_count_must_be_positive_integer(self, count) -> None:
        with pytest.raises(ValidationError):
            CapacitySnapshot(schedule_id=1, max_participants=10, booked=0).reserve(count)


@pytest.mark.django_db
class TestCapacityAllocator:
    def _acting(self, tenant):
        return tenant_context(TenantContext(tenant_id=tenant.pk))

    def test_requires_tenant_context(self, schedule) -> None:
        with pytest.raises(RuntimeError):
            CapacityAllocator().availability(schedule.pk)

    def test_reserve_counts_only_active_bookings(self, tenant, schedule) -> None:
        kept = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=4)
        dropped = coordinator.create_booking(tenant.pk, schedule.pk, member_id=2, participant_count=5)
        coordinator.cancel_booking(tenant.pk, dropped.pk)

        with self._acting(tenant), transaction.atomic():
            reservation = CapacityAllocator().reserve(schedule.pk, 6)

        assert kept.participant_count == 4
        assert reservation.booked == 4
        assert reservation.available == 6

    def test_reserve_rejects_overbooking(self, tenant, schedule) -> None:
        coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=8)
        with self._acting(tenant), transaction.atomic():
            with pytest.raises(CapacityExceeded):
                CapacityAllocator().reserve(schedule.pk, 3)

    def test_non_bookable_schedule(self, tenant, schedule) -> None:
        schedule.status = ScheduleInstance.Status.CANCELLED
        schedule.save()
        with self._acting(tenant), transaction.atomic():
            with pytest.raises(ValidationError) as exc_info:
                CapacityAllocator().reserve(schedule.pk, 1)
        assert exc_info.value.field == "schedule_id"

    def test_foreign_schedule_is_invisible(self, tenant, other_tenant, make_schedule) -> None:
        foreign = make_schedule(other_tenant)
        with self._acting(tenant), transaction.atomic():
            with pytest.raises(CrossTenantAccess):
                CapacityAllocator().reserve(foreign.pk, 1)
            with pytest.raises(CrossTenantAccess):
                CapacityAllocator().availability(foreign.pk)

    def test_release_reports_room_after_cancel(self, tenant, schedule) -> None:
        booking = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=6)
        coordinator.cancel_booking(tenant.pk, booking.pk)

        with self._acting(tenant), transaction.atomic():
            release = CapacityAllocator().release(schedule.pk, 6)
        assert release.booked == 0
        assert release.available == 10
