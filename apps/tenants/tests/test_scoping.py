"""Tests for tenant context, scoped managers and TenantScope lookups."""

from __future__ import annotations

import pytest
from django.db import transaction

from apps.schedules.models import ScheduleInstance
from apps.tenants.context import TenantContext, get_current_tenant, require_tenant_context, tenant_context
from apps.tenants.models import Tenant
from apps.tenants.scoping import TenantScope
from shared.domain.exceptions import CrossTenantAccess, TenantInactive


def test_context_is_reset_after_block() -> None:
    assert get_current_tenant() is None
    with tenant_context(TenantContext(tenant_id=7, user_id=3)) as ctx:
        assert get_current_tenant() == ctx
        assert require_tenant_context().tenant_id == 7
    assert get_current_tenant() is None


def test_require_context_outside_block_fails() -> None:
    with pytest.raises(RuntimeError):
        require_tenant_context()


@pytest.mark.django_db
class TestScopedManager:
    def test_objects_only_sees_acting_tenant(self, tenant, other_tenant, make_schedule) -> None:
        mine = make_schedule(tenant)
        make_schedule(other_tenant)

        with tenant_context(TenantContext(tenant_id=tenant.pk)):
            assert list(ScheduleInstance.objects.values_list("pk", flat=True)) == [mine.pk]

        assert ScheduleInstance.objects.count() == 2
        assert ScheduleInstance.all_tenants.count() == 2

    def test_save_fills_tenant_from_context(self, tenant, make_schedule) -> None:
        source = make_schedule(tenant)
        with tenant_context(TenantContext(tenant_id=tenant.pk)):
            copy = ScheduleInstance(
                location_id=source.location_id,
                date=source.date,
                start_time=source.start_time,
                max_participants=4,
            )
            copy.save()
        assert copy.tenant_id == tenant.pk

    def test_save_for_another_tenant_is_rejected(self, tenant, other_tenant, make_schedule) -> None:
        foreign = make_schedule(other_tenant)
        with tenant_context(TenantContext(tenant_id=tenant.pk)):
            foreign.title = "Hijacked"
            with pytest.raises(CrossTenantAccess):
                foreign.save()

        foreign.refresh_from_db()
        assert foreign.title == "Sunset kayak"


@pytest.mark.django_db
class TestTenantScope:
    def test_unknown_tenant_is_not_distinguishable(self) -> None:
        with pytest.raises(CrossTenantAccess) as exc_info:
            TenantScope.resolve(999_999)
        assert exc_info.value.resource == "tenant"

    def test_suspended_tenant_is_rejected(self, tenant) -> None:
        tenant.suspend()
        with pytest.raises(TenantInactive):
            TenantScope.resolve(tenant.pk)

    def test_cancelled_tenant_is_rejected(self, tenant) -> None:
        tenant.status = Tenant.Status.CANCELLED
        tenant.save()
        with pytest.raises(TenantInactive):
            TenantScope.resolve(tenant.pk)

    def test_get_returns_own_row(self, tenant, schedule) -> None:
        scope = TenantScope.resolve(tenant.pk)
        assert scope.get(ScheduleInstance, schedule.pk) == schedule

    def test_foreign_and_missing_rows_look_the_same(self, tenant, other_tenant, make_schedule) -> None:
        foreign = make_schedule(other_tenant)
        scope = TenantScope.resolve(tenant.pk)

        with pytest.raises(CrossTenantAccess) as foreign_error:
            scope.get(ScheduleInstance, foreign.pk, resource="schedule")
        with pytest.raises(CrossTenantAccess) as missing_error:
            scope.get(ScheduleInstance, foreign.pk + 1000, resource="schedule")

        assert foreign_error.value.to_dict() == missing_error.value.to_dict()

    def test_locked_get_needs_a_transaction(self, tenant, schedule) -> None:
        scope = TenantScope.resolve(tenant.pk)
        with transaction.atomic():
            assert scope.get(ScheduleInstance, schedule.pk, lock=True) == schedule

    def test_activate_sets_context(self, tenant) -> None:
        scope = TenantScope.resolve(tenant.pk, user_id=5)
        with scope.activate():
            assert get_current_tenant() == TenantContext(tenant_id=tenant.pk, user_id=5)
        assert get_current_tenant() is None
