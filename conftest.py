"""Shared pytest fixtures for SlotBook."""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.db import connection
from rest_framework.test import APIClient

from apps.bookings.models import Booking
from apps.schedules.models import ScheduleInstance
from apps.tenants.models import Tenant, TenantMembership


@pytest.fixture
def tenant(db) -> Tenant:
    return Tenant.objects.create(name="River Tours", slug="river-tours", currency="USD")


@pytest.fixture
def other_tenant(db) -> Tenant:
    return Tenant.objects.create(name="Mountain Trips", slug="mountain-trips", currency="USD")


@pytest.fixture
def staff_user(tenant):
    user = get_user_model().objects.create_user(username="staff", password="StaffPass123")
    TenantMembership.objects.create(tenant=tenant, user=user, role=TenantMembership.Role.STAFF)
    return user


@pytest.fixture
def make_schedule():
    def factory(tenant: Tenant, max_participants: int | None = 10, **overrides) -> ScheduleInstance:
        fields = {
            "tenant": tenant,
            "location_id": 1,
            "title": "Sunset kayak",
            "date": date.today() + timedelta(days=7),
            "start_time": time(18, 0),
            "max_participants": max_participants,
            "price_per_participant": Decimal("25.00"),
        }
        fields.update(overrides)
        return ScheduleInstance.objects.create(**fields)

    return factory


@pytest.fixture
def schedule(tenant, make_schedule) -> ScheduleInstance:
    return make_schedule(tenant, max_participants=10)


@pytest.fixture
def api_client(staff_user, tenant) -> APIClient:
    client = APIClient()
    client.force_authenticate(staff_user)
    client.credentials(HTTP_X_TENANT_ID=str(tenant.pk))
    return client


@pytest.fixture
def write_booking_columns(db):
    """Overwrite booking columns in SQL, the way an out-of-band writer would."""

    def write(booking_id: int, **values) -> None:
        quote = connection.ops.quote_name
        assignments = ", ".join(f"{quote(column)} = %s" for column in values)
        with connection.cursor() as cursor:
            cursor.execute(
                f"UPDATE {quote(Booking._meta.db_table)} SET {assignments} WHERE {quote('id')} = %s",
                [*values.values(), booking_id],
            )

    return write
