"""Integration tests for schedule listing and availability."""

from __future__ import annotations

from datetime import date, time, timedelta

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.application import coordinator
from apps.schedules.models import ScheduleInstance
from apps.tenants.models import Tenant, TenantMembership

User = get_user_model()


class ScheduleAPITests(APITestCase):
    def setUp(self) -> None:
        self.tenant = Tenant.objects.create(name="River Tours", slug="river-tours")
        self.user = User.objects.create_user(username="staff", password="StaffPass123")
        TenantMembership.objects.create(tenant=self.tenant, user=self.user)
        self.day = date.today() + timedelta(days=5)
        self.schedule = ScheduleInstance.objects.create(
            tenant=self.tenant,
            location_id=1,
            date=self.day,
            start_time=time(10, 0),
            max_participants=10,
        )
        self.client.force_authenticate(self.user)
        self.client.credentials(HTTP_X_TENANT_ID=str(self.tenant.pk))

    def test_availability_reflects_active_bookings(self) -> None:
        coordinator.create_booking(self.tenant.pk, self.schedule.pk, member_id=1, participant_count=3)
        cancelled = coordinator.create_booking(self.tenant.pk, self.schedule.pk, member_id=2, participant_count=4)
        coordinator.cancel_booking(self.tenant.pk, cancelled.pk, reason="Changed plans")

        response = self.client.get(reverse("schedule-availability", args=[self.schedule.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["booked"], 3)
        self.assertEqual(response.data["available"], 7)
        self.assertFalse(response.data["unbounded"])

    def test_unbounded_schedule_reports_no_ceiling(self) -> None:
        open_ended = ScheduleInstance.objects.create(
            tenant=self.tenant,
            location_id=1,
            date=self.day,
            start_time=time(14, 0),
            max_participants=None,
        )
        coordinator.create_booking(self.tenant.pk, open_ended.pk, member_id=1, participant_count=40)

        response = self.client.get(reverse("schedule-availability", args=[open_ended.pk]))

        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data["unbounded"])
        self.assertIsNone(response.data["available"])
        self.assertIsNone(response.data["max_participants"])
        self.assertEqual(response.data["booked"], 40)

    def test_filter_by_date_range(self) -> None:
        ScheduleInstance.objects.create(
            tenant=self.tenant,
            location_id=1,
            date=self.day + timedelta(days=30),
            start_time=time(10, 0),
            max_participants=10,
        )
        response = self.client.get(
            reverse("schedule-list"),
            {"date_from": str(self.day), "date_to": str(self.day)},
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row["id"] for row in response.data["results"]], [self.schedule.pk])

    def test_schedules_are_read_only(self) -> None:
        response = self.client.post(reverse("schedule-list"), {"location_id": 1}, format="json")
        self.assertEqual(response.status_code, status.HTTP_405_METHOD_NOT_ALLOWED)
