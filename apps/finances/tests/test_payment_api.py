"""Integration tests for payment API endpoints."""

from __future__ import annotations

from datetime import date, time, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APITestCase

from apps.bookings.application import coordinator
from apps.finances.models import Payment
from apps.schedules.models import ScheduleInstance
from apps.tenants.models import Tenant, TenantMembership

User = get_user_model()


class PaymentAPITests(APITestCase):
    def setUp(self) -> None:
        self.tenant = Tenant.objects.create(name="River Tours", slug="river-tours")
        self.staff = User.objects.create_user(username="cashier", password="CashierPass123")
        TenantMembership.objects.create(tenant=self.tenant, user=self.staff)
        schedule = ScheduleInstance.objects.create(
            tenant=self.tenant,
            location_id=1,
            date=date.today() + timedelta(days=4),
            start_time=time(16, 0),
            max_participants=8,
            price_per_participant=Decimal("100.00"),
        )
        self.booking = coordinator.create_booking(self.tenant.pk, schedule.pk, member_id=5, participant_count=2)
        self.client.force_authenticate(self.staff)
        self.client.credentials(HTTP_X_TENANT_ID=str(self.tenant.pk))
        self.list_url = reverse("payment-list")

    def _pay(self, amount: str, idempotency_key: str | None = None, **extra):
        payload = {"booking": self.booking.pk, "amount": amount, "method": "cash"}
        payload.update(extra)
        headers = {"HTTP_IDEMPOTENCY_KEY": idempotency_key} if idempotency_key else {}
        return self.client.post(self.list_url, payload, format="json", **headers)

    def test_record_payment(self) -> None:
        response = self._pay("50.00", kind="deposit")

        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["status"], "succeeded")
        self.assertEqual(response.data["kind"], "deposit")
        self.assertEqual(response.data["refundable_amount"], "50.00")
        self.assertEqual(response.data["processed_by"], self.staff.pk)

        booking = coordinator.get_booking(self.tenant.pk, self.booking.pk)
        self.assertEqual(booking.payment_status, "deposit_paid")
        self.assertEqual(booking.balance_due, Decimal("150.00"))

    def test_idempotency_key_header_replays(self) -> None:
        first = self._pay("20.00", idempotency_key="till-42")
        second = self._pay("20.00", idempotency_key="till-42")

        self.assertEqual(first.status_code, status.HTTP_201_CREATED)
        self.assertEqual(second.status_code, status.HTTP_201_CREATED)
        self.assertEqual(first.data["id"], second.data["id"])
        self.assertEqual(Payment.all_tenants.count(), 1)

        conflicting = self._pay("25.00", idempotency_key="till-42")
        self.assertEqual(conflicting.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(conflicting.data["field"], "idempotency_key")

    def test_refund_flow(self) -> None:
        payment_id = self._pay("200.00").data["id"]
        refund_url = reverse("payment-refund", args=[payment_id])

        response = self.client.post(refund_url, {"amount": "150.00", "reason": "Shortened tour"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_201_CREATED, response.data)
        self.assertEqual(response.data["kind"], "refund")
        self.assertEqual(response.data["original_payment_id"], payment_id)

        response = self.client.post(refund_url, {"amount": "60.00"}, format="json")
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data["code"], "refund_exceeds_payment")
        self.assertEqual(response.data["refundable_amount"], "50.00")

        detail = self.client.get(reverse("payment-detail", args=[payment_id]))
        self.assertEqual(detail.data["refundable_amount"], "50.00")

    def test_invalid_amount(self) -> None:
        response = self._pay("0.00")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertFalse(Payment.all_tenants.exists())

    def test_unknown_method(self) -> None:
        response = self._pay("10.00", method="barter")
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_payment_on_foreign_booking(self) -> None:
        other = Tenant.objects.create(name="Mountain Trips", slug="mountain-trips")
        foreign_schedule = ScheduleInstance.objects.create(
            tenant=other,
            location_id=2,
            date=date.today() + timedelta(days=4),
            start_time=time(16, 0),
            max_participants=8,
        )
        foreign = coordinator.create_booking(other.pk, foreign_schedule.pk, member_id=1, participant_count=1)

        response = self.client.post(
            self.list_url,
            {"booking": foreign.pk, "amount": "10.00", "method": "cash"},
            format="json",
        )

        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data["code"], "cross_tenant_access")
        self.assertFalse(Payment.all_tenants.exists())

    def test_list_is_scoped_to_tenant(self) -> None:
        self._pay("10.00")
        response = self.client.get(self.list_url, {"booking": self.booking.pk})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data["count"], 1)
