"""Tests for the Booking persistence guard and money invariant."""

from __future__ import annotations

from decimal import Decimal

import pytest
from django.core.exceptions import ValidationError as DjangoValidationError

from apps.bookings.application import coordinator
from apps.bookings.models import Booking
from shared.domain.exceptions import InvalidStateTransition, ValidationError

pytestmark = pytest.mark.django_db


def test_direct_status_write_outside_transition_table_is_refused(tenant, schedule) -> None:
    booking = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=2)
    booking = Booking.all_tenants.get(pk=booking.pk)

    booking.status = Booking.Status.COMPLETED.value
    with pytest.raises(InvalidStateTransition) as exc_info:
        booking.save()

    assert exc_info.value.current_state == "pending"
    assert exc_info.value.target == "completed"
    assert booking.status == "pending"
    assert Booking.all_tenants.get(pk=booking.pk).status == "pending"


def test_legal_status_write_is_accepted(tenant, schedule) -> None:
    booking = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=2)
    booking = Booking.all_tenants.get(pk=booking.pk)

    booking.status = Booking.Status.CONFIRMED.value
    booking.save()

    assert Booking.all_tenants.get(pk=booking.pk).status == "confirmed"


def test_terminal_booking_cannot_be_reopened(tenant, schedule) -> None:
    booking = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=2)
    coordinator.cancel_booking(tenant.pk, booking.pk)
    booking = Booking.all_tenants.get(pk=booking.pk)

    booking.status = Booking.Status.PENDING.value
    with pytest.raises(InvalidStateTransition):
        booking.save()


def test_refresh_picks_up_status_changed_elsewhere(tenant, schedule) -> None:
    booking = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=2)
    coordinator.confirm_booking(tenant.pk, booking.pk)

    booking.refresh_from_db()
    booking.status = Booking.Status.CHECKED_IN.value
    booking.save()

    assert Booking.all_tenants.get(pk=booking.pk).status == "checked_in"


def test_new_booking_must_start_pending(tenant, schedule) -> None:
    booking = Booking(
        tenant=tenant,
        schedule=schedule,
        location_id=1,
        member_id=1,
        participant_count=1,
        status=Booking.Status.CONFIRMED.value,
    )
    with pytest.raises(InvalidStateTransition):
        booking.save()


def test_clean_checks_money_invariant(tenant, schedule) -> None:
    booking = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=2)
    booking.clean()

    booking.balance_due = Decimal("1.00")
    with pytest.raises(DjangoValidationError):
        booking.clean()


def test_booking_numbers_are_unique(tenant, schedule) -> None:
    numbers = {
        coordinator.create_booking(tenant.pk, schedule.pk, member_id=i, participant_count=1).booking_number
        for i in range(1, 6)
    }
    assert len(numbers) == 5


@pytest.mark.parametrize(
    "values, field",
    [
        ({"status": "completed"}, "status"),
        ({"status": "completed", "amount_paid": Decimal("999.00")}, "amount_paid"),
        ({"balance_due": Decimal("0.00")}, "balance_due"),
        ({"payment_status": "fully_paid"}, "payment_status"),
        ({"amount_refunded": Decimal("5.00")}, "amount_refunded"),
    ],
)
def test_bulk_update_of_state_and_money_is_refused(tenant, schedule, values, field) -> None:
    booking = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=1)

    for manager in (Booking.objects, Booking.all_tenants):
        with pytest.raises(ValidationError) as exc_info:
            manager.filter(pk=booking.pk).update(**values)
        assert exc_info.value.field == field

    stored = Booking.all_tenants.get(pk=booking.pk)
    assert stored.status == "pending"
    assert stored.amount_paid == Decimal("0.00")
    assert stored.amount_paid + stored.balance_due == stored.total_amount


def test_bulk_update_of_other_columns_is_allowed(tenant, schedule) -> None:
    booking = coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=1)

    updated = Booking.all_tenants.filter(pk=booking.pk).update(customer_notes="Window seat")

    assert updated == 1
    assert Booking.all_tenants.get(pk=booking.pk).customer_notes == "Window seat"
