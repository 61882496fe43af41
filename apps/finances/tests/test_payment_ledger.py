"""Service-level tests for recording payments and refunds."""

from __future__ import annotations

from decimal import Decimal

import pytest

from apps.bookings.application import coordinator
from apps.bookings.models import Booking
from apps.finances.domain.events import PaymentFailed, PaymentRefunded, PaymentSucceeded
from apps.finances.models import Payment
from apps.finances.services import PaymentLedger
from shared.application.message_bus import message_bus
from shared.domain.exceptions import RefundExceedsPayment, ValidationError

pytestmark = pytest.mark.django_db


@pytest.fixture
def booking(tenant, make_schedule) -> Booking:
    """Booking with a total of 200.00."""
    schedule = make_schedule(tenant, max_participants=20, price_per_participant=Decimal("50.00"))
    return coordinator.create_booking(tenant.pk, schedule.pk, member_id=1, participant_count=4)


def reload(booking: Booking) -> Booking:
    return Booking.all_tenants.get(pk=booking.pk)


class TestRecordPayment:
    def test_deposit_then_remaining_balance(self, tenant, booking) -> None:
        assert booking.total_amount == Decimal("200.00")

        coordinator.record_payment(tenant.pk, booking.pk, Decimal("50"), kind="deposit")
        current = reload(booking)
        assert current.payment_status == "deposit_paid"
        assert current.balance_due == Decimal("150.00")

        coordinator.record_payment(tenant.pk, booking.pk, Decimal("150"), method="card")
        current = reload(booking)
        assert current.payment_status == "fully_paid"
        assert current.balance_due == Decimal("0.00")
        assert current.amount_paid == Decimal("200.00")

    def test_payment_is_settled_by_offline_gateway(self, tenant, booking) -> None:
        payment = coordinator.record_payment(tenant.pk, booking.pk, Decimal("20.00"), processed_by=None)

        assert payment.status == "succeeded"
        assert payment.provider == "offline"
        assert payment.transaction_id == f"OFFLINE-{payment.payment_number}"
        assert payment.succeeded_at is not None
        assert payment.tenant_id == tenant.pk
        assert payment.currency == "USD"

    def test_overpayment_is_recorded(self, tenant, booking) -> None:
        coordinator.record_payment(tenant.pk, booking.pk, Decimal("250.00"))
        current = reload(booking)
        assert current.payment_status == "fully_paid"
        assert current.balance_due == Decimal("-50.00")

    def test_failed_payment_leaves_booking_unchanged(self, tenant, booking, settings) -> None:
        settings.PAYMENT_GATEWAY = "apps.finances.tests.gateways.DecliningGateway"

        payment = coordinator.record_payment(tenant.pk, booking.pk, Decimal("200.00"), method="card")

        assert payment.status == "failed"
        assert payment.failure_reason == "Card declined"
        assert payment.provider == "declining"
        current = reload(booking)
        assert current.amount_paid == Decimal("0.00")
        assert current.payment_status == "pending"

    @pytest.mark.parametrize(
        "amount, field",
        [
            (Decimal("0"), "amount"),
            (Decimal("-5.00"), "amount"),
            (Decimal("10.001"), "amount"),
            (10.5, "amount"),
            ("abc", "amount"),
        ],
    )
    def test_invalid_amounts(self, tenant, booking, amount, field) -> None:
        with pytest.raises(ValidationError) as exc_info:
            coordinator.record_payment(tenant.pk, booking.pk, amount)
        assert exc_info.value.field == field
        assert not Payment.all_tenants.exists()

    def test_refund_kind_cannot_be_recorded_directly(self, tenant, booking) -> None:
        with pytest.raises(ValidationError):
            coordinator.record_payment(tenant.pk, booking.pk, Decimal("10.00"), kind="refund")

    def test_cancelled_booking_takes_no_payments(self, tenant, booking) -> None:
        coordinator.cancel_booking(tenant.pk, booking.pk)
        with pytest.raises(ValidationError):
            coordinator.record_payment(tenant.pk, booking.pk, Decimal("10.00"))

    def test_events_after_commit(self, tenant, booking, settings, django_capture_on_commit_callbacks) -> None:
        received = []
        handler = received.append
        message_bus.register_event_handler(PaymentSucceeded, handler)
        message_bus.register_event_handler(PaymentFailed, handler)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                coordinator.record_payment(tenant.pk, booking.pk, Decimal("60.00"))
                settings.PAYMENT_GATEWAY = "apps.finances.tests.gateways.DecliningGateway"
                coordinator.record_payment(tenant.pk, booking.pk, Decimal("60.00"))
        finally:
            message_bus._event_handlers[PaymentSucceeded].remove(handler)
            message_bus._event_handlers[PaymentFailed].remove(handler)

        assert [type(event) for event in received] == [PaymentSucceeded, PaymentFailed]
        assert received[0].payment_status == "partially_paid"
        assert received[1].failure_reason == "Card declined"


class TestIdempotency:
    def test_replay_returns_original_payment(self, tenant, booking) -> None:
        first = coordinator.record_payment(tenant.pk, booking.pk, Decimal("50.00"), idempotency_key="order-17")
        second = coordinator.record_payment(tenant.pk, booking.pk, Decimal("50.00"), idempotency_key="order-17")

        assert first.pk == second.pk
        assert Payment.all_tenants.filter(booking=booking).count() == 1
        assert reload(booking).amount_paid == Decimal("50.00")

    def test_key_reused_for_different_payment(self, tenant, booking) -> None:
        coordinator.record_payment(tenant.pk, booking.pk, Decimal("50.00"), idempotency_key="order-17")
        with pytest.raises(ValidationError) as exc_info:
            coordinator.record_payment(tenant.pk, booking.pk, Decimal("70.00"), idempotency_key="order-17")
        assert exc_info.value.field == "idempotency_key"

    @pytest.mark.parametrize("same_booking", [True, False])
    def test_key_claimed_after_lookup(self, tenant, booking, make_schedule, monkeypatch, same_booking) -> None:
        """A concurrent writer claims the key between the lookup and the insert."""
        coordinator.record_payment(tenant.pk, booking.pk, Decimal("50.00"), idempotency_key="till-9")
        if same_booking:
            target = booking
        else:
            target = coordinator.create_booking(tenant.pk, make_schedule(tenant).pk, member_id=2, participant_count=2)

        lookups = []
        real_replay = PaymentLedger._replay

        def replay_missing_first(self, *args):
            lookups.append(args)
            if len(lookups) == 1:
                return None
            return real_replay(self, *args)

        monkeypatch.setattr(PaymentLedger, "_replay", replay_missing_first)

        if same_booking:
            payment = coordinator.record_payment(tenant.pk, target.pk, Decimal("50.00"), idempotency_key="till-9")
            assert payment.idempotency_key == "till-9"
        else:
            with pytest.raises(ValidationError) as exc_info:
                coordinator.record_payment(tenant.pk, target.pk, Decimal("50.00"), idempotency_key="till-9")
            assert exc_info.value.field == "idempotency_key"

        assert len(lookups) == 2
        assert Payment.all_tenants.filter(idempotency_key="till-9").count() == 1
        assert reload(booking).amount_paid == Decimal("50.00")
        assert reload(target).amount_paid == Decimal("50.00" if same_booking else "0.00")

    def test_keys_are_per_tenant(self, tenant, other_tenant, booking, make_schedule) -> None:
        other_schedule = make_schedule(other_tenant)
        other_booking = coordinator.create_booking(other_tenant.pk, other_schedule.pk, member_id=1, participant_count=1)

        mine = coordinator.record_payment(tenant.pk, booking.pk, Decimal("10.00"), idempotency_key="shared-key")
        theirs = coordinator.record_payment(
            other_tenant.pk, other_booking.pk, Decimal("10.00"), idempotency_key="shared-key"
        )

        assert mine.pk != theirs.pk


class TestRefunds:
    def test_refunds_up_to_payment_amount(self, tenant, booking) -> None:
        payment = coordinator.record_payment(tenant.pk, booking.pk, Decimal("200.00"))

        coordinator.refund_payment(tenant.pk, payment.pk, Decimal("100.00"), reason="Partial")
        payment.refresh_from_db()
        assert payment.get_refundable_amount() == Decimal("100.00")

        coordinator.refund_payment(tenant.pk, payment.pk, Decimal("100.00"))
        with pytest.raises(RefundExceedsPayment) as exc_info:
            coordinator.refund_payment(tenant.pk, payment.pk, Decimal("0.01"))

        assert exc_info.value.refundable_amount == Decimal("0")
        current = reload(booking)
        assert current.amount_paid == Decimal("0.00")
        assert current.amount_refunded == Decimal("200.00")
        assert current.payment_status == "pending"
        assert not payment.can_be_refunded()

    def test_refund_links_to_original(self, tenant, booking) -> None:
        payment = coordinator.record_payment(tenant.pk, booking.pk, Decimal("80.00"), method="card")

        refund = coordinator.refund_payment(tenant.pk, payment.pk, Decimal("30.00"), reason="Late start")

        assert refund.kind == "refund"
        assert refund.status == "succeeded"
        assert refund.original_payment_id == payment.pk
        assert refund.method == "card"
        assert refund.notes == "Late start"
        assert reload(booking).amount_paid == Decimal("50.00")

    def test_refund_larger_than_payment(self, tenant, booking) -> None:
        payment = coordinator.record_payment(tenant.pk, booking.pk, Decimal("80.00"))
        with pytest.raises(RefundExceedsPayment):
            coordinator.refund_payment(tenant.pk, payment.pk, Decimal("80.01"))
        assert Payment.all_tenants.filter(kind="refund").count() == 0

    def test_failed_payment_is_not_refundable(self, tenant, booking, settings) -> None:
        settings.PAYMENT_GATEWAY = "apps.finances.tests.gateways.DecliningGateway"
        payment = coordinator.record_payment(tenant.pk, booking.pk, Decimal("80.00"))
        settings.PAYMENT_GATEWAY = "apps.finances.gateways.OfflineGateway"

        with pytest.raises(RefundExceedsPayment):
            coordinator.refund_payment(tenant.pk, payment.pk, Decimal("10.00"))

    def test_refund_cannot_be_refunded(self, tenant, booking) -> None:
        payment = coordinator.record_payment(tenant.pk, booking.pk, Decimal("80.00"))
        refund = coordinator.refund_payment(tenant.pk, payment.pk, Decimal("30.00"))
        with pytest.raises(ValidationError):
            coordinator.refund_payment(tenant.pk, refund.pk, Decimal("10.00"))

    def test_cancelled_booking_can_still_be_refunded(self, tenant, booking, django_capture_on_commit_callbacks) -> None:
        payment = coordinator.record_payment(tenant.pk, booking.pk, Decimal("200.00"))
        coordinator.cancel_booking(tenant.pk, booking.pk, reason="Storm")

        received = []
        message_bus.register_event_handler(PaymentRefunded, received.append)
        try:
            with django_capture_on_commit_callbacks(execute=True):
                coordinator.refund_payment(tenant.pk, payment.pk, Decimal("200.00"))
        finally:
            message_bus._event_handlers[PaymentRefunded].remove(received.append)

        assert reload(booking).amount_paid == Decimal("0.00")
        assert received[0].original_payment_id == payment.pk


class TestProjectionMaintenance:
    def test_projection_matches_ledger_after_mixed_activity(self, tenant, booking) -> None:
        deposit = coordinator.record_payment(tenant.pk, booking.pk, Decimal("40.00"), kind="deposit")
        coordinator.record_payment(tenant.pk, booking.pk, Decimal("100.00"))
        coordinator.refund_payment(tenant.pk, deposit.pk, Decimal("15.00"))

        assert coordinator.verify_booking_projection(tenant.pk, booking.pk) == {}
        current = reload(booking)
        assert current.amount_paid + current.balance_due == current.total_amount

    def test_recalculate_repairs_drift(self, tenant, booking, write_booking_columns) -> None:
        coordinator.record_payment(tenant.pk, booking.pk, Decimal("200.00"))
        write_booking_columns(
            booking.pk,
            amount_paid=Decimal("0.00"),
            balance_due=Decimal("200.00"),
            payment_status="pending",
        )

        drift = coordinator.verify_booking_projection(tenant.pk, booking.pk)
        assert drift["amount_paid"] == (Decimal("0.00"), Decimal("200.00"))
        assert drift["payment_status"] == ("pending", "fully_paid")

        projection = coordinator.recalculate_booking_payments(tenant.pk, booking.pk)
        assert projection.balance_due == Decimal("0.00")
        assert coordinator.verify_booking_projection(tenant.pk, booking.pk) == {}
