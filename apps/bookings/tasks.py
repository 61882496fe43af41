"""Celery tasks for the booking domain."""

from __future__ import annotations

from celery import shared_task  # type: ignore

from .application import coordinator


# ============================================================================
# PERIODIC TASKS (scheduled by Celery Beat)
# ============================================================================

@shared_task(name="bookings.expire_unpaid_bookings")
def expire_unpaid_bookings() -> dict[str, int]:
    """
    Cancel pending bookings left unpaid past their payment_due_date.

    Runs every few minutes through Celery Beat. Bookings of suspended
    tenants are left alone until the tenant is active again.

    Returns:
        dict: {"expired": cancelled bookings, "skipped": bookings left as they were}
    """
    return coordinator.expire_unpaid_bookings()


@shared_task(name="bookings.recalculate_booking_payments")
def recalculate_booking_payments(tenant_id: int, booking_id: int) -> dict[str, str]:
    """Rebuild one booking's cached payment projection from its ledger."""
    projection = coordinator.recalculate_booking_payments(tenant_id, booking_id)
    return {field: str(value) for field, value in projection.as_fields().items()}
