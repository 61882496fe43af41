"""Admin registration for bookings."""

from __future__ import annotations

from django.contrib import admin

from .models import Booking


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    """Read-mostly: status and money only move through the coordinator."""

    list_display = (
        "booking_number",
        "tenant",
        "schedule",
        "member_id",
        "participant_count",
        "status",
        "payment_status",
        "total_amount",
        "balance_due",
        "created_at",
    )
    list_filter = ("status", "payment_status", "tenant")
    search_fields = ("booking_number",)
    raw_id_fields = ("schedule",)
    readonly_fields = (
        "tenant",
        "booking_number",
        "status",
        "payment_status",
        "total_amount",
        "amount_paid",
        "amount_refunded",
        "balance_due",
        "currency",
        "confirmed_at",
        "checked_in_at",
        "checked_in_by",
        "checked_out_at",
        "checked_out_by",
        "cancelled_at",
        "cancelled_by",
        "cancellation_reason",
        "no_show_at",
        "created_by",
        "created_at",
        "updated_at",
    )

    def has_add_permission(self, request):  # type: ignore
        return False

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
