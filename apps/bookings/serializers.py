"""Serializers for the booking domain."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .application.command_handlers import MAX_REASON_LENGTH
from .models import Booking


class BookingCreateSerializer(serializers.Serializer):
    """Input of CreateBooking. Capacity and tenant checks happen in the coordinator."""

    schedule = serializers.IntegerField(min_value=1)
    member = serializers.IntegerField(min_value=1)
    participant_count = serializers.IntegerField(min_value=1)
    notes = serializers.CharField(required=False, allow_blank=True, default="")


class BookingCancelSerializer(serializers.Serializer):
    reason = serializers.CharField(
        required=False,
        allow_blank=True,
        default="",
        max_length=MAX_REASON_LENGTH,
    )


class BookingSerializer(serializers.ModelSerializer):
    """Read representation of a booking."""

    schedule_id = serializers.ReadOnlyField()
    allowed_actions = serializers.SerializerMethodField()

    class Meta:
        model = Booking
        fields = [
            "id",
            "booking_number",
            "schedule_id",
            "location_id",
            "member_id",
            "participant_count",
            "status",
            "payment_status",
            "total_amount",
            "amount_paid",
            "amount_refunded",
            "balance_due",
            "currency",
            "customer_notes",
            "payment_due_date",
            "confirmed_at",
            "checked_in_at",
            "checked_in_by",
            "checked_out_at",
            "checked_out_by",
            "cancelled_at",
            "cancelled_by",
            "cancellation_reason",
            "no_show_at",
            "allowed_actions",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_allowed_actions(self, obj: Booking) -> list[str]:
        from .domain.state_machine import allowed_events

        return [event.value for event in allowed_events(obj.status)]
