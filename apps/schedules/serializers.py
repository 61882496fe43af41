"""Serializers for schedule instances."""

from __future__ import annotations

from rest_framework import serializers  # type: ignore

from .models import ScheduleInstance


class ScheduleInstanceSerializer(serializers.ModelSerializer):
    unbounded = serializers.BooleanField(source="is_unbounded", read_only=True)

    class Meta:
        model = ScheduleInstance
        fields = [
            "id",
            "location_id",
            "product_id",
            "title",
            "date",
            "start_time",
            "end_time",
            "max_participants",
            "unbounded",
            "price_per_participant",
            "status",
        ]
        read_only_fields = fields


class AvailabilitySerializer(serializers.Serializer):
    schedule_id = serializers.IntegerField()
    max_participants = serializers.IntegerField(allow_null=True)
    booked = serializers.IntegerField()
    available = serializers.IntegerField(allow_null=True)
    unbounded = serializers.BooleanField()
