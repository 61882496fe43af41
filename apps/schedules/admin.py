from django.contrib import admin  # type: ignore

from .models import ScheduleInstance


@admin.register(ScheduleInstance)
class ScheduleInstanceAdmin(admin.ModelAdmin):
    list_display = (
        "title",
        "tenant",
        "date",
        "start_time",
        "max_participants",
        "price_per_participant",
        "status",
    )
    list_filter = ("status", "tenant", "date")
    search_fields = ("title",)
    date_hierarchy = "date"

    def has_delete_permission(self, request, obj=None):  # type: ignore
        return False
