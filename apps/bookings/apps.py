from django.apps import AppConfig


class BookingsConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.bookings"
    verbose_name = "Bookings"

    def ready(self) -> None:
        from shared.application.audit import audit_event
        from shared.application.message_bus import message_bus

        from .application.command_handlers import register_handlers
        from .domain import events

        register_handlers(message_bus)
        message_bus.subscribe(
            events.BookingCreated,
            events.BookingConfirmed,
            events.BookingCheckedIn,
            events.BookingCompleted,
            events.BookingCancelled,
            events.BookingMarkedNoShow,
        )(audit_event)
