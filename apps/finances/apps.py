from django.apps import AppConfig


class FinancesConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "apps.finances"
    verbose_name = "Finances"

    def ready(self) -> None:
        from shared.application.audit import audit_event
        from shared.application.message_bus import message_bus

        from .application.command_handlers import register_handlers
        from .domain import events

        register_handlers(message_bus)
        message_bus.subscribe(
            events.PaymentSucceeded,
            events.PaymentFailed,
            events.PaymentRefunded,
        )(audit_event)
