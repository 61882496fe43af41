"""
Message Bus

Routes coordinator commands to their single handler and published domain
events to any number of subscribers.
"""

from typing import Any, Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    """
    Message bus for commands and events

    Commands: one handler per command type (1:1), result returned to caller
    Events: any number of subscribers per event type (1:N), after commit
    """

    def __init__(self):
        self._event_handlers: Dict[Type[DomainEvent], List[Callable]] = {}
        self._command_handlers: Dict[Type, Callable] = {}

    def register_event_handler(
        self,
        event_type: Type[DomainEvent],
        handler: Callable[[DomainEvent], None]
    ):
        """Subscribe a handler to an event type (idempotent per handler)"""
        handlers = self._event_handlers.setdefault(event_type, [])
        if handler not in handlers:
            handlers.append(handler)
            logger.debug("Registered event handler %s for %s", handler, event_type.__name__)

    def subscribe(self, *event_types: Type[DomainEvent]):
        """Decorator form of register_event_handler"""
        def decorator(handler):
            for event_type in event_types:
                self.register_event_handler(event_type, handler)
            return handler
        return decorator

    def register_command_handler(
        self,
        command_type: Type,
        handler: Callable[[Any], Any]
    ):
        """Register the handler for a command type"""
        existing = self._command_handlers.get(command_type)
        if existing is not None and existing is not handler:
            raise ValueError(
                f"Handler for {command_type.__name__} is already registered. "
                "Commands can have only one handler."
            )
        self._command_handlers[command_type] = handler

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    def handle_command(self, command: Any) -> Any:
        """
        Dispatch a command to its handler and return the handler's result

        Domain errors propagate unchanged; the bus only logs them.
        """
        command_type = type(command)
        handler = self._command_handlers.get(command_type)
        if handler is None:
            raise LookupError(f"No handler registered for command {command_type.__name__}")

        logger.debug("Handling command %s", command_type.__name__)
        try:
            return handler(command)
        except Exception as exc:
            logger.info("Command %s failed: %s: %s", command_type.__name__, type(exc).__name__, exc)
            raise

    def publish_events(self, events: Iterable[DomainEvent]):
        """
        Deliver events to their subscribers

        Runs after commit, so a failing subscriber cannot undo business
        state; its error is logged and the remaining subscribers still run.
        """
        for event in events:
            handlers = self._event_handlers.get(type(event), [])
            if not handlers:
                logger.debug("No handlers registered for event %s", event.name)
                continue

            for handler in handlers:
                try:
                    handler(event)
                except Exception:
                    logger.exception(
                        "Event handler %s failed for %s (%s)",
                        getattr(handler, '__name__', handler),
                        event.name,
                        event.event_id,
                    )


# Global message bus instance
message_bus = MessageBus()
