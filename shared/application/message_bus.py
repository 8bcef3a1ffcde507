"""
Message Bus

Routes application commands to exactly one handler and domain events to
any number of subscribers.
"""

from collections import defaultdict
from typing import Any, Callable, Dict, Iterable, List, Type
import logging

from shared.domain.base import DomainEvent

logger = logging.getLogger(__name__)


class MessageBus:
    """
    In-process dispatcher

    A command handler's return value goes back to the caller and its
    exceptions propagate. Event subscribers are isolated from each other: a
    failing subscriber is logged and the rest still run.
    """

    def __init__(self):
        self._command_handlers: Dict[Type, Callable[[Any], Any]] = {}
        self._subscribers: Dict[Type[DomainEvent], List[Callable]] = defaultdict(list)

    def register_command_handler(self, command_type: Type, handler: Callable[[Any], Any]):
        if command_type in self._command_handlers:
            raise ValueError(f"{command_type.__name__} already has a handler")
        self._command_handlers[command_type] = handler

    def has_command_handler(self, command_type: Type) -> bool:
        return command_type in self._command_handlers

    def register_event_handler(self, event_type: Type[DomainEvent], handler: Callable[[DomainEvent], None]):
        """Subscribe ``handler``; subscribing it twice to one type has no effect."""
        subscribers = self._subscribers[event_type]
        if handler in subscribers:
            return
        subscribers.append(handler)
        logger.debug("%s subscribed to %s", getattr(handler, '__name__', handler), event_type.__name__)

    def handle_command(self, command: Any) -> Any:
        name = type(command).__name__
        try:
            handler = self._command_handlers[type(command)]
        except KeyError:
            raise ValueError(f"No handler registered for {name}")

        logger.debug("Dispatching %s", name)
        try:
            return handler(command)
        except Exception as e:
            logger.info("%s rejected: %s", name, e)
            raise

    def publish_events(self, events: Iterable[DomainEvent]):
        for event in events:
            subscribers = list(self._subscribers.get(type(event), ()))
            logger.info("Publishing %s %s to %s handler(s)", event.name, event.event_id, len(subscribers))
            for handler in subscribers:
                self._notify(handler, event)

    def _notify(self, handler: Callable, event: DomainEvent):
        try:
            handler(event)
        except Exception:
            logger.exception(
                "Handler %s failed on %s %s",
                getattr(handler, '__name__', repr(handler)), event.name, event.event_id,
            )


# Process-wide bus; Django app configs subscribe their handlers here.
message_bus = MessageBus()
