"""Wires booking command handlers onto a message bus."""

from __future__ import annotations

from typing import Callable

from apps.audit.recorder import AuditRecorder
from shared.application.message_bus import MessageBus

from .application.command_handlers import (
    ApplyPaymentUpdateCommand,
    ApplyPaymentUpdateHandler,
    CreateBookingCommand,
    CreateBookingHandler,
    RescheduleBookingCommand,
    RescheduleBookingHandler,
    TransitionStatusCommand,
    TransitionStatusHandler,
    UpdateBookingCommand,
    UpdateBookingHandler,
)

HANDLERS = {
    CreateBookingCommand: CreateBookingHandler,
    TransitionStatusCommand: TransitionStatusHandler,
    ApplyPaymentUpdateCommand: ApplyPaymentUpdateHandler,
    UpdateBookingCommand: UpdateBookingHandler,
    RescheduleBookingCommand: RescheduleBookingHandler,
}


def bootstrap(
    bus: MessageBus,
    uow_factory: Callable,
    audit: AuditRecorder | None = None,
    max_attempts: int | None = None,
) -> MessageBus:
    """Register one handler per booking command on ``bus``."""
    audit = audit or AuditRecorder()
    for command_type, handler_class in HANDLERS.items():
        handler = handler_class(uow_factory, audit=audit, max_attempts=max_attempts)
        bus.register_command_handler(command_type, handler.handle)
    return bus
