"""Booking service: the entry point the request layer calls.

The request layer authenticates the user, builds a ``Principal`` and calls
one of the methods below. Failures surface as the typed exceptions in
``shared.domain.errors``.
"""

from __future__ import annotations

from datetime import date
from typing import Callable, List
from uuid import UUID

from apps.audit.recorder import AuditRecorder
from apps.users.principal import Principal
from shared.application.message_bus import MessageBus

from .application.command_handlers import (
    ApplyPaymentUpdateCommand,
    CreateBookingCommand,
    RescheduleBookingCommand,
    TransitionStatusCommand,
    UpdateBookingCommand,
)
from .application.queries import BookingQueries
from .bootstrap import bootstrap
from .domain.entities import Booking
from .domain.payments import PaymentPatch
from .domain.updates import BookingPatch


class BookingService:
    """
    Facade over the booking commands and queries.

    Commands are dispatched through a private ``MessageBus``. With the
    default Django unit of work, domain events go to the global bus after
    commit; ``in_memory`` publishes them on this service's bus instead.
    """

    def __init__(
        self,
        uow_factory: Callable | None = None,
        audit: AuditRecorder | None = None,
        bus: MessageBus | None = None,
        max_attempts: int | None = None,
    ):
        if uow_factory is None:
            from .infrastructure.repositories import BookingUnitOfWork

            uow_factory = BookingUnitOfWork
        self.bus = bus or MessageBus()
        self.audit = audit or AuditRecorder()
        bootstrap(self.bus, uow_factory, audit=self.audit, max_attempts=max_attempts)
        self.queries = BookingQueries(uow_factory)

    @classmethod
    def in_memory(cls, store, audit: AuditRecorder | None = None,
                  max_attempts: int | None = None) -> "BookingService":
        """Service over an ``InMemoryStore``; events are published on ``service.bus``."""
        bus = MessageBus()
        return cls(
            uow_factory=lambda: store.unit_of_work(bus),
            audit=audit,
            bus=bus,
            max_attempts=max_attempts,
        )

    # Commands

    def create_booking(
        self,
        principal: Principal,
        *,
        room_id: UUID,
        guest_id: UUID,
        check_in_date: date,
        check_out_date: date,
        adults: int = 1,
        children: int = 0,
        source: str = "direct",
        special_requests: str = "",
        notes: str = "",
        hotel_id: UUID | None = None,
    ) -> Booking:
        return self.bus.handle_command(CreateBookingCommand(
            principal=principal,
            room_id=room_id,
            guest_id=guest_id,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            adults=adults,
            children=children,
            source=source,
            special_requests=special_requests,
            notes=notes,
            hotel_id=hotel_id,
        ))

    def transition_status(self, principal: Principal, booking_id: UUID, status: str,
                          reason: str | None = None, hotel_id: UUID | None = None) -> Booking:
        return self.bus.handle_command(TransitionStatusCommand(
            principal=principal, booking_id=booking_id, status=status, reason=reason, hotel_id=hotel_id,
        ))

    def apply_payment_update(self, principal: Principal, booking_id: UUID, patch: PaymentPatch,
                             hotel_id: UUID | None = None) -> Booking:
        return self.bus.handle_command(ApplyPaymentUpdateCommand(
            principal=principal, booking_id=booking_id, patch=patch, hotel_id=hotel_id,
        ))

    def update_booking(self, principal: Principal, booking_id: UUID, patch: BookingPatch,
                       hotel_id: UUID | None = None) -> Booking:
        return self.bus.handle_command(UpdateBookingCommand(
            principal=principal, booking_id=booking_id, patch=patch, hotel_id=hotel_id,
        ))

    def reschedule_booking(self, principal: Principal, booking_id: UUID, check_in_date: date,
                           check_out_date: date, room_id: UUID | None = None,
                           hotel_id: UUID | None = None) -> Booking:
        return self.bus.handle_command(RescheduleBookingCommand(
            principal=principal,
            booking_id=booking_id,
            check_in_date=check_in_date,
            check_out_date=check_out_date,
            room_id=room_id,
            hotel_id=hotel_id,
        ))

    # Queries

    def check_availability(self, principal: Principal, room_id: UUID, check_in_date: date,
                           check_out_date: date, exclude_booking_id: UUID | None = None,
                           hotel_id: UUID | None = None) -> bool:
        return self.queries.check_availability(
            principal, room_id, check_in_date, check_out_date,
            exclude_booking_id=exclude_booking_id, hotel_id=hotel_id,
        )

    def get_booking(self, principal: Principal, booking_id: UUID, hotel_id: UUID | None = None) -> Booking:
        return self.queries.get_booking(principal, booking_id, hotel_id=hotel_id)

    def list_bookings(self, principal: Principal, *, status=None, payment_status=None,
                      from_date: date | None = None, to_date: date | None = None,
                      hotel_id: UUID | None = None) -> List[Booking]:
        return self.queries.list_bookings(
            principal,
            status=status,
            payment_status=payment_status,
            from_date=from_date,
            to_date=to_date,
            hotel_id=hotel_id,
        )
