"""
Booking Command Handlers

These are the use cases for the booking domain.
They orchestrate domain operations within units of work.

Commands:
- CreateBookingCommand: Create a new booking
- TransitionStatusCommand: Move a booking along the status state machine
- ApplyPaymentUpdateCommand: Add a payment / set payment status or paid amount
- UpdateBookingCommand: Sparse update (notes, status, payment)
- RescheduleBookingCommand: Move a booking to other dates or another room

Every write is version-conditional. A lost race raises
ConcurrentWriteError inside the unit of work; the handler reloads and
retries a bounded number of times, then reports Conflict.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Callable, Tuple
from uuid import UUID
import logging

from django.conf import settings

from apps.audit.recorder import AuditEntry, AuditRecorder
from apps.bookings.domain.entities import (
    NOTES_MAX_LENGTH,
    SPECIAL_REQUESTS_MAX_LENGTH,
    Booking,
    BookingSource,
    GuestCount,
    HotelInfo,
    diff_snapshots,
    generate_booking_number,
    validate_text,
)
from apps.bookings.domain.events import BookingCreated
from apps.bookings.domain.payments import PaymentPatch, apply_payment_update
from apps.bookings.domain.pricing import compute_pricing
from apps.bookings.domain.state_machine import transition
from apps.bookings.domain.updates import (
    BookingPatch,
    apply_booking_patch,
    check_room_for_stay,
    require_update_access,
    reschedule,
)
from apps.hotels.scope import TenantScope, resolve_scope
from apps.users.permissions import Permission
from apps.users.principal import Principal
from shared.domain.base import utcnow
from shared.domain.errors import ConcurrentWriteError, Conflict, Forbidden, ValidationError
from shared.domain.value_objects import StayPeriod

logger = logging.getLogger(__name__)

BOOKING_NUMBER_ATTEMPTS = 10


# ===== Commands =====

@dataclass
class CreateBookingCommand:
    """
    Command to create a new booking

    Dates are calendar dates; the hotel's check-in and check-out times are
    applied in the hotel's timezone. ``hotel_id`` is only honoured for
    cross-tenant administrators.
    """
    principal: Principal
    room_id: UUID
    guest_id: UUID
    check_in_date: date
    check_out_date: date
    adults: int = 1
    children: int = 0
    source: str = 'direct'
    special_requests: str = ''
    notes: str = ''
    hotel_id: UUID | None = None


@dataclass
class TransitionStatusCommand:
    principal: Principal
    booking_id: UUID
    status: str
    reason: str | None = None
    hotel_id: UUID | None = None


@dataclass
class ApplyPaymentUpdateCommand:
    principal: Principal
    booking_id: UUID
    patch: PaymentPatch
    hotel_id: UUID | None = None


@dataclass
class UpdateBookingCommand:
    principal: Principal
    booking_id: UUID
    patch: BookingPatch = field(default_factory=BookingPatch)
    hotel_id: UUID | None = None


@dataclass
class RescheduleBookingCommand:
    """Command to move a booking; pricing stays as captured at creation"""
    principal: Principal
    booking_id: UUID
    check_in_date: date
    check_out_date: date
    room_id: UUID | None = None
    hotel_id: UUID | None = None


# ===== Helpers =====

def parse_source(value) -> BookingSource:
    if isinstance(value, BookingSource):
        return value
    try:
        return BookingSource(str(value or 'direct'))
    except ValueError:
        raise ValidationError(f"Unknown booking source {value!r}")


def require_date(value, name: str):
    if not isinstance(value, (date, datetime)):
        raise ValidationError(f"{name} must be a date")
    return value


def load_hotel(uow, principal: Principal, hotel_id: UUID) -> HotelInfo:
    """Inactive hotels are closed to everyone but cross-tenant administrators."""
    hotel = uow.hotels.get(hotel_id)
    if not hotel.is_active and not principal.is_cross_tenant:
        raise Forbidden("Hotel is inactive", hotel_id=str(hotel_id))
    return hotel


def stay_period(hotel: HotelInfo, check_in_date, check_out_date) -> StayPeriod:
    return StayPeriod.from_dates(
        require_date(check_in_date, 'Check-in date'),
        require_date(check_out_date, 'Check-out date'),
        check_in_time=hotel.check_in_time,
        check_out_time=hotel.check_out_time,
        tz=hotel.timezone,
    )


def default_max_attempts() -> int:
    return max(1, int(getattr(settings, 'BOOKING_MAX_WRITE_ATTEMPTS', 3)))


# ===== Command Handlers =====

class BookingCommandHandler:
    """
    Shared plumbing for booking handlers

    ``uow_factory`` returns a fresh unit of work exposing ``hotels``,
    ``rooms``, ``guests`` and ``bookings`` repositories.
    """

    action = ''

    def __init__(self, uow_factory: Callable, audit: AuditRecorder | None = None,
                 max_attempts: int | None = None):
        self.uow_factory = uow_factory
        self.audit = audit or AuditRecorder()
        self.max_attempts = max_attempts or default_max_attempts()

    def _with_retries(self, attempt: Callable[[], Tuple[Booking, dict]], target: str):
        for number in range(1, self.max_attempts + 1):
            try:
                return attempt()
            except ConcurrentWriteError as e:
                logger.warning(
                    "%s on %s lost a concurrent write (attempt %s/%s): %s",
                    self.action, target, number, self.max_attempts, e,
                )
        raise Conflict(
            "Booking was modified concurrently, please retry",
            attempts=self.max_attempts,
        )

    def _record(self, principal: Principal, booking: Booking, before: dict):
        self.audit.record(AuditEntry.for_principal(
            principal,
            action=self.action,
            entity_type='booking',
            entity_id=booking.id,
            hotel_id=booking.hotel_id,
            changes=diff_snapshots(before, booking.audit_snapshot()),
        ))


class CreateBookingHandler(BookingCommandHandler):
    """
    Handler for CreateBooking command

    Strategy:
    1. Resolve the tenant scope and check booking:create
    2. Validate input that needs no database
    3. In one unit of work: load hotel, room (locked) and guest in scope,
       check capacity and availability, price the stay, insert
    4. Publish BookingCreated after commit, then audit
    """

    action = 'booking.create'

    def handle(self, command: CreateBookingCommand) -> Booking:
        principal = command.principal
        scope = resolve_scope(principal, command.hotel_id)
        hotel_id = scope.require_hotel()
        principal.require(Permission.BOOKING_CREATE)

        source = parse_source(command.source)
        guests = GuestCount(adults=command.adults, children=command.children)
        special_requests = validate_text(
            command.special_requests, name='Special requests', max_length=SPECIAL_REQUESTS_MAX_LENGTH,
        )
        notes = validate_text(command.notes, name='Notes', max_length=NOTES_MAX_LENGTH)

        logger.info(
            "Creating booking in hotel %s for room %s, guest %s, dates %s - %s",
            hotel_id, command.room_id, command.guest_id, command.check_in_date, command.check_out_date,
        )

        def attempt():
            with self.uow_factory() as uow:
                hotel = load_hotel(uow, principal, hotel_id)
                period = stay_period(hotel, command.check_in_date, command.check_out_date)

                # Lock the room row: creations for one room run one at a time
                room = uow.rooms.get(scope, command.room_id, lock=True)
                check_room_for_stay(room, hotel_id, guests)
                guest = uow.guests.get(scope, command.guest_id)

                if uow.bookings.find_blocking(scope, room.id, period):
                    raise Conflict(
                        f"Room {room.room_number} is not available for the selected dates",
                        room_id=str(room.id),
                    )

                pricing = compute_pricing(room.price_per_night, period.check_in, period.check_out, hotel.tax_rate)
                now = utcnow()
                booking = Booking(
                    hotel_id=hotel_id,
                    booking_number=self._booking_number(uow, hotel_id, now),
                    room_id=room.id,
                    guest_id=guest.id,
                    period=period,
                    guests=guests,
                    pricing=pricing,
                    source=source,
                    special_requests=special_requests,
                    notes=notes,
                    created_by=principal.user_id,
                    last_modified_by=principal.user_id,
                    created_at=now,
                    updated_at=now,
                )
                booking.add_event(BookingCreated(
                    aggregate_id=booking.id,
                    booking_id=booking.id,
                    hotel_id=hotel_id,
                    booking_number=booking.booking_number,
                    room_id=room.id,
                    room_number=room.room_number,
                    guest_id=guest.id,
                    guest_name=guest.full_name,
                    check_in=period.check_in,
                    check_out=period.check_out,
                    total=pricing.total,
                ))
                uow.bookings.add(booking)
                uow.collect_events(booking)
            return booking, {}

        booking, before = self._with_retries(attempt, f"room {command.room_id}")
        logger.info("Booking created successfully: %s (ID: %s)", booking.booking_number, booking.id)
        self._record(principal, booking, before)
        return booking

    def _booking_number(self, uow, hotel_id: UUID, now: datetime) -> str:
        for _ in range(BOOKING_NUMBER_ATTEMPTS):
            number = generate_booking_number(now)
            if not uow.bookings.booking_number_exists(hotel_id, number):
                return number
        raise Conflict("Could not allocate a booking number, please retry")


class TransitionStatusHandler(BookingCommandHandler):
    """Handler for booking status changes"""

    action = 'booking.status_change'

    def handle(self, command: TransitionStatusCommand) -> Booking:
        principal = command.principal
        scope = resolve_scope(principal, command.hotel_id)

        def attempt():
            with self.uow_factory() as uow:
                booking = uow.bookings.get(scope, command.booking_id)
                load_hotel(uow, principal, booking.hotel_id)
                before = booking.audit_snapshot()
                transition(booking, command.status, principal, reason=command.reason)
                uow.bookings.save(booking)
                uow.collect_events(booking)
            return booking, before

        booking, before = self._with_retries(attempt, f"booking {command.booking_id}")
        logger.info("Booking %s moved to %s", booking.booking_number, booking.status.value)
        self._record(principal, booking, before)
        return booking


class ApplyPaymentUpdateHandler(BookingCommandHandler):
    """
    Handler for payment updates

    The paid amount is recomputed from the reloaded ledger on every attempt,
    so a retried append never double counts.
    """

    action = 'booking.payment_update'

    def handle(self, command: ApplyPaymentUpdateCommand) -> Booking:
        principal = command.principal
        scope = resolve_scope(principal, command.hotel_id)

        def attempt():
            with self.uow_factory() as uow:
                booking = uow.bookings.get(scope, command.booking_id)
                load_hotel(uow, principal, booking.hotel_id)
                before = booking.audit_snapshot()
                apply_payment_update(booking, principal, command.patch)
                uow.bookings.save(booking)
                uow.collect_events(booking)
            return booking, before

        booking, before = self._with_retries(attempt, f"booking {command.booking_id}")
        logger.info(
            "Payment updated on booking %s: %s, paid %s",
            booking.booking_number, booking.payment.status.value, booking.payment.paid_amount,
        )
        self._record(principal, booking, before)
        return booking


class UpdateBookingHandler(BookingCommandHandler):
    """Handler for sparse booking updates"""

    action = 'booking.update'

    def handle(self, command: UpdateBookingCommand) -> Booking:
        principal = command.principal
        scope = resolve_scope(principal, command.hotel_id)
        # Permission and shape errors win over NotFound
        require_update_access(principal)
        if not command.patch.has_known_field:
            raise ValidationError("No valid update fields provided")

        def attempt():
            with self.uow_factory() as uow:
                booking = uow.bookings.get(scope, command.booking_id)
                load_hotel(uow, principal, booking.hotel_id)
                before = booking.audit_snapshot()
                apply_booking_patch(booking, principal, command.patch)
                uow.bookings.save(booking)
                uow.collect_events(booking)
            return booking, before

        booking, before = self._with_retries(attempt, f"booking {command.booking_id}")
        self._record(principal, booking, before)
        return booking


class RescheduleBookingHandler(BookingCommandHandler):
    """Handler for moving a booking to new dates or another room"""

    action = 'booking.reschedule'

    def handle(self, command: RescheduleBookingCommand) -> Booking:
        principal = command.principal
        scope = resolve_scope(principal, command.hotel_id)
        principal.require(Permission.BOOKING_UPDATE)

        def attempt():
            with self.uow_factory() as uow:
                booking = uow.bookings.get(scope, command.booking_id)
                hotel = load_hotel(uow, principal, booking.hotel_id)
                period = stay_period(hotel, command.check_in_date, command.check_out_date)

                hotel_scope = TenantScope.for_hotel(booking.hotel_id)
                room = uow.rooms.get(hotel_scope, command.room_id or booking.room_id, lock=True)
                before = booking.audit_snapshot()
                reschedule(booking, principal, period, room)
                if uow.bookings.find_blocking(hotel_scope, room.id, period, exclude_booking_id=booking.id):
                    raise Conflict(
                        f"Room {room.room_number} is not available for the selected dates",
                        room_id=str(room.id),
                    )
                uow.bookings.save(booking)
                uow.collect_events(booking)
            return booking, before

        booking, before = self._with_retries(attempt, f"booking {command.booking_id}")
        logger.info("Booking %s rescheduled to %s", booking.booking_number, booking.period)
        self._record(principal, booking, before)
        return booking
