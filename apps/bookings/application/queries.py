"""
Booking read side

Reads go through the same tenant-scoped repositories as the command
handlers; a booking outside the caller's scope is NotFound.
"""

from datetime import date, datetime, time, timedelta
from typing import Callable, List
from uuid import UUID
from zoneinfo import ZoneInfo
import logging

from apps.bookings.domain.entities import Booking
from apps.bookings.domain.payments import parse_payment_status
from apps.bookings.domain.state_machine import parse_status
from apps.hotels.scope import TenantScope, resolve_scope
from apps.users.permissions import Permission
from apps.users.principal import Principal
from shared.domain.errors import InvalidTransition, ValidationError

from .command_handlers import load_hotel, stay_period

logger = logging.getLogger(__name__)


class BookingQueries:
    def __init__(self, uow_factory: Callable):
        self.uow_factory = uow_factory

    def _scope(self, principal: Principal, hotel_id) -> TenantScope:
        scope = resolve_scope(principal, hotel_id)
        principal.require(Permission.BOOKING_READ)
        return scope

    def get_booking(self, principal: Principal, booking_id: UUID, hotel_id: UUID | None = None) -> Booking:
        scope = self._scope(principal, hotel_id)
        with self.uow_factory() as uow:
            booking = uow.bookings.get(scope, booking_id)
            load_hotel(uow, principal, booking.hotel_id)
        return booking

    def list_bookings(
        self,
        principal: Principal,
        *,
        status=None,
        payment_status=None,
        from_date: date | None = None,
        to_date: date | None = None,
        hotel_id: UUID | None = None,
    ) -> List[Booking]:
        """
        Bookings in scope, ordered by check-in.

        ``from_date``/``to_date`` (inclusive) keep bookings whose stay
        intersects that calendar range in the hotel's timezone.
        """
        scope = self._scope(principal, hotel_id)
        try:
            status = parse_status(status) if status else None
        except InvalidTransition as e:
            raise ValidationError(e.message)
        payment_status = parse_payment_status(payment_status) if payment_status else None
        if from_date and to_date and to_date < from_date:
            raise ValidationError("to_date cannot be before from_date")

        with self.uow_factory() as uow:
            zone = ZoneInfo('UTC')
            if not scope.is_unrestricted:
                zone = ZoneInfo(load_hotel(uow, principal, scope.hotel_id).timezone)
            ends_after = _day_start(from_date, zone) if from_date else None
            starts_before = _day_start(to_date, zone) + timedelta(days=1) if to_date else None
            return uow.bookings.list(
                scope,
                status=status,
                payment_status=payment_status,
                starts_before=starts_before,
                ends_after=ends_after,
            )

    def check_availability(
        self,
        principal: Principal,
        room_id: UUID,
        check_in_date: date,
        check_out_date: date,
        exclude_booking_id: UUID | None = None,
        hotel_id: UUID | None = None,
    ) -> bool:
        """True if no active booking of the room overlaps the stay."""
        scope = self._scope(principal, hotel_id)
        with self.uow_factory() as uow:
            room = uow.rooms.get(scope, room_id)
            hotel = load_hotel(uow, principal, room.hotel_id)
            period = stay_period(hotel, check_in_date, check_out_date)
            blocking = uow.bookings.find_blocking(
                TenantScope.for_hotel(room.hotel_id), room.id, period, exclude_booking_id,
            )
        return not blocking


def _day_start(value: date | datetime, zone: ZoneInfo) -> datetime:
    if isinstance(value, datetime):
        value = value.astimezone(zone).date() if value.tzinfo else value.date()
    return datetime.combine(value, time.min, tzinfo=zone)
