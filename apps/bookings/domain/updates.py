"""
Sparse booking updates and rescheduling

A patch may carry notes, special requests, a target status (with an
optional cancellation reason) and a payment patch. Every check runs
before the booking is changed.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List

from apps.users.permissions import Permission
from apps.users.principal import Principal
from shared.domain.base import utcnow
from shared.domain.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from shared.domain.value_objects import StayPeriod

from .entities import (
    NOTES_MAX_LENGTH,
    SPECIAL_REQUESTS_MAX_LENGTH,
    Booking,
    BookingStatus,
    GuestCount,
    PaymentTransaction,
    RoomInfo,
    validate_text,
)
from .events import BookingRescheduled
from .payments import PaymentPatch, apply_payment_update
from .state_machine import TRANSITION_PERMISSIONS, authorize_transition, transition

# Any one of these lets a principal attempt an update at all.
UPDATE_PERMISSIONS = frozenset({
    Permission.BOOKING_UPDATE,
    Permission.PAYMENT_CREATE,
    Permission.PAYMENT_REFUND,
}) | TRANSITION_PERMISSIONS

RESCHEDULABLE_STATUSES = frozenset({BookingStatus.PENDING, BookingStatus.CONFIRMED})


@dataclass(frozen=True)
class BookingPatch:
    """
    Sparse update; None means "not supplied".

    An empty string for notes or special_requests clears the field.
    ``cancellation_reason`` is only read together with status "cancelled".
    """
    notes: str | None = None
    special_requests: str | None = None
    status: BookingStatus | str | None = None
    cancellation_reason: str | None = None
    payment: PaymentPatch | None = None

    @property
    def has_known_field(self) -> bool:
        return any(v is not None for v in (self.notes, self.special_requests, self.status, self.payment))

    @property
    def touches_text(self) -> bool:
        return self.notes is not None or self.special_requests is not None


def require_update_access(principal: Principal):
    if not any(principal.has_permission(p) for p in UPDATE_PERMISSIONS):
        raise Forbidden("Missing update permissions")


def apply_booking_patch(booking: Booking, principal: Principal, patch: BookingPatch,
                        now: datetime | None = None) -> List[PaymentTransaction]:
    """
    Apply ``patch`` to ``booking`` and return the appended ledger entries.

    Raises before any change if the patch is empty or any part of it is
    invalid or not permitted.
    """
    require_update_access(principal)
    if not patch.has_known_field:
        raise ValidationError("No valid update fields provided")

    if patch.touches_text:
        principal.require(Permission.BOOKING_UPDATE)
    notes = None
    special_requests = None
    if patch.notes is not None:
        notes = validate_text(patch.notes, name='Notes', max_length=NOTES_MAX_LENGTH)
    if patch.special_requests is not None:
        special_requests = validate_text(
            patch.special_requests, name='Special requests', max_length=SPECIAL_REQUESTS_MAX_LENGTH,
        )
    target = None
    if patch.status:
        target = authorize_transition(booking, patch.status, principal)
    if patch.payment is not None and patch.payment.is_empty:
        raise ValidationError("Payment update is empty")
    if target is None and notes is None and special_requests is None and patch.payment is None:
        raise ValidationError("No applicable changes to update")

    now = now or utcnow()
    appended = []
    # apply_payment_update validates the whole payment patch before changing anything
    if patch.payment is not None:
        appended = apply_payment_update(booking, principal, patch.payment, now=now)
    if notes is not None:
        booking.notes = notes
    if special_requests is not None:
        booking.special_requests = special_requests
    if target is not None:
        transition(booking, target, principal, reason=patch.cancellation_reason, now=now)
    booking.touch(principal.user_id, now)
    return appended


def check_room_for_stay(room: RoomInfo, hotel_id, guests: GuestCount):
    """Room must belong to the booking's hotel, be active and fit the party."""
    if room.hotel_id != hotel_id or not room.is_active:
        raise NotFound("Room not found", room_id=str(room.id))
    if not room.fits(guests):
        raise ValidationError(
            f"Room {room.room_number} cannot accommodate {guests.adults} adults "
            f"and {guests.children} children",
            capacity_adults=room.capacity_adults,
            capacity_children=room.capacity_children,
        )


def reschedule(booking: Booking, principal: Principal, period: StayPeriod, room: RoomInfo,
               now: datetime | None = None):
    """
    Move a pending or confirmed booking to new dates and/or another room.

    The pricing snapshot is kept. Availability is the caller's job since it
    needs the other bookings of the room.
    """
    principal.require(Permission.BOOKING_UPDATE)
    if booking.status not in RESCHEDULABLE_STATUSES:
        raise InvalidTransition(
            f"Cannot reschedule a {booking.status.value} booking",
            current=booking.status.value,
        )
    check_room_for_stay(room, booking.hotel_id, booking.guests)

    now = now or utcnow()
    booking.period = period
    booking.room_id = room.id
    booking.touch(principal.user_id, now)
    booking.add_event(BookingRescheduled(
        aggregate_id=booking.id,
        booking_id=booking.id,
        hotel_id=booking.hotel_id,
        room_id=room.id,
        check_in=period.check_in,
        check_out=period.check_out,
    ))
