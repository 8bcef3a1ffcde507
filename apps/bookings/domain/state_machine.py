"""
Booking status state machine

Every status change goes through ``transition``. The edge table and the
permission table below are the whole policy.
"""

from datetime import datetime

from apps.users.permissions import Permission
from apps.users.principal import Principal
from shared.domain.base import utcnow
from shared.domain.errors import Forbidden, InvalidTransition

from .entities import Booking, BookingStatus
from .events import BookingCancelled, BookingStatusChanged

S = BookingStatus

ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    S.PENDING: frozenset({S.CONFIRMED, S.CANCELLED}),
    S.CONFIRMED: frozenset({S.CHECKED_IN, S.CANCELLED, S.NO_SHOW}),
    S.CHECKED_IN: frozenset({S.CHECKED_OUT}),
    S.CHECKED_OUT: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

STATUS_PERMISSIONS: dict[BookingStatus, Permission] = {
    S.CONFIRMED: Permission.BOOKING_CONFIRM,
    S.CANCELLED: Permission.BOOKING_CANCEL,
    S.CHECKED_IN: Permission.BOOKING_CHECKIN,
    S.CHECKED_OUT: Permission.BOOKING_CHECKOUT,
    S.NO_SHOW: Permission.BOOKING_CANCEL,
}

TRANSITION_PERMISSIONS = frozenset(STATUS_PERMISSIONS.values())

TERMINAL_STATUSES = frozenset(s for s, targets in ALLOWED_TRANSITIONS.items() if not targets)


def parse_status(value: BookingStatus | str) -> BookingStatus:
    """Unknown status strings are reported as invalid transitions."""
    if isinstance(value, BookingStatus):
        return value
    try:
        return BookingStatus(str(value))
    except ValueError:
        raise InvalidTransition(f"Unknown booking status {value!r}")


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def authorize_transition(booking: Booking, target_status: BookingStatus | str, principal: Principal) -> BookingStatus:
    """
    Check edge and permission without touching the booking.

    booking:update supersedes every transition-specific permission.
    """
    target = parse_status(target_status)

    if not can_transition(booking.status, target):
        raise InvalidTransition(
            f"Cannot move booking from {booking.status.value} to {target.value}",
            current=booking.status.value,
            target=target.value,
        )

    required = STATUS_PERMISSIONS.get(target)
    if (
        required is not None
        and not principal.has_permission(Permission.BOOKING_UPDATE)
        and not principal.has_permission(required)
    ):
        raise Forbidden(
            f"Missing permission {required.value}",
            permission=required.value,
        )
    return target


def transition(
    booking: Booking,
    target_status: BookingStatus | str,
    principal: Principal,
    reason: str | None = None,
    now: datetime | None = None,
) -> BookingStatus:
    """
    Move ``booking`` to ``target_status`` and apply the side effects.

    Returns the previous status. Raises InvalidTransition or Forbidden
    before any field is changed.
    """
    target = authorize_transition(booking, target_status, principal)
    now = now or utcnow()
    old_status = booking.status

    booking.status = target
    if target is S.CHECKED_IN and booking.actual_check_in is None:
        booking.actual_check_in = now
    elif target is S.CHECKED_OUT and booking.actual_check_out is None:
        booking.actual_check_out = now
    elif target is S.CANCELLED:
        booking.cancelled_at = now
        if isinstance(reason, str) and reason.strip():
            booking.cancellation_reason = reason.strip()

    booking.touch(principal.user_id, now)
    booking.add_event(BookingStatusChanged(
        aggregate_id=booking.id,
        booking_id=booking.id,
        hotel_id=booking.hotel_id,
        old_status=old_status.value,
        new_status=target.value,
    ))
    if target is S.CANCELLED:
        booking.add_event(BookingCancelled(
            aggregate_id=booking.id,
            booking_id=booking.id,
            hotel_id=booking.hotel_id,
            booking_number=booking.booking_number,
            reason=booking.cancellation_reason,
            old_status=old_status.value,
        ))
    return old_status
