"""Availability checks over already-loaded bookings.

The repository narrows candidates with the same predicate in SQL; this
module is the single definition of what counts as a conflict.
"""

from typing import Iterable, List
from uuid import UUID

from shared.domain.value_objects import StayPeriod

from .entities import ACTIVE_STATUSES, Booking


def blocks(booking: Booking, period: StayPeriod, exclude_booking_id: UUID | None = None) -> bool:
    """True if ``booking`` holds its room for any part of ``period``."""
    if exclude_booking_id is not None and booking.id == exclude_booking_id:
        return False
    if booking.status not in ACTIVE_STATUSES:
        return False
    return booking.period.overlaps_with(period)


def conflicting_bookings(
    existing: Iterable[Booking],
    period: StayPeriod,
    exclude_booking_id: UUID | None = None,
) -> List[Booking]:
    return [b for b in existing if blocks(b, period, exclude_booking_id)]


def has_conflict(
    existing: Iterable[Booking],
    period: StayPeriod,
    exclude_booking_id: UUID | None = None,
) -> bool:
    """
    Half-open overlap against active bookings of one room.

    Callers pass only bookings of the same hotel and room.
    """
    return any(blocks(b, period, exclude_booking_id) for b in existing)
