from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from apps.bookings.domain.availability import conflicting_bookings, has_conflict
from apps.bookings.domain.entities import BookingStatus
from shared.domain.value_objects import StayPeriod

RIYADH = ZoneInfo("Asia/Riyadh")


def period(start_day, end_day):
    return StayPeriod(
        datetime(2026, 11, start_day, 14, tzinfo=RIYADH),
        datetime(2026, 11, end_day, 12, tzinfo=RIYADH),
    )


def test_no_bookings_no_conflict():
    assert not has_conflict([], period(1, 3))


def test_overlapping_active_booking_conflicts(make_booking):
    existing = make_booking(status=BookingStatus.CONFIRMED)  # Nov 1 14:00 - Nov 3 12:00

    assert has_conflict([existing], period(2, 4))
    assert has_conflict([existing], period(1, 2))


def test_checkout_day_is_free_for_the_next_guest(make_booking):
    existing = make_booking()

    # Nov 3 14:00 starts after Nov 3 12:00
    assert not has_conflict([existing], period(3, 5))


@pytest.mark.parametrize("status", [BookingStatus.CANCELLED, BookingStatus.NO_SHOW, BookingStatus.CHECKED_OUT])
def test_closed_bookings_do_not_block(make_booking, status):
    assert not has_conflict([make_booking(status=status)], period(1, 3))


@pytest.mark.parametrize("status", [BookingStatus.PENDING, BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN])
def test_active_bookings_block(make_booking, status):
    assert has_conflict([make_booking(status=status)], period(1, 3))


def test_a_booking_does_not_conflict_with_itself(make_booking):
    existing = make_booking()

    assert not has_conflict([existing], period(1, 3), exclude_booking_id=existing.id)
    assert has_conflict([existing, make_booking()], period(1, 3), exclude_booking_id=existing.id)


def test_conflicting_bookings_lists_only_blockers(make_booking):
    blocker = make_booking()
    cancelled = make_booking(status=BookingStatus.CANCELLED)

    assert conflicting_bookings([blocker, cancelled], period(2, 3)) == [blocker]
