from datetime import datetime
from decimal import Decimal
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from apps.bookings.domain.entities import BookingStatus, PaymentStatus, RoomInfo
from apps.bookings.domain.events import BookingRescheduled
from apps.bookings.domain.payments import NewPayment, PaymentPatch
from apps.bookings.domain.updates import BookingPatch, apply_booking_patch, reschedule
from apps.users.permissions import Permission, Role
from shared.domain.errors import Forbidden, InvalidTransition, NotFound, ValidationError
from shared.domain.value_objects import StayPeriod

RIYADH = ZoneInfo("Asia/Riyadh")


def test_principal_without_any_update_permission_is_forbidden(make_booking, make_principal):
    with pytest.raises(Forbidden):
        apply_booking_patch(make_booking(), make_principal(Role.HOUSEKEEPING), BookingPatch(notes="x"))


def test_patch_without_known_fields_is_rejected(make_booking, receptionist):
    with pytest.raises(ValidationError):
        apply_booking_patch(make_booking(), receptionist, BookingPatch())
    with pytest.raises(ValidationError):
        apply_booking_patch(make_booking(), receptionist, BookingPatch(cancellation_reason="why"))


def test_notes_need_booking_update(make_booking, make_principal):
    accountant = make_principal(Role.ACCOUNTANT)

    with pytest.raises(Forbidden):
        apply_booking_patch(make_booking(), accountant, BookingPatch(notes="late arrival"))


def test_notes_and_special_requests(make_booking, receptionist):
    booking = make_booking(notes="old")

    apply_booking_patch(booking, receptionist, BookingPatch(notes="", special_requests="Sea view"))

    assert booking.notes == ""
    assert booking.special_requests == "Sea view"
    assert booking.last_modified_by == receptionist.user_id


def test_text_limits(make_booking, receptionist):
    with pytest.raises(ValidationError):
        apply_booking_patch(make_booking(), receptionist, BookingPatch(notes="x" * 1001))
    with pytest.raises(ValidationError):
        apply_booking_patch(make_booking(), receptionist, BookingPatch(special_requests="x" * 501))


def test_status_goes_through_the_state_machine(make_booking, receptionist):
    booking = make_booking(status=BookingStatus.CONFIRMED)

    apply_booking_patch(booking, receptionist, BookingPatch(status="cancelled", cancellation_reason=" flight "))

    assert booking.status is BookingStatus.CANCELLED
    assert booking.cancellation_reason == "flight"


def test_accountant_can_record_payment_but_not_change_status(make_booking, make_principal):
    accountant = make_principal(Role.ACCOUNTANT)
    booking = make_booking()

    apply_booking_patch(booking, accountant, BookingPatch(payment=PaymentPatch(add_payment=NewPayment(690, "cash"))))
    assert booking.payment.status is PaymentStatus.PAID

    with pytest.raises(Forbidden):
        apply_booking_patch(booking, accountant, BookingPatch(status="confirmed"))


def test_nothing_changes_when_the_payment_part_fails(make_booking, receptionist):
    booking = make_booking(notes="keep")

    with pytest.raises(Forbidden):
        apply_booking_patch(booking, receptionist, BookingPatch(
            notes="changed",
            status="confirmed",
            payment=PaymentPatch(status="refunded"),
        ))

    assert booking.notes == "keep"
    assert booking.status is BookingStatus.PENDING
    assert booking.events == []


def test_invalid_transition_is_reported_before_the_payment_is_applied(make_booking, receptionist):
    booking = make_booking(status=BookingStatus.CHECKED_OUT)

    with pytest.raises(InvalidTransition):
        apply_booking_patch(booking, receptionist, BookingPatch(
            status="confirmed",
            payment=PaymentPatch(add_payment=NewPayment(10, "cash")),
        ))
    assert booking.payment.transactions == []


def test_empty_status_alone_changes_nothing(make_booking, receptionist):
    with pytest.raises(ValidationError):
        apply_booking_patch(make_booking(), receptionist, BookingPatch(status=""))


def _new_period():
    return StayPeriod(datetime(2026, 11, 10, 14, tzinfo=RIYADH), datetime(2026, 11, 12, 12, tzinfo=RIYADH))


def test_reschedule_keeps_pricing(make_booking, receptionist, room):
    booking = make_booking(status=BookingStatus.CONFIRMED)
    pricing = booking.pricing

    reschedule(booking, receptionist, _new_period(), room)

    assert booking.period == _new_period()
    assert booking.pricing == pricing
    assert isinstance(booking.events[-1], BookingRescheduled)


@pytest.mark.parametrize("status", [BookingStatus.CHECKED_IN, BookingStatus.CANCELLED, BookingStatus.CHECKED_OUT])
def test_reschedule_only_before_arrival(make_booking, receptionist, room, status):
    with pytest.raises(InvalidTransition):
        reschedule(make_booking(status=status), receptionist, _new_period(), room)


def test_reschedule_needs_booking_update(make_booking, make_principal, room):
    principal = make_principal(Role.HOUSEKEEPING, permissions=[Permission.BOOKING_CONFIRM])

    with pytest.raises(Forbidden):
        reschedule(make_booking(), principal, _new_period(), room)


def test_reschedule_rejects_rooms_of_other_hotels_and_small_rooms(make_booking, receptionist, hotel):
    booking = make_booking()
    foreign = RoomInfo(id=uuid4(), hotel_id=uuid4(), room_number="9", price_per_night=Decimal("1"))
    single = RoomInfo(id=uuid4(), hotel_id=hotel.id, room_number="10", price_per_night=Decimal("1"),
                      capacity_adults=1)

    with pytest.raises(NotFound):
        reschedule(booking, receptionist, _new_period(), foreign)
    with pytest.raises(ValidationError):
        reschedule(booking, receptionist, _new_period(), single)
