from decimal import Decimal

import pytest

from apps.bookings.domain.entities import PaymentMethod, PaymentStatus
from apps.bookings.domain.events import PaymentRecorded
from apps.bookings.domain.payments import (
    NewPayment,
    PaymentPatch,
    add_transaction,
    apply_payment_update,
    derive_status,
    set_paid_amount,
    set_status,
)
from apps.users.permissions import Permission, Role
from shared.domain.errors import Forbidden, InvalidAmount, InvalidMethod, InvalidStatus, ValidationError


@pytest.mark.parametrize("paid, total, expected", [
    ("0", "690", PaymentStatus.PENDING),
    ("100", "690", PaymentStatus.PARTIAL),
    ("690", "690", PaymentStatus.PAID),
    ("700", "690", PaymentStatus.PAID),
    ("10", "0", PaymentStatus.PARTIAL),
    ("0", "0", PaymentStatus.PENDING),
])
def test_derive_status(paid, total, expected):
    assert derive_status(Decimal(paid), Decimal(total)) is expected


def test_add_transaction_appends_and_derives(make_booking, receptionist):
    booking = make_booking()

    first = add_transaction(booking, receptionist, 200, "cash")
    second = add_transaction(booking, receptionist, "490", PaymentMethod.CARD, reference=" RCPT-9 ")

    assert (first.sequence, second.sequence) == (1, 2)
    assert second.reference == "RCPT-9"
    assert booking.payment.paid_amount == Decimal("690")
    assert booking.payment.ledger_total == Decimal("690")
    assert booking.payment.status is PaymentStatus.PAID
    assert [type(e) for e in booking.events] == [PaymentRecorded, PaymentRecorded]
    assert booking.events[0].payment_status == "partial"


@pytest.mark.parametrize("amount", [0, -5, "abc", None, True, float("nan")])
def test_add_transaction_rejects_bad_amounts(make_booking, receptionist, amount):
    booking = make_booking()

    with pytest.raises(InvalidAmount):
        add_transaction(booking, receptionist, amount, "cash")
    assert booking.payment.transactions == []


@pytest.mark.parametrize("amount", ["0.004", "10.001", Decimal("0.005")])
def test_add_transaction_rejects_sub_cent_amounts(make_booking, receptionist, amount):
    booking = make_booking()

    with pytest.raises(InvalidAmount):
        add_transaction(booking, receptionist, amount, "cash")
    assert booking.payment.transactions == []
    assert booking.payment.status is PaymentStatus.PENDING


def test_set_paid_amount_rejects_sub_cent_amounts(make_booking, admin):
    booking = make_booking()

    with pytest.raises(InvalidAmount):
        set_paid_amount(booking, admin, "0.001")
    assert booking.payment.paid_amount == Decimal("0")


def test_add_transaction_rejects_unknown_method(make_booking, receptionist):
    with pytest.raises(InvalidMethod):
        add_transaction(make_booking(), receptionist, 10, "crypto")


def test_reference_is_limited(make_booking, receptionist):
    with pytest.raises(ValidationError):
        add_transaction(make_booking(), receptionist, 10, "cash", reference="x" * 101)


def test_payment_create_is_required(make_booking, make_principal):
    with pytest.raises(Forbidden):
        add_transaction(make_booking(), make_principal(Role.HOUSEKEEPING), 10, "cash")


def test_refund_requires_refund_permission(make_booking, receptionist, make_principal):
    booking = make_booking()

    with pytest.raises(Forbidden):
        set_status(booking, receptionist, "refunded")
    assert booking.payment.status is PaymentStatus.PENDING

    accountant = make_principal(Role.ACCOUNTANT)
    set_status(booking, accountant, "refunded")
    assert booking.payment.status is PaymentStatus.REFUNDED


def test_set_status_rejects_unknown_values(make_booking, receptionist):
    with pytest.raises(InvalidStatus):
        set_status(make_booking(), receptionist, "settled")


def test_set_paid_amount_derives_status(make_booking, receptionist):
    booking = make_booking()

    set_paid_amount(booking, receptionist, "690")
    assert booking.payment.status is PaymentStatus.PAID

    set_paid_amount(booking, receptionist, 0)
    assert booking.payment.status is PaymentStatus.PENDING


def test_set_paid_amount_cannot_go_below_the_ledger(make_booking, receptionist):
    booking = make_booking()
    add_transaction(booking, receptionist, 300, "cash")

    with pytest.raises(InvalidAmount):
        set_paid_amount(booking, receptionist, 299)
    assert booking.payment.paid_amount == Decimal("300")


def test_round_trip_ends_paid(make_booking, receptionist):
    booking = make_booking()

    add_transaction(booking, receptionist, "345", "cash")
    assert booking.payment.status is PaymentStatus.PARTIAL
    add_transaction(booking, receptionist, "345", "bank_transfer")
    assert booking.payment.status is PaymentStatus.PAID


class TestApplyPaymentUpdate:
    def test_empty_patch_is_rejected(self, make_booking, receptionist):
        with pytest.raises(ValidationError):
            apply_payment_update(make_booking(), receptionist, PaymentPatch())

    def test_add_payment_with_derived_status(self, make_booking, receptionist):
        booking = make_booking()

        appended = apply_payment_update(booking, receptionist, PaymentPatch(add_payment=NewPayment(100, "card")))

        assert [t.amount for t in appended] == [Decimal("100")]
        assert booking.payment.status is PaymentStatus.PARTIAL

    def test_explicit_status_wins_over_derived(self, make_booking, receptionist):
        booking = make_booking()

        apply_payment_update(booking, receptionist, PaymentPatch(
            add_payment=NewPayment(100, "cash"),
            status="paid",
        ))

        assert booking.payment.status is PaymentStatus.PAID
        assert booking.events[0].payment_status == "paid"

    def test_paid_amount_is_checked_against_the_new_ledger(self, make_booking, receptionist):
        booking = make_booking()

        with pytest.raises(InvalidAmount):
            apply_payment_update(booking, receptionist, PaymentPatch(
                add_payment=NewPayment(200, "cash"),
                paid_amount=150,
            ))
        assert booking.payment.transactions == []

        apply_payment_update(booking, receptionist, PaymentPatch(
            add_payment=NewPayment(200, "cash"),
            paid_amount=690,
        ))
        assert booking.payment.paid_amount == Decimal("690")
        assert booking.payment.status is PaymentStatus.PAID

    def test_invalid_part_leaves_the_booking_untouched(self, make_booking, receptionist):
        booking = make_booking()

        with pytest.raises(Forbidden):
            apply_payment_update(booking, receptionist, PaymentPatch(
                add_payment=NewPayment(100, "cash"),
                status="refunded",
            ))

        assert booking.payment.transactions == []
        assert booking.payment.status is PaymentStatus.PENDING
        assert booking.events == []

    def test_refund_with_permission(self, make_booking, make_principal):
        booking = make_booking()
        principal = make_principal(Role.RECEPTIONIST, permissions=[Permission.PAYMENT_REFUND])

        apply_payment_update(booking, principal, PaymentPatch(status="refunded"))

        assert booking.payment.status is PaymentStatus.REFUNDED
