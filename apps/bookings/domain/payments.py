"""
Payment ledger operations

Each operation checks permissions and validates its input before the
ledger is touched. ``apply_payment_update`` does the same for a whole
payment patch, so a request either applies completely or not at all.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, List

from apps.users.permissions import Permission
from apps.users.principal import Principal
from shared.domain.base import utcnow
from shared.domain.errors import InvalidAmount, InvalidMethod, InvalidStatus, ValidationError
from shared.domain.value_objects import to_money

from .entities import Booking, PaymentMethod, PaymentStatus, PaymentTransaction
from .events import PaymentRecorded

REFERENCE_MAX_LENGTH = 100


def derive_status(paid_amount: Decimal, total: Decimal) -> PaymentStatus:
    """
    paid when the total is covered, partial for anything in between,
    pending for nothing paid. Never returns REFUNDED.
    """
    if total > 0 and paid_amount >= total:
        return PaymentStatus.PAID
    if paid_amount > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING


def parse_amount(value: Any, *, allow_zero: bool = False) -> Decimal:
    amount = to_money(value)
    if amount < 0 or (amount == 0 and not allow_zero):
        raise InvalidAmount(
            "Amount must be zero or greater" if allow_zero else "Amount must be greater than zero"
        )
    return amount


def parse_method(value: PaymentMethod | str) -> PaymentMethod:
    if isinstance(value, PaymentMethod):
        return value
    try:
        return PaymentMethod(str(value or ''))
    except ValueError:
        raise InvalidMethod(f"Unknown payment method {value!r}")


def parse_payment_status(value: PaymentStatus | str) -> PaymentStatus:
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(str(value or ''))
    except ValueError:
        raise InvalidStatus(f"Unknown payment status {value!r}")


def parse_reference(value: Any) -> str | None:
    if value is None:
        return None
    reference = str(value).strip()
    if len(reference) > REFERENCE_MAX_LENGTH:
        raise ValidationError(f"Payment reference cannot exceed {REFERENCE_MAX_LENGTH} characters")
    return reference or None


@dataclass(frozen=True)
class NewPayment:
    amount: Any
    method: PaymentMethod | str
    reference: str | None = None


@dataclass(frozen=True)
class PaymentPatch:
    """Sparse payment update; None means "not supplied"."""
    add_payment: NewPayment | None = None
    status: PaymentStatus | str | None = None
    paid_amount: Any = None

    @property
    def is_empty(self) -> bool:
        return self.add_payment is None and not self.status and self.paid_amount is None


def _require_create(principal: Principal):
    principal.require(Permission.PAYMENT_CREATE)


def _require_refund_if_needed(principal: Principal, status: PaymentStatus):
    if status is PaymentStatus.REFUNDED:
        principal.require(Permission.PAYMENT_REFUND)


def _check_not_below_ledger(amount: Decimal, ledger_total: Decimal):
    if amount < ledger_total:
        raise InvalidAmount(
            f"Paid amount {amount} cannot be lower than recorded transactions ({ledger_total})",
            ledger_total=str(ledger_total),
        )


def _append(booking: Booking, principal: Principal, amount: Decimal, method: PaymentMethod,
            reference: str | None, derive: bool, now: datetime) -> PaymentTransaction:
    transaction = booking.payment.append(amount, method, now, reference)
    if derive:
        booking.payment.status = derive_status(booking.payment.paid_amount, booking.pricing.total)
    booking.touch(principal.user_id, now)
    booking.add_event(PaymentRecorded(
        aggregate_id=booking.id,
        booking_id=booking.id,
        hotel_id=booking.hotel_id,
        booking_number=booking.booking_number,
        amount=amount,
        method=method.value,
        paid_amount=booking.payment.paid_amount,
        payment_status=booking.payment.status.value,
    ))
    return transaction


def add_transaction(
    booking: Booking,
    principal: Principal,
    amount,
    method: PaymentMethod | str,
    reference: str | None = None,
    *,
    derive: bool = True,
    now: datetime | None = None,
) -> PaymentTransaction:
    """Append a transaction and recompute the derived status (unless ``derive`` is off)."""
    _require_create(principal)
    parsed_amount = parse_amount(amount)
    parsed_method = parse_method(method)
    parsed_reference = parse_reference(reference)
    return _append(booking, principal, parsed_amount, parsed_method, parsed_reference, derive, now or utcnow())


def set_status(booking: Booking, principal: Principal, status: PaymentStatus | str,
               now: datetime | None = None) -> PaymentStatus:
    """Explicit status write; REFUNDED additionally needs payment:refund."""
    _require_create(principal)
    parsed = parse_payment_status(status)
    _require_refund_if_needed(principal, parsed)
    booking.payment.status = parsed
    booking.touch(principal.user_id, now)
    return parsed


def set_paid_amount(booking: Booking, principal: Principal, amount, *, derive: bool = True,
                    now: datetime | None = None) -> Decimal:
    """Override the cached paid amount; it may not drop below the ledger sum."""
    _require_create(principal)
    parsed = parse_amount(amount, allow_zero=True)
    _check_not_below_ledger(parsed, booking.payment.ledger_total)
    booking.payment.paid_amount = parsed
    if derive:
        booking.payment.status = derive_status(parsed, booking.pricing.total)
    booking.touch(principal.user_id, now)
    return parsed


def apply_payment_update(booking: Booking, principal: Principal, patch: PaymentPatch,
                         now: datetime | None = None) -> List[PaymentTransaction]:
    """
    Apply a payment patch: add payment, then explicit status, then paid amount.

    An explicit status in the patch wins over the derived one. Returns the
    appended transactions.
    """
    if patch.is_empty:
        raise ValidationError("Payment update is empty")

    # Authorize and validate everything first
    _require_create(principal)
    new_payment = None
    if patch.add_payment is not None:
        new_payment = (
            parse_amount(patch.add_payment.amount),
            parse_method(patch.add_payment.method),
            parse_reference(patch.add_payment.reference),
        )
    explicit_status = None
    if patch.status:
        explicit_status = parse_payment_status(patch.status)
        _require_refund_if_needed(principal, explicit_status)
    paid_amount = None
    if patch.paid_amount is not None:
        paid_amount = parse_amount(patch.paid_amount, allow_zero=True)
        ledger_after = booking.payment.ledger_total + (new_payment[0] if new_payment else Decimal('0'))
        _check_not_below_ledger(paid_amount, ledger_after)

    now = now or utcnow()
    appended = []
    derive = explicit_status is None
    if explicit_status is not None:
        booking.payment.status = explicit_status
    if new_payment is not None:
        amount, method, reference = new_payment
        appended.append(_append(booking, principal, amount, method, reference, derive, now))
    if paid_amount is not None:
        booking.payment.paid_amount = paid_amount
        if derive:
            booking.payment.status = derive_status(paid_amount, booking.pricing.total)
    booking.touch(principal.user_id, now)
    return appended
