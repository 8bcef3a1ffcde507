"""
Booking Domain Entities

- Booking: aggregate root for one reservation
- BookingStatus: lifecycle states (transitions live in state_machine.py)
- PaymentLedger: payment sub-record with its append-only transaction log
- HotelInfo / RoomInfo / GuestInfo: read-only views of the tenant data a
  booking references
"""

import secrets
from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from enum import Enum
from typing import List
from uuid import UUID

from shared.domain.base import Aggregate, ValueObject, utcnow
from shared.domain.errors import ValidationError
from shared.domain.value_objects import StayPeriod


class BookingStatus(Enum):
    """
    Booking lifecycle

    - PENDING -> CONFIRMED | CANCELLED
    - CONFIRMED -> CHECKED_IN | CANCELLED | NO_SHOW
    - CHECKED_IN -> CHECKED_OUT
    - CHECKED_OUT, CANCELLED, NO_SHOW are terminal
    """
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    CHECKED_IN = 'checked_in'
    CHECKED_OUT = 'checked_out'
    CANCELLED = 'cancelled'
    NO_SHOW = 'no_show'


# Only these statuses hold the room and take part in overlap checks.
ACTIVE_STATUSES = frozenset({
    BookingStatus.PENDING,
    BookingStatus.CONFIRMED,
    BookingStatus.CHECKED_IN,
})


class PaymentStatus(Enum):
    PENDING = 'pending'
    PARTIAL = 'partial'
    PAID = 'paid'
    REFUNDED = 'refunded'


class PaymentMethod(Enum):
    CASH = 'cash'
    CARD = 'card'
    BANK_TRANSFER = 'bank_transfer'
    ONLINE = 'online'


class BookingSource(Enum):
    DIRECT = 'direct'
    WEBSITE = 'website'
    PHONE = 'phone'
    WALKIN = 'walkin'
    OTA = 'ota'


SPECIAL_REQUESTS_MAX_LENGTH = 500
NOTES_MAX_LENGTH = 1000


@dataclass(frozen=True)
class GuestCount(ValueObject):
    adults: int
    children: int = 0

    def __post_init__(self):
        if isinstance(self.adults, bool) or not isinstance(self.adults, int) or self.adults < 1:
            raise ValidationError("At least one adult is required")
        if isinstance(self.children, bool) or not isinstance(self.children, int) or self.children < 0:
            raise ValidationError("Children count cannot be negative")

    @property
    def total(self) -> int:
        return self.adults + self.children


@dataclass(frozen=True)
class PricingSnapshot(ValueObject):
    """Prices captured once at creation; never recomputed afterwards."""
    room_rate: Decimal
    nights: int
    subtotal: Decimal
    taxes: Decimal
    discount: Decimal
    total: Decimal


@dataclass(frozen=True)
class PaymentTransaction(ValueObject):
    """One ledger entry. Sequence numbers start at 1 and follow arrival order."""
    sequence: int
    amount: Decimal
    method: PaymentMethod
    recorded_at: datetime
    reference: str | None = None


@dataclass
class PaymentLedger:
    """
    Payment sub-record of a booking

    ``transactions`` is append-only. ``paid_amount`` is a cached sum that an
    administrator may also set directly, never below the ledger sum.
    """
    status: PaymentStatus = PaymentStatus.PENDING
    paid_amount: Decimal = Decimal('0')
    transactions: List[PaymentTransaction] = field(default_factory=list)

    @property
    def ledger_total(self) -> Decimal:
        return sum((t.amount for t in self.transactions), Decimal('0'))

    @property
    def next_sequence(self) -> int:
        return len(self.transactions) + 1

    def append(self, amount: Decimal, method: PaymentMethod, recorded_at: datetime,
               reference: str | None = None) -> PaymentTransaction:
        transaction = PaymentTransaction(
            sequence=self.next_sequence,
            amount=amount,
            method=method,
            recorded_at=recorded_at,
            reference=reference,
        )
        self.transactions.append(transaction)
        self.paid_amount += amount
        return transaction


@dataclass(frozen=True)
class HotelInfo(ValueObject):
    """Tenant settings the booking core reads."""
    id: UUID
    name: str
    is_active: bool = True
    timezone: str = 'Asia/Riyadh'
    check_in_time: time = time(14, 0)
    check_out_time: time = time(12, 0)
    tax_rate: Decimal = Decimal('15')
    currency: str = 'SAR'
    notify_new_booking: bool = True
    notify_cancelled_booking: bool = True
    notify_payment_received: bool = True


@dataclass(frozen=True)
class RoomInfo(ValueObject):
    id: UUID
    hotel_id: UUID
    room_number: str
    price_per_night: Decimal
    capacity_adults: int = 2
    capacity_children: int = 0
    is_active: bool = True

    def fits(self, guests: GuestCount) -> bool:
        return (
            guests.adults <= self.capacity_adults
            and guests.total <= self.capacity_adults + self.capacity_children
        )


@dataclass(frozen=True)
class GuestInfo(ValueObject):
    id: UUID
    hotel_id: UUID
    full_name: str


def generate_booking_number(now: datetime | None = None) -> str:
    """BK + two-digit year + month + four random digits, e.g. BK26100042."""
    now = now or utcnow()
    return f"BK{now:%y%m}{secrets.randbelow(10000):04d}"


def validate_text(value: str | None, *, name: str, max_length: int) -> str:
    if value is None:
        return ''
    if not isinstance(value, str):
        raise ValidationError(f"{name} must be a string")
    if len(value) > max_length:
        raise ValidationError(f"{name} cannot exceed {max_length} characters")
    return value


@dataclass(kw_only=True, eq=False)
class Booking(Aggregate):
    """
    Booking Aggregate Root

    Key invariants:
    - room and guest belong to the booking's hotel
    - check_out > check_in (enforced by StayPeriod)
    - status moves only along the edges in state_machine.ALLOWED_TRANSITIONS
    - pricing is fixed at creation
    - ``version`` grows by one on every persisted write
    """

    hotel_id: UUID
    booking_number: str
    room_id: UUID
    guest_id: UUID
    period: StayPeriod
    guests: GuestCount
    pricing: PricingSnapshot
    payment: PaymentLedger = field(default_factory=PaymentLedger)
    status: BookingStatus = BookingStatus.PENDING
    source: BookingSource = BookingSource.DIRECT
    special_requests: str = ''
    notes: str = ''
    created_by: str = ''
    last_modified_by: str | None = None

    actual_check_in: datetime | None = None
    actual_check_out: datetime | None = None
    cancelled_at: datetime | None = None
    cancellation_reason: str | None = None

    version: int = 0

    @property
    def check_in(self) -> datetime:
        return self.period.check_in

    @property
    def check_out(self) -> datetime:
        return self.period.check_out

    @property
    def is_active(self) -> bool:
        """Active bookings hold their room"""
        return self.status in ACTIVE_STATUSES

    def touch(self, user_id: str, now: datetime | None = None):
        self.last_modified_by = user_id
        self.updated_at = now or utcnow()

    def audit_snapshot(self) -> dict:
        """Flat, JSON-friendly view used for before/after audit diffs."""
        return {
            'status': self.status.value,
            'room_id': str(self.room_id),
            'check_in': self.check_in.isoformat(),
            'check_out': self.check_out.isoformat(),
            'notes': self.notes,
            'special_requests': self.special_requests,
            'actual_check_in': _iso(self.actual_check_in),
            'actual_check_out': _iso(self.actual_check_out),
            'cancelled_at': _iso(self.cancelled_at),
            'cancellation_reason': self.cancellation_reason,
            'payment_status': self.payment.status.value,
            'paid_amount': str(self.payment.paid_amount),
            'transactions': len(self.payment.transactions),
        }

    def __str__(self):
        return f"Booking {self.booking_number} ({self.status.value})"

    def __repr__(self):
        return (
            f"Booking(id={self.id}, booking_number={self.booking_number}, "
            f"status={self.status.value}, period={self.period})"
        )


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def diff_snapshots(before: dict, after: dict) -> dict:
    """Fields whose value changed, as {field: {'before': ..., 'after': ...}}."""
    return {
        key: {'before': before.get(key), 'after': after.get(key)}
        for key in sorted(set(before) | set(after))
        if before.get(key) != after.get(key)
    }
