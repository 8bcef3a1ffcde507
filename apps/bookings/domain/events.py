"""
Booking Domain Events

Published by the Unit of Work after the transaction commits.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from shared.domain.base import DomainEvent


@dataclass(kw_only=True)
class BookingCreated(DomainEvent):
    """
    Event: a booking was created

    Triggers:
    - "new booking" entry in the hotel notification log
    """
    booking_id: UUID
    hotel_id: UUID
    booking_number: str
    room_id: UUID
    room_number: str
    guest_id: UUID
    guest_name: str
    check_in: datetime
    check_out: datetime
    total: Decimal


@dataclass(kw_only=True)
class BookingStatusChanged(DomainEvent):
    booking_id: UUID
    hotel_id: UUID
    old_status: str
    new_status: str


@dataclass(kw_only=True)
class BookingCancelled(DomainEvent):
    """
    Event: a booking was cancelled (PENDING/CONFIRMED -> CANCELLED)

    Triggers:
    - "booking cancelled" entry in the hotel notification log
    """
    booking_id: UUID
    hotel_id: UUID
    booking_number: str
    reason: str | None
    old_status: str


@dataclass(kw_only=True)
class PaymentRecorded(DomainEvent):
    """
    Event: a transaction was appended to a booking's ledger

    Triggers:
    - "payment received" entry in the hotel notification log
    """
    booking_id: UUID
    hotel_id: UUID
    booking_number: str
    amount: Decimal
    method: str
    paid_amount: Decimal
    payment_status: str


@dataclass(kw_only=True)
class BookingRescheduled(DomainEvent):
    booking_id: UUID
    hotel_id: UUID
    room_id: UUID
    check_in: datetime
    check_out: datetime
