"""Pricing calculator.

Pure function of its inputs; the result is captured once into the booking.
"""

import math
from datetime import datetime
from decimal import Decimal

from shared.domain.errors import InvalidDuration, ValidationError
from shared.domain.value_objects import DAY, round_money, to_decimal, to_money

from .entities import PricingSnapshot


def count_nights(check_in: datetime, check_out: datetime) -> int:
    """
    Nights between two moments, rounded up to whole days.

    14:00 on day one to 12:00 on day two is one night, not zero.
    """
    try:
        nights = math.ceil((check_out - check_in) / DAY)
    except (TypeError, OverflowError, ValueError):
        raise InvalidDuration("Invalid check-in or check-out")
    if nights < 1:
        raise InvalidDuration("A stay must last at least one night", nights=nights)
    return nights


def compute_pricing(room_rate, check_in: datetime, check_out: datetime, tax_rate_percent) -> PricingSnapshot:
    """
    subtotal = rate * nights, taxes = subtotal * tax% / 100, total = subtotal + taxes

    Monetary values are rounded half-up to cents.
    """
    rate = to_money(room_rate)
    tax_rate = to_decimal(tax_rate_percent)
    if rate < 0:
        raise ValidationError("Room rate cannot be negative")
    if tax_rate < 0:
        raise ValidationError("Tax rate cannot be negative")

    nights = count_nights(check_in, check_out)
    subtotal = round_money(rate * nights)
    taxes = round_money(subtotal * tax_rate / Decimal('100'))
    return PricingSnapshot(
        room_rate=rate,
        nights=nights,
        subtotal=subtotal,
        taxes=taxes,
        discount=Decimal('0.00'),
        total=subtotal + taxes,
    )
