"""
Common Value Objects

- StayPeriod: half-open [check_in, check_out) interval of aware datetimes
- money helpers: parsing and rounding of monetary amounts
"""

import math
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from zoneinfo import ZoneInfo

from shared.domain.base import ValueObject
from shared.domain.errors import InvalidAmount, ValidationError

CENT = Decimal('0.01')
DAY = timedelta(days=1)


def to_decimal(value) -> Decimal:
    """
    Convert user input to a finite Decimal

    Accepts Decimal, int, float and numeric strings. Booleans, NaN,
    infinities and garbage raise InvalidAmount.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmount(f"Amount must be a number, got {value!r}")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise InvalidAmount(f"Amount must be a number, got {value!r}")
    if not amount.is_finite():
        raise InvalidAmount("Amount must be finite")
    return amount


def to_money(value) -> Decimal:
    """``to_decimal`` limited to whole cents, the precision money columns store."""
    amount = to_decimal(value)
    if amount != amount.quantize(CENT, rounding=ROUND_HALF_UP):
        raise InvalidAmount("Amount cannot have more than 2 decimal places")
    return amount


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class StayPeriod(ValueObject):
    """
    Stay period value object

    Represents [check_in, check_out): check_in inclusive, check_out exclusive.
    Adjacent periods (one ends when the next starts) do not overlap.
    """
    check_in: datetime
    check_out: datetime

    def __post_init__(self):
        if self.check_in.tzinfo is None or self.check_out.tzinfo is None:
            raise ValidationError("Check-in and check-out must be timezone-aware")
        if self.check_out <= self.check_in:
            raise ValidationError(
                f"Check-out ({self.check_out.isoformat()}) must be after "
                f"check-in ({self.check_in.isoformat()})"
            )

    @classmethod
    def from_dates(
        cls,
        check_in_date: date | datetime,
        check_out_date: date | datetime,
        *,
        check_in_time: time,
        check_out_time: time,
        tz: str,
    ) -> 'StayPeriod':
        """
        Build a period from calendar dates and the hotel's check-in/out times

        Datetimes are reduced to their calendar date in the hotel timezone
        before the hotel times are applied.
        """
        zone = ZoneInfo(tz)
        return cls(
            _at(check_in_date, check_in_time, zone),
            _at(check_out_date, check_out_time, zone),
        )

    def overlaps_with(self, other: 'StayPeriod') -> bool:
        # start1 < end2 AND end1 > start2
        return self.check_in < other.check_out and self.check_out > other.check_in

    def contains(self, moment: datetime) -> bool:
        return self.check_in <= moment < self.check_out

    @property
    def nights(self) -> int:
        """Whole nights, rounded up: a 22 hour stay is one night."""
        return math.ceil((self.check_out - self.check_in) / DAY)

    def __str__(self):
        return f"{self.check_in.isoformat()} - {self.check_out.isoformat()}"


def _at(value: date | datetime, at: time, zone: ZoneInfo) -> datetime:
    if isinstance(value, datetime):
        value = value.astimezone(zone).date() if value.tzinfo else value.date()
    return datetime.combine(value, at, tzinfo=zone)
