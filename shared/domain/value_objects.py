"""
Common Value Objects

- Money: monetary amount with currency, used for booking totals
- DateRange: a pair of calendar dates with explicit day expansion
"""

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal
from typing import List

from shared.domain.base import ValueObject

SUPPORTED_CURRENCIES = ('USD', 'EUR', 'GBP', 'KZT')


@dataclass(frozen=True)
class Money(ValueObject):
    """
    Money value object

    Amounts are kept as Decimal and never go negative.
    """
    amount: Decimal
    currency: str = 'USD'

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, 'amount', Decimal(str(self.amount)))
        if self.amount < 0:
            raise ValueError("Amount cannot be negative")
        if self.currency not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Unsupported currency: {self.currency}")

    @classmethod
    def zero(cls, currency: str = 'USD') -> 'Money':
        return cls(Decimal('0'), currency)

    def __add__(self, other: 'Money') -> 'Money':
        if not isinstance(other, Money):
            raise TypeError("Can only add Money to Money")
        if self.currency != other.currency:
            raise ValueError(f"Cannot add different currencies: {self.currency} and {other.currency}")
        return Money(self.amount + other.amount, self.currency)

    def __mul__(self, factor: int) -> 'Money':
        if not isinstance(factor, (int, Decimal)):
            raise TypeError("Can only multiply Money by an integer or Decimal")
        return Money(self.amount * factor, self.currency)

    def quantize(self) -> Decimal:
        """Amount rounded to cents, as stored in the database"""
        return self.amount.quantize(Decimal('0.01'))

    def __str__(self):
        return f"{self.amount:,.2f} {self.currency}"

    def __repr__(self):
        return f"Money({self.amount}, '{self.currency}')"


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Date range value object

    A plain (start_date, end_date) pair. Whether end_date is part of the
    range depends on the caller, so expansion into days takes an explicit
    ``inclusive_end`` flag. Inverted ranges are allowed and expand to
    no days at all.
    """
    start_date: date
    end_date: date

    @property
    def is_inverted(self) -> bool:
        return self.end_date < self.start_date

    def days(self, inclusive_end: bool = True) -> List[date]:
        """
        Expand into consecutive calendar days

        Examples:
            DateRange(1 Jan, 3 Jan).days()                    -> [1, 2, 3 Jan]
            DateRange(1 Jan, 3 Jan).days(inclusive_end=False) -> [1, 2 Jan]
            DateRange(3 Jan, 1 Jan).days()                    -> []
        """
        last = self.end_date if inclusive_end else self.end_date - timedelta(days=1)
        span = (last - self.start_date).days
        return [self.start_date + timedelta(days=offset) for offset in range(span + 1)]

    def overlaps_with(self, other: 'DateRange') -> bool:
        """
        Closed-interval overlap: ranges sharing an endpoint overlap.

        Used as the coarse prefilter before per-day coverage is applied.
        """
        if not isinstance(other, DateRange):
            raise TypeError("Can only check overlap with another DateRange")
        return self.start_date <= other.end_date and self.end_date >= other.start_date

    @property
    def nights(self) -> int:
        """Number of nights between the two dates, never negative"""
        return max(0, (self.end_date - self.start_date).days)

    def __str__(self):
        return f"{self.start_date.isoformat()} - {self.end_date.isoformat()}"

    def __repr__(self):
        return f"DateRange({self.start_date}, {self.end_date})"
