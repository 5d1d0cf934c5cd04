"""Line and booking totals: one unit price, multiplied."""

from datetime import date
from typing import Iterable

from shared.domain.value_objects import DateRange, Money
from apps.bookings.domain.entities import ResourceType


def calculate_nights(check_in: date, check_out: date) -> int:
    """Nights charged for a stay; same-day or inverted ranges count as one."""
    return max(1, DateRange(check_in, check_out).nights)


def line_total(resource_type: ResourceType, unit_price: Money, quantity: int, dates: DateRange) -> Money:
    if resource_type is ResourceType.ROOM:
        return unit_price * (calculate_nights(dates.start_date, dates.end_date) * quantity)
    return unit_price * quantity


def booking_total(lines: Iterable[Money], currency: str) -> Money:
    total = Money.zero(currency)
    for amount in lines:
        total = total + amount
    return total
