"""
Availability Errors

Every failure the availability engine and the booking flow can report.
Capacity violations are deterministic: retrying with the same inputs
gives the same answer. Only AvailabilityChanged is worth retrying.
"""

from datetime import date
from uuid import UUID


class AvailabilityError(Exception):
    """Base class for reservation capacity errors"""


class StorageUnavailable(AvailabilityError):
    """
    The storage collaborator could not complete a fetch

    Browsing paths degrade to empty results, booking paths must propagate
    it so the surrounding transaction aborts.
    """


class InvalidBookingRequest(AvailabilityError, ValueError):
    """Caller-input error: bad quantity, bad stay dates, unknown resource."""


class InsufficientCapacity(AvailabilityError):
    """A day in the requested range would be oversold."""

    def __init__(
        self,
        resource_type: str,
        resource_id: UUID,
        day: date,
        remaining: int,
        requested: int,
        message: str | None = None,
    ):
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.day = day
        self.remaining = remaining
        self.requested = requested
        super().__init__(message or f"Only {remaining} units available on {day.isoformat()}")


class AvailabilityChanged(AvailabilityError):
    """
    The booking transaction hit a concurrent change and was rolled back

    Safe to retry: the next attempt re-validates against live data.
    """

    retryable = True

    def __init__(self, message: str = "Availability changed, please retry."):
        super().__init__(message)
