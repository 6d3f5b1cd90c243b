"""Trip lifecycle status derivation.

Trip status is never persisted. It is a pure function of the trip's dates,
its capacity, the number of active bookings and the evaluation instant.
Callers listing several trips must pass one `now` for the whole batch so a
single response never straddles a boundary.
"""

from datetime import datetime

from django.db import models


class TripStatus(models.TextChoices):
    UPCOMING = "UPCOMING", "Upcoming"
    SOLD_OUT = "SOLD_OUT", "Sold out"
    ON_TRIP = "ON_TRIP", "On trip"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


def calculate_trip_status(
    start_date: datetime,
    end_date: datetime,
    active_booking_count: int,
    pax: int,
    now: datetime,
) -> TripStatus:
    """Derive a trip's status at `now`.

    Rules, in order:
    1. Started (now >= start_date):
       - no active bookings -> CANCELLED, even after end_date
       - now > end_date -> COMPLETED
       - otherwise -> ON_TRIP
    2. Not started:
       - active bookings reached capacity -> SOLD_OUT
       - otherwise -> UPCOMING

    Args:
        start_date: Trip start instant
        end_date: Trip end instant
        active_booking_count: Bookings that are not cancelled
        pax: Maximum number of passengers
        now: Evaluation instant

    Returns:
        TripStatus
    """
    if now >= start_date:
        # A departure that never sold is cancelled, not completed
        if active_booking_count == 0:
            return TripStatus.CANCELLED
        if now > end_date:
            return TripStatus.COMPLETED
        return TripStatus.ON_TRIP

    if active_booking_count >= pax:
        return TripStatus.SOLD_OUT
    return TripStatus.UPCOMING
