"""Read-side queries for the travel CRM.

Trip status is derived here for listings: the active booking count is
annotated in the same query and a single `now` is used for the whole batch.
"""

from datetime import datetime

from django.db.models import Count, Q, QuerySet
from django.utils import timezone

from .models import Booking, Trip
from .trip_status import TripStatus, calculate_trip_status

# Trip capacity counts every live booking that has not been cancelled
ACTIVE_BOOKING_FILTER = Q(
    bookings__deleted_at__isnull=True,
    bookings__payment_status__in=[
        Booking.PaymentStatus.DEPOSIT_PENDING,
        Booking.PaymentStatus.DEPOSIT_PAID,
        Booking.PaymentStatus.FULLY_PAID,
    ],
)


def annotate_active_booking_count(queryset: QuerySet | None = None) -> QuerySet:
    """Annotate trips with `active_booking_count` (live, non-cancelled bookings)."""
    if queryset is None:
        queryset = Trip.objects.all()
    return queryset.annotate(
        active_booking_count=Count("bookings", filter=ACTIVE_BOOKING_FILTER, distinct=True)
    )


def trips_with_status(
    queryset: QuerySet | None = None,
    now: datetime | None = None,
) -> list[Trip]:
    """Evaluate trips and stamp each with its derived `status`.

    Args:
        queryset: Trips to evaluate (defaults to all live trips)
        now: Evaluation instant shared by every trip (defaults to now)

    Returns:
        List of Trip instances with `active_booking_count` and `status` set
    """
    if now is None:
        now = timezone.now()

    trips = list(annotate_active_booking_count(queryset))
    for trip in trips:
        trip.status = calculate_trip_status(
            trip.start_date,
            trip.end_date,
            trip.active_booking_count,
            trip.pax,
            now,
        )
    return trips


def upcoming_trips(now: datetime | None = None) -> list[Trip]:
    """Trips that have not started and still have seats, soonest first."""
    if now is None:
        now = timezone.now()

    queryset = Trip.objects.filter(start_date__gt=now).order_by("start_date")
    return [
        trip
        for trip in trips_with_status(queryset, now=now)
        if trip.status == TripStatus.UPCOMING
    ]
