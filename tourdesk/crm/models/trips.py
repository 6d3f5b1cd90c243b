"""Trip model for the travel CRM.

A trip's lifecycle status is never stored. It is derived on every read
from its dates, its capacity and the number of active bookings.
"""

from datetime import datetime

from django.db import models
from django.db.models import Q

from .base import BaseModel


class Trip(BaseModel):
    """A scheduled tour departure with a fixed passenger capacity."""

    code = models.CharField(max_length=30, unique=True)
    name = models.CharField(max_length=200)
    destination = models.CharField(max_length=200, blank=True, default="")
    start_date = models.DateTimeField()
    end_date = models.DateTimeField()
    pax = models.PositiveIntegerField(help_text="Maximum number of passengers")
    standard_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Per-booking base price before extras and discounts",
    )
    note = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["start_date"]
        constraints = [
            models.CheckConstraint(
                condition=Q(end_date__gte=models.F("start_date")),
                name="crm_trip_end_after_start",
            ),
        ]
        indexes = [
            models.Index(fields=["start_date"], name="crm_trip_start_idx"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    def count_active_bookings(self) -> int:
        """Count live bookings that have not been cancelled."""
        from .bookings import Booking

        return (
            self.bookings.filter(deleted_at__isnull=True)
            .exclude(payment_status=Booking.PaymentStatus.CANCELLED)
            .count()
        )

    def status_as_of(self, now: datetime) -> str:
        """Derive this trip's status at the given instant."""
        from ..trip_status import calculate_trip_status

        return calculate_trip_status(
            self.start_date,
            self.end_date,
            self.count_active_bookings(),
            self.pax,
            now,
        )
