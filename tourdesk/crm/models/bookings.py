"""Booking models for the travel CRM.

Contains:
- Booking: a customer's reservation on a trip
- Payment: money received against a booking
"""

from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from django.utils import timezone

from .base import BaseModel


class Booking(BaseModel):
    """A confirmed trip reservation tied to a customer and a trip.

    total_amount is fixed at creation time. paid_amount is a cache of the
    sum of live payments and is only written by
    payment_service.update_booking_paid_amount.
    """

    class PaymentStatus(models.TextChoices):
        DEPOSIT_PENDING = "DEPOSIT_PENDING", "Deposit pending"
        DEPOSIT_PAID = "DEPOSIT_PAID", "Deposit paid"
        FULLY_PAID = "FULLY_PAID", "Fully paid"
        CANCELLED = "CANCELLED", "Cancelled"

    customer = models.ForeignKey(
        "crm.Customer",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    trip = models.ForeignKey(
        "crm.Trip",
        on_delete=models.PROTECT,
        related_name="bookings",
    )
    lead = models.ForeignKey(
        "crm.Lead",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="bookings",
    )
    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="crm_bookings",
        help_text="Staff member who served the booking",
    )

    payment_status = models.CharField(
        max_length=20,
        choices=PaymentStatus.choices,
        default=PaymentStatus.DEPOSIT_PENDING,
    )

    # Pricing locked at booking creation
    extra_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    discount_price = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
    )
    total_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Trip price + extras - discount, fixed at booking time",
    )
    paid_amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Cached sum of live payments",
    )

    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        constraints = [
            models.CheckConstraint(
                condition=Q(total_amount__gte=0),
                name="crm_booking_total_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["customer", "payment_status"], name="crm_booking_customer_pay_idx"),
            models.Index(fields=["trip", "payment_status"], name="crm_booking_trip_pay_idx"),
        ]

    def __str__(self):
        return f"{self.customer} - {self.trip}"

    @property
    def is_fully_paid(self) -> bool:
        return self.paid_amount >= self.total_amount

    @property
    def is_active(self) -> bool:
        """A live sale: deposit or full payment received."""
        return self.payment_status in ACTIVE_PAYMENT_STATUSES

    @property
    def outstanding_amount(self) -> Decimal:
        return max(Decimal("0.00"), self.total_amount - self.paid_amount)


# Payment states that make a booking an active sale
ACTIVE_PAYMENT_STATUSES = (
    Booking.PaymentStatus.DEPOSIT_PAID,
    Booking.PaymentStatus.FULLY_PAID,
)


class Payment(BaseModel):
    """Money received against a booking.

    Soft-deleted payments no longer count towards the booking's paid_amount.
    """

    class Method(models.TextChoices):
        CASH = "CASH", "Cash"
        TRANSFER = "TRANSFER", "Bank transfer"
        CARD = "CARD", "Card"
        OTHER = "OTHER", "Other"

    booking = models.ForeignKey(
        Booking,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(
        max_length=20,
        choices=Method.choices,
        default=Method.TRANSFER,
    )
    paid_at = models.DateTimeField(default=timezone.now)
    note = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["paid_at"]
        constraints = [
            # Refunds are modelled by deleting the payment, not by negatives
            models.CheckConstraint(
                condition=Q(amount__gt=0),
                name="crm_payment_amount_positive",
            ),
        ]

    def __str__(self):
        return f"{self.amount} on {self.booking_id}"
