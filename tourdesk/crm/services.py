"""Services for the travel CRM.

Business logic for bookings, payments and manual lead status changes.
All write operations are atomic transactions.

Every payment write runs the same post-write sequence, in order:

    update_booking_paid_amount      (payment_service)
    refresh_booking_payment_status  (payment_service)
    calculate_commission            (commission_service, idempotent)
    update_commission_status        (commission_service)
    sync_customer_leads             (lead_sync)

Each step re-reads the rows it writes, so the chain never acts on a
caller-supplied snapshot.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from .commission_service import calculate_commission, update_commission_status
from .exceptions import (
    BookingError,
    BookingNotFound,
    InvalidTransitionError,
    LeadNotFound,
    PaymentNotFound,
    ReasonRequiredError,
)
from .lead_rules import validate_status_change
from .lead_sync import (
    auto_update_lead_to_booked,
    auto_update_lead_to_cancelled,
    can_update_lead_status,
    sync_customer_leads,
)
from .models import Booking, Customer, Lead, Payment, Trip
from .payment_service import refresh_booking_payment_status, update_booking_paid_amount

logger = logging.getLogger(__name__)


def _to_decimal(value) -> Decimal:
    if isinstance(value, float):
        raise TypeError("Money amounts must be Decimal, int or str, not float")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _lock_booking(booking_id) -> Booking:
    try:
        return Booking.objects.select_for_update().get(pk=booking_id)
    except Booking.DoesNotExist:
        raise BookingNotFound(f"Booking {booking_id} not found") from None


def _lock_payment(payment_id) -> Payment:
    try:
        return Payment.objects.select_for_update().get(pk=payment_id)
    except Payment.DoesNotExist:
        raise PaymentNotFound(f"Payment {payment_id} not found") from None


# =============================================================================
# Booking Services
# =============================================================================


@transaction.atomic
def create_booking(
    customer: Customer,
    trip: Trip,
    *,
    lead: Lead | None = None,
    agent=None,
    extra_price=Decimal("0.00"),
    discount_price=Decimal("0.00"),
) -> Booking:
    """Book a customer on a trip.

    Fixes total_amount (trip price + extras - discount), creates the
    commission when an agent is entitled to one, and moves the linked lead
    to BOOKED. A lead without a customer is attached to this customer.

    Args:
        customer: The travelling customer
        trip: The trip to book
        lead: Lead the sale came from (optional)
        agent: Staff member serving the booking (optional)
        extra_price: Surcharges added to the trip price
        discount_price: Discount taken off the trip price

    Returns:
        Created Booking

    Raises:
        BookingError: If the lead belongs to another customer or the total
            would be negative
    """
    extra_price = _to_decimal(extra_price)
    discount_price = _to_decimal(discount_price)

    if lead is not None and lead.customer_id not in (None, customer.pk):
        raise BookingError("Lead belongs to a different customer")

    total_amount = trip.standard_price + extra_price - discount_price
    if total_amount < 0:
        raise BookingError(
            f"Discount {discount_price} exceeds trip price plus extras"
        )

    if lead is not None and lead.customer_id is None:
        # Lead sync finds leads through their customer
        lead.customer = customer
        lead.save(update_fields=["customer", "updated_at"])

    booking = Booking.objects.create(
        customer=customer,
        trip=trip,
        lead=lead,
        agent=agent,
        extra_price=extra_price,
        discount_price=discount_price,
        total_amount=total_amount,
    )
    logger.info("Created booking %s on trip %s for %s", booking.pk, trip.code, customer)

    calculate_commission(booking.pk)

    if lead is not None:
        auto_update_lead_to_booked(lead.pk)

    return booking


@transaction.atomic
def cancel_booking(booking: Booking) -> Booking:
    """Cancel a booking.

    The commission drops back to PENDING (a PAID commission stays PAID),
    the linked lead is closed unless another active booking remains, and
    the customer's other leads are re-synced.

    Raises:
        BookingNotFound: If the booking no longer exists
        BookingError: If the booking is already cancelled
    """
    booking = _lock_booking(booking.pk)

    if booking.payment_status == Booking.PaymentStatus.CANCELLED:
        raise BookingError("Booking is already cancelled")

    booking.payment_status = Booking.PaymentStatus.CANCELLED
    booking.cancelled_at = timezone.now()
    booking.save(update_fields=["payment_status", "cancelled_at", "updated_at"])
    logger.info("Cancelled booking %s", booking.pk)

    update_commission_status(booking.pk)

    if booking.lead_id is not None:
        auto_update_lead_to_cancelled(booking.lead_id)
    sync_customer_leads(booking.customer_id)

    return booking


# =============================================================================
# Payment Services
# =============================================================================


def handle_payment_change(booking_id) -> Booking:
    """Run the post-write sequence after a booking's payments changed.

    Returns:
        The refreshed Booking
    """
    update_booking_paid_amount(booking_id)
    refresh_booking_payment_status(booking_id)
    calculate_commission(booking_id)
    update_commission_status(booking_id)

    booking = Booking.objects.get(pk=booking_id)
    sync_customer_leads(booking.customer_id)
    return booking


@transaction.atomic
def record_payment(
    booking: Booking,
    amount,
    *,
    method: str = Payment.Method.TRANSFER,
    paid_at=None,
    note: str = "",
) -> Payment:
    """Record money received against a booking.

    Raises:
        BookingNotFound: If the booking does not exist
        BookingError: If the booking is cancelled or the amount is not positive
    """
    amount = _to_decimal(amount)
    if amount <= 0:
        raise BookingError("Payment amount must be positive")

    booking = _lock_booking(booking.pk)
    if booking.payment_status == Booking.PaymentStatus.CANCELLED:
        raise BookingError("Cannot record a payment on a cancelled booking")

    payment = Payment.objects.create(
        booking=booking,
        amount=amount,
        method=method,
        paid_at=paid_at or timezone.now(),
        note=note,
    )
    logger.info("Recorded payment %s of %s on booking %s", payment.pk, amount, booking.pk)

    handle_payment_change(booking.pk)
    return payment


@transaction.atomic
def update_payment(payment: Payment, *, amount) -> Payment:
    """Correct the amount of a recorded payment.

    Raises:
        PaymentNotFound: If the payment does not exist
        BookingError: If the amount is not positive
    """
    amount = _to_decimal(amount)
    if amount <= 0:
        raise BookingError("Payment amount must be positive")

    payment = _lock_payment(payment.pk)
    if payment.amount != amount:
        payment.amount = amount
        payment.save(update_fields=["amount", "updated_at"])
        logger.info("Payment %s amount corrected to %s", payment.pk, amount)

    handle_payment_change(payment.booking_id)
    return payment


@transaction.atomic
def delete_payment(payment: Payment) -> None:
    """Remove a payment (soft delete) and recompute the booking.

    Raises:
        PaymentNotFound: If the payment does not exist or is already deleted
    """
    payment = _lock_payment(payment.pk)
    payment.delete()
    logger.info("Deleted payment %s on booking %s", payment.pk, payment.booking_id)
    handle_payment_change(payment.booking_id)


# =============================================================================
# Lead Services
# =============================================================================


@transaction.atomic
def change_lead_status(
    lead: Lead,
    new_status: str,
    *,
    actor=None,
    reason: str = "",
) -> Lead:
    """Manually move a lead to a new status.

    Runs the lead status rules against the lead's current state and
    enforces their outcome: rejected moves raise, moves that need a reason
    raise unless one is given.

    Args:
        lead: The lead to update
        new_status: Requested status
        actor: User making the change (optional)
        reason: Why the change is made; required for skips, reverts and closes

    Returns:
        The updated Lead

    Raises:
        LeadNotFound: If the lead no longer exists
        InvalidTransitionError: If the rules reject the change
        ReasonRequiredError: If the change needs a reason and none was given
    """
    try:
        lead = Lead.objects.select_for_update().get(pk=lead.pk)
    except Lead.DoesNotExist:
        raise LeadNotFound(f"Lead {lead.pk} not found") from None

    has_active_bookings = not can_update_lead_status(lead.pk)
    result = validate_status_change(lead.status, new_status, has_active_bookings)

    if not result.allowed:
        raise InvalidTransitionError(
            result.warning or f"Cannot change lead status from {lead.status} to {new_status}"
        )

    if result.requires_reason and not (reason or "").strip():
        raise ReasonRequiredError(result.warning or "A reason is required for this change")

    old_status = lead.status
    if lead.transition_to(new_status, actor=actor, reason=(reason or "").strip()) is not None:
        logger.info("Lead %s status %s -> %s by %s", lead.pk, old_status, new_status, actor)

    return lead
