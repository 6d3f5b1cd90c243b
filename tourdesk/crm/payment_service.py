"""Booking paid-amount aggregation.

Booking.paid_amount is a cache of the sum of the booking's live payments.
This module is its only writer. Each recompute locks the booking row so two
staff members recording payments at the same time cannot lose an update.
"""

import logging
from decimal import Decimal

from django.db import transaction

from .exceptions import BookingNotFound
from .models import Booking, Payment

logger = logging.getLogger(__name__)


def _lock_booking(booking_id) -> Booking:
    try:
        return Booking.objects.select_for_update().get(pk=booking_id)
    except Booking.DoesNotExist:
        raise BookingNotFound(f"Booking {booking_id} not found") from None


def sum_payments_for_booking(booking_id) -> Decimal:
    """Sum the amounts of a booking's live (not soft-deleted) payments."""
    amounts = Payment.objects.filter(booking_id=booking_id).values_list("amount", flat=True)
    return sum(amounts, Decimal("0.00"))


@transaction.atomic
def update_booking_paid_amount(booking_id) -> Decimal:
    """Recompute and store a booking's paid_amount.

    Should be called whenever a payment is created, updated or deleted.

    Args:
        booking_id: Booking primary key

    Returns:
        The new paid amount

    Raises:
        BookingNotFound: If the booking does not exist
    """
    booking = _lock_booking(booking_id)
    paid_amount = sum_payments_for_booking(booking.pk)

    if booking.paid_amount != paid_amount:
        logger.debug(
            "Booking %s paid_amount %s -> %s", booking.pk, booking.paid_amount, paid_amount
        )
        booking.paid_amount = paid_amount
        booking.save(update_fields=["paid_amount", "updated_at"])

    return paid_amount


@transaction.atomic
def refresh_booking_payment_status(booking_id) -> str:
    """Derive a booking's payment status from its refreshed totals.

    Cancelled bookings keep their status. Otherwise:
    paid >= total -> FULLY_PAID, paid > 0 -> DEPOSIT_PAID,
    nothing paid -> DEPOSIT_PENDING.

    Returns:
        The booking's resulting payment status

    Raises:
        BookingNotFound: If the booking does not exist
    """
    booking = _lock_booking(booking_id)

    if booking.payment_status == Booking.PaymentStatus.CANCELLED:
        return booking.payment_status

    if booking.paid_amount >= booking.total_amount:
        new_status = Booking.PaymentStatus.FULLY_PAID
    elif booking.paid_amount > 0:
        new_status = Booking.PaymentStatus.DEPOSIT_PAID
    else:
        new_status = Booking.PaymentStatus.DEPOSIT_PENDING

    if new_status != booking.payment_status:
        logger.info(
            "Booking %s payment status %s -> %s",
            booking.pk,
            booking.payment_status,
            new_status,
        )
        booking.payment_status = new_status
        booking.save(update_fields=["payment_status", "updated_at"])

    return booking.payment_status


def recalculate_all_booking_paid_amounts() -> dict:
    """Recompute paid_amount for every live booking (backfill / repair).

    Bookings whose cache changed then run the rest of the post-write
    sequence, so payment status, commission and lead status follow the
    repaired totals.

    Returns:
        Dict with 'updated' (bookings whose cache changed) and 'total'
    """
    # services imports this module
    from .services import handle_payment_change

    booking_ids = list(Booking.objects.values_list("pk", flat=True))

    updated = 0
    for booking_id in booking_ids:
        with transaction.atomic():
            before = Booking.objects.filter(pk=booking_id).values_list(
                "paid_amount", flat=True
            ).first()
            if update_booking_paid_amount(booking_id) != before:
                handle_payment_change(booking_id)
                updated += 1

    return {"updated": updated, "total": len(booking_ids)}
