"""Commission calculation service for bookings.

Provides functions to create a booking's commission and keep its status in
line with the booking's payment progress.

Agent priority (highest to lowest):
1. The agent of the booking's lead -> SALES commission
2. The booking's own agent -> SERVICE if the booking has a lead, else WALKIN
3. No agent -> no commission

Amount: percentage of the booking total (total_amount * rate / 100),
rounded to 2 decimal places.

Status: PENDING <-> APPROVED follows whether the booking is fully paid.
APPROVED -> PAID happens only through mark_commission_as_paid. A PAID
commission is never moved again.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from django.db import IntegrityError, transaction

from .exceptions import BookingNotFound, CommissionNotFound
from .models import Booking, Commission

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommissionAgent:
    """The agent entitled to a booking's commission.

    Attributes:
        agent_id: User primary key
        rate: Commission percentage (e.g., Decimal("5.00") = 5%)
        type: Commission.Type value
    """

    agent_id: int
    rate: Decimal
    type: str


@dataclass(frozen=True)
class CommissionSummary:
    """Commission totals for an agent, bucketed by status."""

    total: Decimal
    pending: Decimal
    approved: Decimal
    paid: Decimal
    count: int


def _rate_of(agent) -> Decimal:
    return agent.commission_rate if agent.commission_rate is not None else Decimal("0.00")


def get_commission_agent(booking: Booking) -> CommissionAgent | None:
    """Resolve who earns the commission on a booking.

    Args:
        booking: Booking to resolve

    Returns:
        CommissionAgent, or None when no agent is attached
    """
    if booking.lead_id is not None:
        lead = booking.lead
        # A soft-deleted lead no longer earns a sales commission
        if lead is not None and not lead.is_deleted and lead.agent is not None:
            return CommissionAgent(
                agent_id=lead.agent.pk,
                rate=_rate_of(lead.agent),
                type=Commission.Type.SALES,
            )

    if booking.agent is not None:
        return CommissionAgent(
            agent_id=booking.agent.pk,
            rate=_rate_of(booking.agent),
            type=(
                Commission.Type.SERVICE
                if booking.lead_id is not None
                else Commission.Type.WALKIN
            ),
        )

    return None


def _calculate_commission_amount(total_amount: Decimal, rate: Decimal) -> Decimal:
    """Percentage of total, rounded to 2 decimal places and never negative."""
    commission = total_amount * rate / Decimal("100")
    return max(Decimal("0.00"), commission.quantize(Decimal("0.01")))


def _qualifies_for_approval(booking: Booking) -> bool:
    if booking.payment_status == Booking.PaymentStatus.CANCELLED:
        return False
    return booking.paid_amount >= booking.total_amount


def _lock_booking(booking_id) -> Booking:
    try:
        return Booking.objects.select_for_update().get(pk=booking_id)
    except Booking.DoesNotExist:
        raise BookingNotFound(f"Booking {booking_id} not found") from None


def calculate_commission(booking_id) -> Commission | None:
    """Create the commission for a booking, once.

    Idempotent: if the booking already has a commission it is returned
    unchanged.

    Args:
        booking_id: Booking primary key

    Returns:
        The booking's Commission, or None if no agent is entitled to one

    Raises:
        BookingNotFound: If the booking does not exist
    """
    try:
        with transaction.atomic():
            return _create_commission(booking_id)
    except IntegrityError:
        # Lost the one-per-booking race: the other writer's row stands
        existing = Commission.objects.filter(booking_id=booking_id).first()
        if existing is None:
            raise
        return existing


def _create_commission(booking_id) -> Commission | None:
    booking = _lock_booking(booking_id)

    existing = Commission.objects.filter(booking=booking).first()
    if existing is not None:
        logger.debug("Commission already exists for booking %s", booking.pk)
        return existing

    info = get_commission_agent(booking)
    if info is None:
        logger.info("No agent found for commission on booking %s", booking.pk)
        return None

    status = (
        Commission.Status.APPROVED
        if _qualifies_for_approval(booking)
        else Commission.Status.PENDING
    )

    commission = Commission.objects.create(
        booking=booking,
        agent_id=info.agent_id,
        lead_id=booking.lead_id,
        type=info.type,
        rate=info.rate,
        amount=_calculate_commission_amount(booking.total_amount, info.rate),
        status=status,
        note=f"Auto-generated commission ({info.type})",
    )
    logger.info(
        "Created %s commission %s for booking %s: %s (%s)",
        info.type,
        commission.pk,
        booking.pk,
        commission.amount,
        status,
    )
    return commission


@transaction.atomic
def update_commission_status(booking_id) -> Commission | None:
    """Move a booking's commission between PENDING and APPROVED.

    - fully paid and PENDING -> APPROVED
    - no longer fully paid and APPROVED -> PENDING
    - booking CANCELLED -> PENDING
    - PAID is never touched

    Args:
        booking_id: Booking primary key

    Returns:
        The commission (updated or not), or None if the booking has none

    Raises:
        BookingNotFound: If the booking does not exist
    """
    booking = _lock_booking(booking_id)

    commission = Commission.objects.select_for_update().filter(booking=booking).first()
    if commission is None:
        logger.debug("No commission found for booking %s", booking.pk)
        return None

    if commission.status == Commission.Status.PAID:
        return commission

    old_status = commission.status
    if _qualifies_for_approval(booking):
        changed = commission.approve()
    else:
        changed = commission.revert_to_pending()

    if changed:
        logger.info(
            "Commission %s status %s -> %s", commission.pk, old_status, commission.status
        )
    return commission


@transaction.atomic
def mark_commission_as_paid(commission_id, now: datetime | None = None) -> Commission:
    """Record that an approved commission has been paid out.

    This is the only path to PAID.

    Args:
        commission_id: Commission primary key
        now: Payment instant (defaults to now)

    Returns:
        The paid Commission

    Raises:
        CommissionNotFound: If the commission does not exist
        InvalidTransitionError: If the commission is not APPROVED
    """
    try:
        commission = Commission.objects.select_for_update().get(pk=commission_id)
    except Commission.DoesNotExist:
        raise CommissionNotFound(f"Commission {commission_id} not found") from None

    commission.mark_paid(now)
    logger.info("Commission %s marked as paid", commission.pk)
    return commission


def get_agent_commission_summary(agent_id) -> CommissionSummary:
    """Total an agent's commission amounts by status.

    Args:
        agent_id: User primary key

    Returns:
        CommissionSummary with Decimal totals and the commission count
    """
    buckets = {status: Decimal("0.00") for status in Commission.Status.values}
    count = 0

    for status, amount in Commission.objects.filter(agent_id=agent_id).values_list(
        "status", "amount"
    ):
        buckets[status] += amount
        count += 1

    pending = buckets[Commission.Status.PENDING]
    approved = buckets[Commission.Status.APPROVED]
    paid = buckets[Commission.Status.PAID]

    return CommissionSummary(
        total=pending + approved + paid,
        pending=pending,
        approved=approved,
        paid=paid,
        count=count,
    )
