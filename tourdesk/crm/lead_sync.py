"""Lead status synchronisation from booking payment state.

Once a customer has bookings, the status of that customer's leads follows
the bookings' payment progress:

    all bookings FULLY_PAID              -> COMPLETED
    any booking DEPOSIT_PAID/FULLY_PAID  -> BOOKED
    all bookings CANCELLED               -> CANCELLED
    otherwise                            -> unchanged

Every write re-reads the lead under a row lock inside its own atomic block,
writes only when the status actually changes, and records an automatic
LeadStatusEvent.
"""

import logging
from datetime import datetime, timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from .exceptions import LeadNotFound
from .models import (
    ACTIVE_PAYMENT_STATUSES,
    TERMINAL_LEAD_STATUSES,
    Booking,
    Lead,
    LeadStatus,
)

logger = logging.getLogger(__name__)

DEFAULT_ABANDON_AFTER_DAYS = 30


def _lock_lead(lead_id) -> Lead:
    """Fetch a lead for update, raising LeadNotFound if it does not exist."""
    try:
        return Lead.objects.select_for_update().get(pk=lead_id)
    except Lead.DoesNotExist:
        raise LeadNotFound(f"Lead {lead_id} not found") from None


def _customer_payment_statuses(customer_id) -> list[str]:
    return list(
        Booking.objects.filter(customer_id=customer_id).values_list(
            "payment_status", flat=True
        )
    )


def _derive_status(payment_statuses: list[str]) -> str | None:
    """Map a customer's booking payment statuses to a lead status.

    Returns None when the bookings do not dictate a status.
    """
    if all(s == Booking.PaymentStatus.FULLY_PAID for s in payment_statuses):
        return LeadStatus.COMPLETED
    if any(s in ACTIVE_PAYMENT_STATUSES for s in payment_statuses):
        return LeadStatus.BOOKED
    if all(s == Booking.PaymentStatus.CANCELLED for s in payment_statuses):
        return LeadStatus.CANCELLED
    return None


def _apply_system_status(lead: Lead, new_status: str, note: str) -> bool:
    """Write a system-driven status. Returns True if the lead changed."""
    old_status = lead.status
    event = lead.transition_to(new_status, reason=note, is_automatic=True)
    if event is None:
        logger.debug("Lead %s already %s", lead.pk, new_status)
        return False
    logger.info("Lead %s status %s -> %s (%s)", lead.pk, old_status, new_status, note)
    return True


@transaction.atomic
def sync_lead_status_from_booking(lead_id) -> str:
    """Recompute a lead's status from its customer's bookings.

    No-op when the lead has no customer or the customer has no bookings.

    Args:
        lead_id: Lead primary key

    Returns:
        The lead's resulting status

    Raises:
        LeadNotFound: If the lead does not exist
    """
    lead = _lock_lead(lead_id)

    if lead.customer_id is None:
        return lead.status

    payment_statuses = _customer_payment_statuses(lead.customer_id)
    if not payment_statuses:
        return lead.status

    new_status = _derive_status(payment_statuses)
    if new_status is not None:
        _apply_system_status(lead, new_status, "Synced from booking payment status")

    return lead.status


def sync_customer_leads(customer_id) -> dict:
    """Sync every live lead of a customer.

    Returns:
        Mapping of lead id to resulting status
    """
    lead_ids = list(
        Lead.objects.filter(customer_id=customer_id).values_list("pk", flat=True)
    )
    return {lead_id: sync_lead_status_from_booking(lead_id) for lead_id in lead_ids}


@transaction.atomic
def auto_update_lead_to_booked(lead_id) -> Lead:
    """Force a lead to BOOKED right after a booking is created for it.

    Raises:
        LeadNotFound: If the lead does not exist
    """
    lead = _lock_lead(lead_id)
    _apply_system_status(lead, LeadStatus.BOOKED, "Booking created")
    return lead


@transaction.atomic
def auto_update_lead_to_cancelled(lead_id) -> Lead:
    """Close a lead as CANCELLED unless its customer still has an active booking.

    Raises:
        LeadNotFound: If the lead does not exist
    """
    lead = _lock_lead(lead_id)

    if lead.customer_id is not None and _has_active_bookings(lead.customer_id):
        logger.debug("Lead %s keeps status %s: active bookings remain", lead.pk, lead.status)
        return lead

    _apply_system_status(lead, LeadStatus.CANCELLED, "No active bookings remain")
    return lead


def _get_abandon_after_days() -> int:
    return getattr(settings, "CRM_LEAD_ABANDON_AFTER_DAYS", DEFAULT_ABANDON_AFTER_DAYS)


def check_abandoned_leads(now: datetime | None = None) -> int:
    """Close leads with no activity inside the abandonment window.

    Any live lead whose last_activity_at is older than
    CRM_LEAD_ABANDON_AFTER_DAYS and whose status is not terminal is moved
    to CANCELLED. Leads are processed one at a time; each update is atomic
    and re-checks the lead under lock, so a lead touched after the scan
    is skipped.

    Args:
        now: Evaluation instant (defaults to now)

    Returns:
        Number of leads closed
    """
    if now is None:
        now = timezone.now()

    cutoff = now - timedelta(days=_get_abandon_after_days())
    stale_ids = list(
        Lead.objects.filter(last_activity_at__lt=cutoff)
        .exclude(status__in=TERMINAL_LEAD_STATUSES)
        .values_list("pk", flat=True)
    )

    closed = 0
    for lead_id in stale_ids:
        with transaction.atomic():
            lead = Lead.objects.select_for_update().filter(pk=lead_id).first()
            if lead is None or lead.is_terminal or lead.last_activity_at >= cutoff:
                continue
            lead.transition_to(
                LeadStatus.CANCELLED,
                reason=f"No activity for {_get_abandon_after_days()} days",
                is_automatic=True,
                now=now,
            )
            closed += 1

    if closed:
        logger.info("Closed %d abandoned lead(s) inactive since %s", closed, cutoff)
    return closed


def _has_active_bookings(customer_id) -> bool:
    return Booking.objects.filter(
        customer_id=customer_id,
        payment_status__in=ACTIVE_PAYMENT_STATUSES,
    ).exists()


def can_update_lead_status(lead_id) -> bool:
    """Whether a lead's status may be edited by hand.

    True when the lead has no customer, or the customer has no booking
    with a deposit or full payment.

    Raises:
        LeadNotFound: If the lead does not exist
    """
    customer_id = (
        Lead.objects.filter(pk=lead_id).values_list("customer_id", flat=True).first()
    )
    if customer_id is None:
        if not Lead.objects.filter(pk=lead_id).exists():
            raise LeadNotFound(f"Lead {lead_id} not found")
        return True
    return not _has_active_bookings(customer_id)
