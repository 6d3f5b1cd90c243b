"""Lead status change rules.

Decides whether a manual lead status change is allowed, and whether it
needs a warning or a mandatory reason. This module is pure: it never reads
or writes the database. Callers enforce `requires_reason` by refusing the
write when no reason was supplied (see services.change_lead_status).

Vocabulary roles:
- manual statuses: NEW, CONTACTED, QUOTED, NEGOTIATING
- "won" status: BOOKED (normally set when a booking is created)
- "lost" status: CANCELLED
- system-only status: COMPLETED (reached only through full payment)
"""

from dataclasses import dataclass

from .models import LeadStatus

MANUAL_LEAD_STATUSES = (
    LeadStatus.NEW,
    LeadStatus.CONTACTED,
    LeadStatus.QUOTED,
    LeadStatus.NEGOTIATING,
)

SYSTEM_LEAD_STATUSES = (
    LeadStatus.BOOKED,
    LeadStatus.COMPLETED,
    LeadStatus.CANCELLED,
)

WON_STATUS = LeadStatus.BOOKED
LOST_STATUS = LeadStatus.CANCELLED
SYSTEM_ONLY_STATUS = LeadStatus.COMPLETED

# Pipeline position; all closed states share the last step
STATUS_ORDER = {
    LeadStatus.NEW: 0,
    LeadStatus.CONTACTED: 1,
    LeadStatus.QUOTED: 2,
    LeadStatus.NEGOTIATING: 3,
    LeadStatus.BOOKED: 4,
    LeadStatus.COMPLETED: 4,
    LeadStatus.CANCELLED: 4,
}

MANAGED_AUTOMATICALLY = (
    "Cannot manually change to this status while the lead has active bookings. "
    "Status is managed automatically by the system."
)
CANCEL_BOOKINGS_FIRST = (
    "Cannot change status while the lead has active bookings. "
    "Cancel all bookings first."
)
SKIP_WARNING = "You are skipping pipeline steps. Please give a reason."
REVERT_WARNING = "You are moving the lead back to an earlier status. Are you sure?"
LOST_WARNING = "You are closing this lead as lost. Please give a reason."
WON_WARNING = (
    "BOOKED is normally set automatically when a booking is created. "
    "Are you sure you want to set it manually?"
)
SYSTEM_ONLY_WARNING = (
    "COMPLETED is set automatically by the system once every booking is fully paid."
)


@dataclass(frozen=True)
class StatusChangeResult:
    """Outcome of validating a lead status change.

    Attributes:
        allowed: Whether the change may proceed
        warning: Advisory or rejection message for the user
        requires_reason: Whether the caller must collect a reason first
    """

    allowed: bool
    warning: str | None = None
    requires_reason: bool = False


def is_manual_lead_status(status: str) -> bool:
    return status in MANUAL_LEAD_STATUSES


def is_system_lead_status(status: str) -> bool:
    return status in SYSTEM_LEAD_STATUSES


def validate_status_change(
    current_status: str,
    new_status: str,
    has_active_bookings: bool = False,
) -> StatusChangeResult:
    """Check whether a lead may move from current_status to new_status.

    Rules are evaluated in priority order; the first match wins.

    Args:
        current_status: The lead's current status
        new_status: Requested status
        has_active_bookings: Whether the lead's customer has a booking with
            a deposit or full payment

    Returns:
        StatusChangeResult
    """
    if current_status == new_status:
        return StatusChangeResult(allowed=True)

    if has_active_bookings and is_system_lead_status(new_status):
        return StatusChangeResult(allowed=False, warning=MANAGED_AUTOMATICALLY)

    if has_active_bookings and is_system_lead_status(current_status):
        return StatusChangeResult(allowed=False, warning=CANCEL_BOOKINGS_FIRST)

    if current_status not in STATUS_ORDER or new_status not in STATUS_ORDER:
        return StatusChangeResult(
            allowed=False,
            warning=f"Unknown lead status: {current_status!r} -> {new_status!r}",
        )

    current_order = STATUS_ORDER[current_status]
    new_order = STATUS_ORDER[new_status]

    if new_order == current_order + 1:
        return StatusChangeResult(allowed=True)

    if new_order > current_order + 1 and is_manual_lead_status(new_status):
        return StatusChangeResult(allowed=True, warning=SKIP_WARNING, requires_reason=True)

    if new_order < current_order and is_manual_lead_status(new_status):
        return StatusChangeResult(allowed=True, warning=REVERT_WARNING, requires_reason=True)

    if new_status == LOST_STATUS:
        return StatusChangeResult(allowed=True, warning=LOST_WARNING, requires_reason=True)

    if new_status == WON_STATUS:
        return StatusChangeResult(allowed=True, warning=WON_WARNING, requires_reason=True)

    if new_status == SYSTEM_ONLY_STATUS:
        return StatusChangeResult(allowed=False, warning=SYSTEM_ONLY_WARNING)

    return StatusChangeResult(allowed=True)


_TRANSITION_DESCRIPTIONS = {
    (LeadStatus.NEW, LeadStatus.CONTACTED): "Customer contacted",
    (LeadStatus.CONTACTED, LeadStatus.QUOTED): "Quotation sent to customer",
    (LeadStatus.QUOTED, LeadStatus.NEGOTIATING): "Negotiating with customer",
    (LeadStatus.NEGOTIATING, LeadStatus.BOOKED): "Sale closed",
    (LeadStatus.NEGOTIATING, LeadStatus.CANCELLED): "Lead closed as lost",
    (LeadStatus.QUOTED, LeadStatus.BOOKED): "Sale closed",
    (LeadStatus.QUOTED, LeadStatus.CANCELLED): "Lead closed as lost",
    (LeadStatus.NEW, LeadStatus.QUOTED): "Quotation sent directly",
    (LeadStatus.CONTACTED, LeadStatus.NEGOTIATING): "Moved into negotiation",
}


def get_status_change_description(current_status: str, new_status: str) -> str:
    """Human-readable summary of a status move, for timelines and dialogs."""
    description = _TRANSITION_DESCRIPTIONS.get((current_status, new_status))
    if description:
        return description
    return f"Status changed from {current_status} to {new_status}"
