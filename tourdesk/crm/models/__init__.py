"""CRM models package.

Import from crm.models as usual:
    from tourdesk.crm.models import Lead, Booking

Modules:
- base.py: BaseModel (UUID pk, timestamps, soft delete)
- customers.py: Customer
- trips.py: Trip
- leads.py: LeadStatus, Lead, LeadStatusEvent
- bookings.py: Booking, Payment
- commissions.py: Commission
"""

from .base import BaseModel, SoftDeleteManager
from .bookings import ACTIVE_PAYMENT_STATUSES, Booking, Payment
from .commissions import Commission
from .customers import Customer
from .leads import TERMINAL_LEAD_STATUSES, Lead, LeadStatus, LeadStatusEvent
from .trips import Trip

__all__ = [
    "ACTIVE_PAYMENT_STATUSES",
    "BaseModel",
    "Booking",
    "Commission",
    "Customer",
    "Lead",
    "LeadStatus",
    "LeadStatusEvent",
    "Payment",
    "SoftDeleteManager",
    "TERMINAL_LEAD_STATUSES",
    "Trip",
]
