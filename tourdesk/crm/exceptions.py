"""Exceptions for the CRM engine."""


class CrmError(Exception):
    """Base exception for CRM operations."""


# =============================================================================
# Lookup Exceptions
# =============================================================================


class NotFoundError(CrmError):
    """Referenced record does not exist."""


class LeadNotFound(NotFoundError):
    """Lead does not exist."""


class BookingNotFound(NotFoundError):
    """Booking does not exist."""


class CommissionNotFound(NotFoundError):
    """Commission does not exist."""


class PaymentNotFound(NotFoundError):
    """Payment does not exist."""


# =============================================================================
# State Exceptions
# =============================================================================


class InvalidTransitionError(CrmError):
    """Status change is not permitted from the current state."""


class ReasonRequiredError(InvalidTransitionError):
    """Status change is permitted only with a reason."""


class BookingError(CrmError):
    """Error during booking process."""
