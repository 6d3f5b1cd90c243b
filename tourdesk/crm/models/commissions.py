"""Commission model for the travel CRM.

State machine: PENDING <-> APPROVED -> PAID. PAID is terminal; a paid
commission is never clawed back by a later refund.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from ..exceptions import InvalidTransitionError
from .base import BaseModel


class Commission(BaseModel):
    """Money owed to an agent for a booking.

    At most one commission exists per booking (one-to-one). Status moves
    only through approve(), revert_to_pending() and mark_paid().
    """

    class Type(models.TextChoices):
        SALES = "SALES", "Sales commission"
        SERVICE = "SERVICE", "Service commission"
        WALKIN = "WALKIN", "Walk-in commission"

    class Status(models.TextChoices):
        PENDING = "PENDING", "Pending"
        APPROVED = "APPROVED", "Approved"
        PAID = "PAID", "Paid"

    booking = models.OneToOneField(
        "crm.Booking",
        on_delete=models.PROTECT,
        related_name="commission",
    )
    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="crm_commissions",
    )
    lead = models.ForeignKey(
        "crm.Lead",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="commissions",
    )
    type = models.CharField(max_length=20, choices=Type.choices)
    rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        help_text="Percentage of booking total (e.g., 5.00 = 5%)",
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
    )
    paid_at = models.DateTimeField(null=True, blank=True)
    note = models.CharField(max_length=500, blank=True, default="")

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["agent", "status"], name="crm_commission_agent_idx"),
        ]

    def __str__(self):
        return f"{self.get_type_display()} {self.amount} ({self.status})"

    def approve(self) -> bool:
        """PENDING -> APPROVED. Returns False if already approved."""
        if self.status == self.Status.APPROVED:
            return False
        if self.status != self.Status.PENDING:
            raise InvalidTransitionError(
                f"Cannot approve commission in status={self.status}"
            )
        self.status = self.Status.APPROVED
        self.save(update_fields=["status", "updated_at"])
        return True

    def revert_to_pending(self) -> bool:
        """APPROVED -> PENDING. Returns False if already pending."""
        if self.status == self.Status.PENDING:
            return False
        if self.status != self.Status.APPROVED:
            raise InvalidTransitionError(
                f"Cannot revert commission in status={self.status}"
            )
        self.status = self.Status.PENDING
        self.save(update_fields=["status", "updated_at"])
        return True

    def mark_paid(self, now=None) -> None:
        """APPROVED -> PAID, recording when it was paid."""
        if self.status != self.Status.APPROVED:
            raise InvalidTransitionError(
                "Commission must be APPROVED before it can be marked PAID "
                f"(current status={self.status})"
            )
        self.status = self.Status.PAID
        self.paid_at = now or timezone.now()
        self.save(update_fields=["status", "paid_at", "updated_at"])
