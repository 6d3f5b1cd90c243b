"""Lead models for the travel CRM.

Contains:
- LeadStatus: canonical lead pipeline vocabulary
- Lead: a prospective sale for a customer
- LeadStatusEvent: append-only record of every lead status change
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from .base import BaseModel


class LeadStatus(models.TextChoices):
    # Manual statuses, driven by the agent
    NEW = "NEW", "New"
    CONTACTED = "CONTACTED", "Contacted"
    QUOTED = "QUOTED", "Quoted"
    NEGOTIATING = "NEGOTIATING", "Negotiating"
    # System statuses, driven by booking payment state
    BOOKED = "BOOKED", "Booked"
    COMPLETED = "COMPLETED", "Completed"
    CANCELLED = "CANCELLED", "Cancelled"


# Statuses the abandonment sweep never touches
TERMINAL_LEAD_STATUSES = (
    LeadStatus.BOOKED,
    LeadStatus.COMPLETED,
    LeadStatus.CANCELLED,
)


class Lead(BaseModel):
    """A prospective customer relationship prior to a confirmed sale.

    Once any booking exists for the lead's customer, the status is owned
    by the lead sync service. Agents move leads through the manual part of
    the pipeline via services.change_lead_status.
    """

    class Source(models.TextChoices):
        WEBSITE = "WEBSITE", "Website"
        WALKIN = "WALKIN", "Walk-in"
        REFERRAL = "REFERRAL", "Referral"
        SOCIAL = "SOCIAL", "Social media"
        LINE = "LINE", "LINE"
        OTHER = "OTHER", "Other"

    customer = models.ForeignKey(
        "crm.Customer",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="leads",
    )
    agent = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="crm_leads",
    )
    status = models.CharField(
        max_length=20,
        choices=LeadStatus.choices,
        default=LeadStatus.NEW,
    )
    source = models.CharField(
        max_length=20,
        choices=Source.choices,
        default=Source.OTHER,
    )
    potential_value = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        null=True,
        blank=True,
    )
    destination_interest = models.CharField(max_length=200, blank=True, default="")
    travel_date_estimate = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True, default="")

    # Activity tracking drives the abandonment sweep
    last_activity_at = models.DateTimeField(default=timezone.now)
    closed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["status", "last_activity_at"], name="crm_lead_status_activity_idx"),
        ]

    def __str__(self):
        return f"Lead {self.customer or 'unknown'} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_LEAD_STATUSES

    def transition_to(
        self,
        new_status: str,
        *,
        actor=None,
        reason: str = "",
        is_automatic: bool = False,
        now=None,
    ) -> "LeadStatusEvent | None":
        """Persist a status change and record it.

        Callers decide whether the move is permitted; this method only
        writes. Returns None when the lead is already in new_status.
        """
        if new_status == self.status:
            return None

        now = now or timezone.now()
        old_status = self.status

        self.status = new_status
        self.last_activity_at = now
        update_fields = ["status", "last_activity_at", "updated_at"]

        if new_status in TERMINAL_LEAD_STATUSES:
            self.closed_at = now
            update_fields.append("closed_at")
        elif self.closed_at is not None:
            self.closed_at = None
            update_fields.append("closed_at")

        self.save(update_fields=update_fields)

        return LeadStatusEvent.objects.create(
            lead=self,
            from_status=old_status,
            to_status=new_status,
            actor=actor,
            reason=reason or "",
            is_automatic=is_automatic,
        )


class LeadStatusEvent(models.Model):
    """Immutable audit record of a lead status change."""

    lead = models.ForeignKey(
        Lead,
        on_delete=models.CASCADE,
        related_name="status_events",
    )
    from_status = models.CharField(max_length=20, blank=True, default="")
    to_status = models.CharField(max_length=20)
    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="crm_lead_status_events",
    )
    reason = models.TextField(blank=True, default="")
    is_automatic = models.BooleanField(
        default=False,
        help_text="Set by the booking sync rather than by a user",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.from_status or '-'} -> {self.to_status}"
