"""Customer model for the travel CRM."""

from django.db import models

from .base import BaseModel


class Customer(BaseModel):
    """A traveller (or prospective traveller) known to the agency.

    Leads and bookings both hang off the customer; the lead sync reads
    a customer's bookings to derive the status of that customer's leads.
    """

    first_name = models.CharField(max_length=100)
    last_name = models.CharField(max_length=100)
    email = models.EmailField(blank=True, default="")
    phone = models.CharField(max_length=30, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    class Meta:
        ordering = ["last_name", "first_name"]
        indexes = [
            models.Index(fields=["email"], name="crm_customer_email_idx"),
            models.Index(fields=["phone"], name="crm_customer_phone_idx"),
        ]

    def __str__(self):
        return self.full_name

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()
