"""Models for the tourdesk project.

This module defines only the custom User model. Sales agents are ordinary
users whose commission rate drives commission calculation in the CRM app.
"""

from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """Back-office staff account.

    Inherits from AbstractUser: username, email, password, names, flags.
    Adds the staff role and the agent's commission rate.
    """

    class Role(models.TextChoices):
        SUPER_ADMIN = "SUPER_ADMIN", "Super admin"
        ADMIN = "ADMIN", "Admin"
        STAFF = "STAFF", "Staff"
        SALES = "SALES", "Sales"

    role = models.CharField(
        max_length=20,
        choices=Role.choices,
        default=Role.STAFF,
    )
    commission_rate = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        null=True,
        blank=True,
        help_text="Commission percentage of booking total (e.g., 5.00 = 5%)",
    )

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        swappable = "AUTH_USER_MODEL"
