"""Django app configuration for the CRM engine."""

from django.apps import AppConfig


class CrmConfig(AppConfig):
    """App configuration for leads, bookings and commissions."""

    name = "tourdesk.crm"
    label = "crm"
    verbose_name = "Travel CRM"
    default_auto_field = "django.db.models.BigAutoField"
