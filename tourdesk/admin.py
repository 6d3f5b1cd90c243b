"""Admin configuration for tourdesk.

The CRM app registers its own admin classes. This module only registers
the custom User model with its role and commission rate.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    list_display = ("username", "email", "first_name", "last_name", "role", "commission_rate", "is_staff")
    list_filter = BaseUserAdmin.list_filter + ("role",)
    fieldsets = BaseUserAdmin.fieldsets + (
        ("Sales", {"fields": ("role", "commission_rate")}),
    )
