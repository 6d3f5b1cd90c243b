"""Django admin configuration for CRM models."""

from django.contrib import admin, messages
from django.utils import timezone

from .commission_service import mark_commission_as_paid
from .exceptions import InvalidTransitionError
from .models import Booking, Commission, Customer, Lead, LeadStatusEvent, Payment, Trip
from .selectors import annotate_active_booking_count
from .trip_status import calculate_trip_status


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ["full_name", "email", "phone", "created_at"]
    search_fields = ["first_name", "last_name", "email", "phone"]
    readonly_fields = ["id", "created_at", "updated_at"]


@admin.register(Trip)
class TripAdmin(admin.ModelAdmin):
    """Admin for Trip model.

    Status is derived, so the changelist annotates the active booking count
    and evaluates every row against the same instant.
    """

    list_display = [
        "code",
        "name",
        "start_date",
        "end_date",
        "pax",
        "get_active_bookings",
    ]
    search_fields = ["code", "name", "destination"]
    date_hierarchy = "start_date"
    readonly_fields = ["id", "created_at", "updated_at"]

    def get_queryset(self, request):
        return annotate_active_booking_count(super().get_queryset(request))

    def get_list_display(self, request):
        now = timezone.now()

        @admin.display(description="Status")
        def status(obj):
            return calculate_trip_status(
                obj.start_date, obj.end_date, obj.active_booking_count, obj.pax, now
            ).label

        return [*super().get_list_display(request), status]

    @admin.display(description="Booked", ordering="active_booking_count")
    def get_active_bookings(self, obj):
        return obj.active_booking_count


class LeadStatusEventInline(admin.TabularInline):
    model = LeadStatusEvent
    extra = 0
    can_delete = False
    fields = ["created_at", "from_status", "to_status", "actor", "is_automatic", "reason"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Lead)
class LeadAdmin(admin.ModelAdmin):
    """Admin for Lead model.

    Status is read-only here: manual changes go through
    services.change_lead_status so the status rules apply.
    """

    list_display = ["customer", "agent", "status", "source", "last_activity_at", "closed_at"]
    list_filter = ["status", "source"]
    list_select_related = ["customer", "agent"]
    search_fields = ["customer__first_name", "customer__last_name", "destination_interest"]
    raw_id_fields = ["customer", "agent"]
    readonly_fields = ["id", "status", "last_activity_at", "closed_at", "created_at", "updated_at"]
    inlines = [LeadStatusEventInline]


class PaymentInline(admin.TabularInline):
    model = Payment
    extra = 0
    fields = ["amount", "method", "paid_at", "note"]
    readonly_fields = fields
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Booking)
class BookingAdmin(admin.ModelAdmin):
    list_display = [
        "customer",
        "trip",
        "agent",
        "payment_status",
        "total_amount",
        "paid_amount",
        "created_at",
    ]
    list_filter = ["payment_status"]
    list_select_related = ["customer", "trip", "agent"]
    search_fields = ["customer__first_name", "customer__last_name", "trip__code"]
    raw_id_fields = ["customer", "trip", "lead", "agent"]
    readonly_fields = [
        "id",
        "payment_status",
        "total_amount",
        "paid_amount",
        "cancelled_at",
        "created_at",
        "updated_at",
    ]
    inlines = [PaymentInline]

    def has_add_permission(self, request):
        # Created through services.create_booking
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    list_display = ["booking", "amount", "method", "paid_at"]
    list_filter = ["method"]
    list_select_related = ["booking__customer", "booking__trip"]
    raw_id_fields = ["booking"]
    readonly_fields = ["id", "booking", "amount", "paid_at", "created_at", "updated_at"]
    date_hierarchy = "paid_at"

    def has_add_permission(self, request):
        # Payments change paid totals, so they go through services.record_payment
        return False


@admin.register(Commission)
class CommissionAdmin(admin.ModelAdmin):
    list_display = ["booking", "agent", "type", "rate", "amount", "status", "paid_at"]
    list_filter = ["status", "type"]
    list_select_related = ["booking__customer", "booking__trip", "agent"]
    search_fields = ["agent__username", "booking__trip__code"]
    readonly_fields = [
        "id",
        "booking",
        "agent",
        "lead",
        "type",
        "rate",
        "amount",
        "status",
        "paid_at",
        "created_at",
        "updated_at",
    ]
    actions = ["mark_as_paid"]

    def has_add_permission(self, request):
        return False

    @admin.action(description="Mark selected commissions as paid")
    def mark_as_paid(self, request, queryset):
        paid = 0
        for commission in queryset:
            try:
                mark_commission_as_paid(commission.pk)
            except InvalidTransitionError as exc:
                self.message_user(request, f"{commission}: {exc}", messages.WARNING)
            else:
                paid += 1
        if paid:
            self.message_user(request, f"{paid} commission(s) marked as paid", messages.SUCCESS)
