"""Tests for CRM admin screens."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone
from freezegun import freeze_time

from tourdesk.crm.commission_service import update_commission_status
from tourdesk.crm.models import Booking, Commission, Trip
from tourdesk.crm.services import create_booking


@pytest.mark.django_db
class TestTripAdmin:
    def test_changelist_shows_derived_status(self, admin_client, trip, make_booking):
        make_booking()

        response = admin_client.get(reverse("admin:crm_trip_changelist"))

        assert response.status_code == 200
        assert b"Upcoming" in response.content

    def test_each_changelist_uses_its_own_instant(self, admin_client, customer):
        now = timezone.now()
        trip = Trip.objects.create(
            code="VN-1",
            name="Ha Long Bay",
            start_date=now - timedelta(days=1),
            end_date=now + timedelta(days=1),
            pax=10,
            standard_price=Decimal("8000.00"),
        )
        create_booking(customer, trip)
        url = reverse("admin:crm_trip_changelist")

        during = admin_client.get(url)
        with freeze_time(now + timedelta(days=3)):
            after = admin_client.get(url)
        with freeze_time(now - timedelta(days=2)):
            before = admin_client.get(url)

        assert b"On trip" in during.content
        assert b"Completed" in after.content
        assert b"Upcoming" in before.content


@pytest.mark.django_db
class TestCommissionAdmin:
    def test_mark_as_paid_action(self, admin_client, staff, make_booking):
        approved = make_booking(agent=staff)
        Booking.objects.filter(pk=approved.pk).update(paid_amount=approved.total_amount)
        update_commission_status(approved.pk)
        pending = make_booking(agent=staff)

        response = admin_client.post(
            reverse("admin:crm_commission_changelist"),
            {
                "action": "mark_as_paid",
                "_selected_action": [approved.commission.pk, pending.commission.pk],
            },
            follow=True,
        )

        assert response.status_code == 200
        assert Commission.objects.get(booking=approved).status == Commission.Status.PAID
        assert Commission.objects.get(booking=pending).status == Commission.Status.PENDING
