"""Pytest configuration for tourdesk tests."""

from datetime import timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from tourdesk.crm.models import Customer, Lead, Trip
from tourdesk.crm.services import create_booking


@pytest.fixture
def agent(db, django_user_model):
    """Sales agent earning 10% commission."""
    return django_user_model.objects.create_user(
        username="agent",
        password="testpass123",
        role="SALES",
        commission_rate=Decimal("10.00"),
    )


@pytest.fixture
def staff(db, django_user_model):
    """Front-desk staff earning 5% commission."""
    return django_user_model.objects.create_user(
        username="staff",
        password="testpass123",
        role="STAFF",
        commission_rate=Decimal("5.00"),
    )


@pytest.fixture
def customer(db):
    return Customer.objects.create(
        first_name="Somchai",
        last_name="Jaidee",
        email="somchai@example.com",
        phone="0812345678",
    )


@pytest.fixture
def other_customer(db):
    return Customer.objects.create(first_name="Malee", last_name="Srisuk")


@pytest.fixture
def trip(db):
    """Trip departing in two weeks, 20 seats, 10,000 per booking."""
    start = timezone.now() + timedelta(days=14)
    return Trip.objects.create(
        code="JP-2026-01",
        name="Tokyo Autumn Leaves",
        destination="Japan",
        start_date=start,
        end_date=start + timedelta(days=5),
        pax=20,
        standard_price=Decimal("10000.00"),
    )


@pytest.fixture
def lead(customer, agent):
    return Lead.objects.create(customer=customer, agent=agent)


@pytest.fixture
def make_booking(customer, trip):
    """Factory for bookings created through the booking service."""

    def _make_booking(**kwargs):
        kwargs.setdefault("customer", customer)
        kwargs.setdefault("trip", trip)
        return create_booking(kwargs.pop("customer"), kwargs.pop("trip"), **kwargs)

    return _make_booking
