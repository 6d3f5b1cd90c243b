"""Concurrency tests for row locking and the one-commission-per-booking rule.

Threads each open their own connection, so these tests need a database
with real row locks and run only on PostgreSQL.
"""

import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from decimal import Decimal

import pytest
from django.db import connection

from tourdesk.crm.commission_service import calculate_commission
from tourdesk.crm.models import Booking, Commission, Payment
from tourdesk.crm.services import record_payment


@pytest.fixture
def postgres_only(db):
    if connection.vendor != "postgresql":
        pytest.skip("Row locking needs PostgreSQL (set TOURDESK_TEST_DB=postgres)")


def _run_concurrently(func, count):
    """Run func(i) in count threads released together; collect results."""
    barrier = threading.Barrier(count)
    results = []
    errors = []

    def worker(i):
        try:
            barrier.wait()
            return func(i)
        finally:
            connection.close()

    with ThreadPoolExecutor(max_workers=count) as executor:
        futures = [executor.submit(worker, i) for i in range(count)]
        for future in as_completed(futures):
            try:
                results.append(future.result())
            except Exception as exc:
                errors.append(exc)

    return results, errors


@pytest.mark.django_db(transaction=True)
class TestConcurrentPayments:
    """Payments recorded at the same time on one booking."""

    def test_no_lost_update_on_paid_amount(self, postgres_only, staff, make_booking):
        booking = make_booking(agent=staff)

        results, errors = _run_concurrently(
            lambda i: record_payment(booking, Decimal("1000.00")), 10
        )

        assert errors == []
        assert len(results) == 10

        booking.refresh_from_db()
        assert Payment.objects.filter(booking=booking).count() == 10
        assert booking.paid_amount == Decimal("10000.00")
        assert booking.payment_status == Booking.PaymentStatus.FULLY_PAID
        assert Commission.objects.get(booking=booking).status == Commission.Status.APPROVED


@pytest.mark.django_db(transaction=True)
class TestConcurrentCommissionCreation:
    """calculate_commission racing on one booking."""

    def test_single_commission_row(self, postgres_only, staff, trip, customer):
        booking = Booking.objects.create(
            customer=customer,
            trip=trip,
            agent=staff,
            total_amount=Decimal("10000.00"),
        )

        results, errors = _run_concurrently(lambda i: calculate_commission(booking.pk), 5)

        assert errors == []
        assert Commission.objects.filter(booking=booking).count() == 1
        commission = Commission.objects.get(booking=booking)
        assert {result.pk for result in results} == {commission.pk}
