"""Tests for commission calculation and status tracking."""

from decimal import Decimal
from unittest.mock import patch

import pytest
from django.db import IntegrityError

from tourdesk.crm.commission_service import (
    calculate_commission,
    get_agent_commission_summary,
    get_commission_agent,
    mark_commission_as_paid,
    update_commission_status,
)
from tourdesk.crm.exceptions import BookingNotFound, CommissionNotFound, InvalidTransitionError
from tourdesk.crm.models import Booking, Commission, Lead
from tourdesk.crm.services import cancel_booking, record_payment


def _mark_fully_paid(booking):
    Booking.objects.filter(pk=booking.pk).update(
        paid_amount=booking.total_amount,
        payment_status=Booking.PaymentStatus.FULLY_PAID,
    )


@pytest.mark.django_db
class TestGetCommissionAgent:
    """Tests for agent resolution priority."""

    def test_lead_agent_earns_sales_commission(self, lead, staff, make_booking):
        booking = make_booking(lead=lead, agent=staff)

        info = get_commission_agent(booking)

        assert info.agent_id == lead.agent.pk
        assert info.rate == Decimal("10.00")
        assert info.type == Commission.Type.SALES

    def test_booking_agent_on_lead_without_agent_is_service(self, customer, staff, make_booking):
        lead = Lead.objects.create(customer=customer)
        booking = make_booking(lead=lead, agent=staff)

        info = get_commission_agent(booking)

        assert info.agent_id == staff.pk
        assert info.type == Commission.Type.SERVICE

    def test_booking_agent_without_lead_is_walkin(self, staff, make_booking):
        booking = make_booking(agent=staff)

        info = get_commission_agent(booking)

        assert info.agent_id == staff.pk
        assert info.rate == Decimal("5.00")
        assert info.type == Commission.Type.WALKIN

    def test_no_agent(self, make_booking):
        assert get_commission_agent(make_booking()) is None

    def test_missing_rate_counts_as_zero(self, django_user_model, make_booking):
        no_rate = django_user_model.objects.create_user(username="norate", password="x")
        booking = make_booking(agent=no_rate)

        assert get_commission_agent(booking).rate == Decimal("0.00")


@pytest.mark.django_db
class TestCalculateCommission:
    """Tests for calculate_commission."""

    def test_amount_is_percentage_of_total(self, staff, make_booking):
        booking = make_booking(agent=staff, extra_price="1500.00", discount_price="500.00")

        commission = calculate_commission(booking.pk)

        # 5% of 11,000
        assert commission.amount == Decimal("550.00")
        assert commission.rate == Decimal("5.00")
        assert commission.status == Commission.Status.PENDING

    def test_amount_rounds_to_cents(self, django_user_model, make_booking):
        odd = django_user_model.objects.create_user(
            username="odd", password="x", commission_rate=Decimal("3.33")
        )
        booking = make_booking(agent=odd, extra_price="0.15")

        commission = calculate_commission(booking.pk)

        # 10,000.15 * 3.33% = 333.004995
        assert commission.amount == Decimal("333.00")

    def test_idempotent(self, staff, make_booking):
        booking = make_booking(agent=staff)

        first = calculate_commission(booking.pk)
        second = calculate_commission(booking.pk)

        assert first.pk == second.pk
        assert Commission.objects.filter(booking=booking).count() == 1

    def test_existing_commission_is_not_recomputed(self, staff, make_booking):
        booking = make_booking(agent=staff)
        staff.commission_rate = Decimal("50.00")
        staff.save()

        commission = calculate_commission(booking.pk)

        assert commission.rate == Decimal("5.00")

    def test_no_agent_no_commission(self, make_booking):
        booking = make_booking()

        assert calculate_commission(booking.pk) is None
        assert not Commission.objects.exists()

    def test_fully_paid_booking_starts_approved(self, staff, trip, customer):
        booking = Booking.objects.create(
            customer=customer,
            trip=trip,
            agent=staff,
            total_amount=Decimal("10000.00"),
            paid_amount=Decimal("10000.00"),
            payment_status=Booking.PaymentStatus.FULLY_PAID,
        )

        commission = calculate_commission(booking.pk)

        assert commission.status == Commission.Status.APPROVED

    def test_missing_booking_raises(self):
        with pytest.raises(BookingNotFound):
            calculate_commission("00000000-0000-0000-0000-000000000000")


@pytest.mark.django_db
class TestUpdateCommissionStatus:
    """Tests for update_commission_status."""

    def test_payments_reaching_total_approve(self, lead, make_booking):
        booking = make_booking(lead=lead)
        record_payment(booking, Decimal("3000.00"))

        assert booking.commission.status == Commission.Status.PENDING

        record_payment(booking, Decimal("7000.00"))

        booking.refresh_from_db()
        assert booking.paid_amount == Decimal("10000.00")
        booking.commission.refresh_from_db()
        assert booking.commission.status == Commission.Status.APPROVED

    def test_underpaid_again_reverts_to_pending(self, staff, make_booking):
        booking = make_booking(agent=staff)
        _mark_fully_paid(booking)
        update_commission_status(booking.pk)

        Booking.objects.filter(pk=booking.pk).update(paid_amount=Decimal("100.00"))
        commission = update_commission_status(booking.pk)

        assert commission.status == Commission.Status.PENDING

    def test_cancelled_booking_reverts_to_pending(self, staff, make_booking):
        booking = make_booking(agent=staff)
        _mark_fully_paid(booking)
        update_commission_status(booking.pk)

        cancel_booking(booking)

        commission = Commission.objects.get(booking=booking)
        assert commission.status == Commission.Status.PENDING

    def test_paid_commission_is_never_reverted(self, staff, make_booking):
        booking = make_booking(agent=staff)
        _mark_fully_paid(booking)
        commission = update_commission_status(booking.pk)
        mark_commission_as_paid(commission.pk)

        Booking.objects.filter(pk=booking.pk).update(paid_amount=Decimal("0.00"))
        commission = update_commission_status(booking.pk)

        assert commission.status == Commission.Status.PAID

    def test_booking_without_commission(self, make_booking):
        assert update_commission_status(make_booking().pk) is None


@pytest.mark.django_db
class TestMarkCommissionAsPaid:
    """Tests for mark_commission_as_paid."""

    def test_pending_cannot_be_paid(self, staff, make_booking):
        booking = make_booking(agent=staff)
        commission = booking.commission

        with pytest.raises(InvalidTransitionError):
            mark_commission_as_paid(commission.pk)

        commission.refresh_from_db()
        assert commission.status == Commission.Status.PENDING
        assert commission.paid_at is None

    def test_approved_becomes_paid(self, staff, make_booking):
        booking = make_booking(agent=staff)
        _mark_fully_paid(booking)
        update_commission_status(booking.pk)

        commission = mark_commission_as_paid(booking.commission.pk)

        assert commission.status == Commission.Status.PAID
        assert commission.paid_at is not None

    def test_paid_cannot_be_paid_twice(self, staff, make_booking):
        booking = make_booking(agent=staff)
        _mark_fully_paid(booking)
        update_commission_status(booking.pk)
        mark_commission_as_paid(booking.commission.pk)

        with pytest.raises(InvalidTransitionError):
            mark_commission_as_paid(booking.commission.pk)

    def test_missing_commission_raises(self):
        with pytest.raises(CommissionNotFound):
            mark_commission_as_paid("00000000-0000-0000-0000-000000000000")


@pytest.mark.django_db
class TestAgentCommissionSummary:
    def test_buckets_by_status(self, staff, make_booking):
        pending = make_booking(agent=staff)
        approved = make_booking(agent=staff)
        _mark_fully_paid(approved)
        update_commission_status(approved.pk)

        summary = get_agent_commission_summary(staff.pk)

        assert pending.commission.status == Commission.Status.PENDING
        assert summary.count == 2
        assert summary.pending == Decimal("500.00")
        assert summary.approved == Decimal("500.00")
        assert summary.paid == Decimal("0.00")
        assert summary.total == Decimal("1000.00")

    def test_agent_without_commissions(self, staff):
        summary = get_agent_commission_summary(staff.pk)

        assert summary.count == 0
        assert summary.total == Decimal("0.00")


@pytest.mark.django_db
class TestCommissionRace:
    """Losing the one-commission-per-booking race."""

    def test_integrity_error_returns_winning_row(self, staff, make_booking):
        booking = make_booking(agent=staff)
        winner = booking.commission

        with patch(
            "tourdesk.crm.commission_service._create_commission",
            side_effect=IntegrityError("duplicate key value violates unique constraint"),
        ):
            commission = calculate_commission(booking.pk)

        assert commission.pk == winner.pk
        assert Commission.objects.filter(booking=booking).count() == 1

    def test_integrity_error_without_existing_row_propagates(self, make_booking):
        booking = make_booking()

        with patch(
            "tourdesk.crm.commission_service._create_commission",
            side_effect=IntegrityError("unrelated constraint"),
        ):
            with pytest.raises(IntegrityError):
                calculate_commission(booking.pk)


@pytest.mark.django_db
class TestSoftDeletedLead:
    def test_deleted_lead_agent_earns_nothing_as_sales(self, lead, staff, trip, customer):
        lead.delete()
        booking = Booking.objects.create(
            customer=customer,
            trip=trip,
            lead=lead,
            agent=staff,
            total_amount=Decimal("10000.00"),
        )

        info = get_commission_agent(booking)

        assert info.agent_id == staff.pk
        assert info.type == Commission.Type.SERVICE

    def test_deleted_lead_without_booking_agent(self, lead, trip, customer):
        lead.delete()
        booking = Booking.objects.create(
            customer=customer,
            trip=trip,
            lead=lead,
            total_amount=Decimal("10000.00"),
        )

        assert calculate_commission(booking.pk) is None
