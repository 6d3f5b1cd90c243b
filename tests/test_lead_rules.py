"""Tests for lead status change rules."""

import pytest

from tourdesk.crm.lead_rules import (
    CANCEL_BOOKINGS_FIRST,
    LOST_WARNING,
    MANAGED_AUTOMATICALLY,
    REVERT_WARNING,
    SKIP_WARNING,
    SYSTEM_ONLY_WARNING,
    WON_WARNING,
    StatusChangeResult,
    get_status_change_description,
    validate_status_change,
)
from tourdesk.crm.models import LeadStatus


class TestValidateStatusChange:
    """Tests for validate_status_change, in rule priority order."""

    @pytest.mark.parametrize("status", LeadStatus.values)
    @pytest.mark.parametrize("has_active", [False, True])
    def test_same_status_is_always_allowed(self, status, has_active):
        assert validate_status_change(status, status, has_active) == StatusChangeResult(
            allowed=True
        )

    @pytest.mark.parametrize(
        "new_status", [LeadStatus.BOOKED, LeadStatus.COMPLETED, LeadStatus.CANCELLED]
    )
    def test_active_bookings_block_moving_to_system_status(self, new_status):
        result = validate_status_change(LeadStatus.NEGOTIATING, new_status, True)

        assert result.allowed is False
        assert result.warning == MANAGED_AUTOMATICALLY

    def test_active_bookings_block_leaving_system_status(self):
        result = validate_status_change(LeadStatus.BOOKED, LeadStatus.CONTACTED, True)

        assert result.allowed is False
        assert result.warning == CANCEL_BOOKINGS_FIRST

    def test_active_bookings_do_not_block_manual_moves(self):
        result = validate_status_change(LeadStatus.NEW, LeadStatus.CONTACTED, True)

        assert result == StatusChangeResult(allowed=True)

    @pytest.mark.parametrize(
        "current,new",
        [
            (LeadStatus.NEW, LeadStatus.CONTACTED),
            (LeadStatus.CONTACTED, LeadStatus.QUOTED),
            (LeadStatus.QUOTED, LeadStatus.NEGOTIATING),
            (LeadStatus.NEGOTIATING, LeadStatus.BOOKED),
            (LeadStatus.NEGOTIATING, LeadStatus.CANCELLED),
        ],
    )
    def test_one_step_forward_is_allowed_silently(self, current, new):
        assert validate_status_change(current, new) == StatusChangeResult(allowed=True)

    def test_two_step_skip_requires_reason(self):
        result = validate_status_change(LeadStatus.NEW, LeadStatus.NEGOTIATING, False)

        assert result.allowed is True
        assert result.requires_reason is True
        assert result.warning == SKIP_WARNING

    def test_revert_requires_reason(self):
        result = validate_status_change(LeadStatus.QUOTED, LeadStatus.NEW)

        assert result.allowed is True
        assert result.requires_reason is True
        assert result.warning == REVERT_WARNING

    def test_reopen_closed_lead_without_bookings_is_a_revert(self):
        result = validate_status_change(LeadStatus.CANCELLED, LeadStatus.CONTACTED, False)

        assert result.allowed is True
        assert result.requires_reason is True

    def test_closing_as_lost_early_requires_reason(self):
        result = validate_status_change(LeadStatus.CONTACTED, LeadStatus.CANCELLED)

        assert result.allowed is True
        assert result.requires_reason is True
        assert result.warning == LOST_WARNING

    def test_manual_won_requires_reason(self):
        result = validate_status_change(LeadStatus.NEW, LeadStatus.BOOKED)

        assert result.allowed is True
        assert result.requires_reason is True
        assert result.warning == WON_WARNING

    def test_completed_is_system_only(self):
        result = validate_status_change(LeadStatus.QUOTED, LeadStatus.COMPLETED)

        assert result.allowed is False
        assert result.warning == SYSTEM_ONLY_WARNING

    def test_between_closed_statuses_lost_requires_reason(self):
        result = validate_status_change(LeadStatus.BOOKED, LeadStatus.CANCELLED)

        assert result.allowed is True
        assert result.warning == LOST_WARNING

    def test_unknown_status_is_rejected(self):
        result = validate_status_change(LeadStatus.NEW, "ARCHIVED")

        assert result.allowed is False
        assert "ARCHIVED" in result.warning


class TestGetStatusChangeDescription:
    def test_known_transition(self):
        assert (
            get_status_change_description(LeadStatus.NEW, LeadStatus.CONTACTED)
            == "Customer contacted"
        )

    def test_fallback_names_both_statuses(self):
        description = get_status_change_description(LeadStatus.BOOKED, LeadStatus.NEW)

        assert "BOOKED" in description
        assert "NEW" in description
