"""
Tests for document lifecycle rules.

WHY: The transition graph and the invoice status derivations decide what
every endpoint allows; they are pure, so they are checked exhaustively here
without a database.
"""

from datetime import date, timedelta
from decimal import Decimal
from itertools import product

import pytest

from bizledger.core.exceptions import ErrorKind, InvalidStateTransitionError
from bizledger.models.invoice import InvoiceStatus
from bizledger.models.quotation import QuotationStatus
from bizledger.services.lifecycle import (
    DisplayStatus,
    EXPIRABLE_QUOTATION_STATUSES,
    QUOTATION_TRANSITIONS,
    TERMINAL_QUOTATION_STATUSES,
    can_delete,
    can_transition,
    derive_display_status,
    derive_invoice_status,
    due_amount,
    ensure_deletable,
    ensure_editable,
    ensure_transition,
    is_editable,
    should_expire,
)

TODAY = date(2026, 3, 15)

ALLOWED = {
    (QuotationStatus.DRAFT, QuotationStatus.SENT),
    (QuotationStatus.DRAFT, QuotationStatus.EXPIRED),
    (QuotationStatus.SENT, QuotationStatus.ACCEPTED),
    (QuotationStatus.SENT, QuotationStatus.REJECTED),
    (QuotationStatus.SENT, QuotationStatus.EXPIRED),
    (QuotationStatus.ACCEPTED, QuotationStatus.CONVERTED),
    (QuotationStatus.ACCEPTED, QuotationStatus.EXPIRED),
}


class TestQuotationTransitions:
    """The status graph, pair by pair."""

    @pytest.mark.parametrize("current,target", list(product(QuotationStatus, QuotationStatus)))
    def test_every_pair(self, current, target):
        assert can_transition(current, target) == ((current, target) in ALLOWED)

    def test_terminal_statuses(self):
        assert TERMINAL_QUOTATION_STATUSES == {
            QuotationStatus.REJECTED,
            QuotationStatus.CONVERTED,
            QuotationStatus.EXPIRED,
        }

    def test_graph_has_no_path_back_to_draft(self):
        assert all(QuotationStatus.DRAFT not in targets for targets in QUOTATION_TRANSITIONS.values())

    def test_accepts_string_values(self):
        assert can_transition("sent", "accepted")

    def test_ensure_transition_raises_with_states(self):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            ensure_transition(QuotationStatus.DRAFT, QuotationStatus.ACCEPTED)

        exc = exc_info.value
        assert exc.status_code == 409
        assert exc.kind == ErrorKind.INVALID_TRANSITION
        assert exc.context["current_state"] == "draft"
        assert exc.context["requested_state"] == "accepted"
        assert "allowed: expired, sent" in exc.message

    def test_ensure_transition_from_terminal(self):
        with pytest.raises(InvalidStateTransitionError, match="can no longer change status"):
            ensure_transition(QuotationStatus.CONVERTED, QuotationStatus.SENT)

    def test_ensure_transition_back_to_draft(self):
        with pytest.raises(InvalidStateTransitionError, match="back to draft"):
            ensure_transition(QuotationStatus.SENT, QuotationStatus.DRAFT)

    def test_ensure_transition_allowed_returns_none(self):
        assert ensure_transition(QuotationStatus.SENT, QuotationStatus.REJECTED) is None


class TestEditAndDeleteGates:
    @pytest.mark.parametrize("status", list(QuotationStatus))
    def test_only_drafts_are_editable_and_deletable(self, status):
        expected = status == QuotationStatus.DRAFT
        assert is_editable(status) is expected
        assert can_delete(status) is expected

    def test_ensure_editable_raises_for_sent(self):
        with pytest.raises(InvalidStateTransitionError) as exc_info:
            ensure_editable(QuotationStatus.SENT)
        assert exc_info.value.context == {"current_state": "sent", "requested_state": "edit"}

    def test_ensure_deletable_raises_for_accepted(self):
        with pytest.raises(InvalidStateTransitionError, match="Only draft quotations can be deleted"):
            ensure_deletable(QuotationStatus.ACCEPTED)


class TestShouldExpire:
    def test_expirable_statuses(self):
        assert EXPIRABLE_QUOTATION_STATUSES == {
            QuotationStatus.DRAFT,
            QuotationStatus.SENT,
            QuotationStatus.ACCEPTED,
        }

    @pytest.mark.parametrize("status", sorted(EXPIRABLE_QUOTATION_STATUSES, key=lambda s: s.value))
    def test_open_quotation_past_validity_expires(self, status):
        assert should_expire(status, TODAY - timedelta(days=1), TODAY)

    def test_validity_ending_today_is_still_valid(self):
        assert not should_expire(QuotationStatus.SENT, TODAY, TODAY)

    def test_no_valid_until_never_expires(self):
        assert not should_expire(QuotationStatus.SENT, None, TODAY)

    @pytest.mark.parametrize(
        "status",
        [QuotationStatus.REJECTED, QuotationStatus.CONVERTED, QuotationStatus.EXPIRED],
    )
    def test_terminal_quotations_are_left_alone(self, status):
        assert not should_expire(status, TODAY - timedelta(days=30), TODAY)


class TestInvoiceStatus:
    """Display status order: paid, overdue, partial, due."""

    def test_fully_paid_is_paid_even_when_past_due(self):
        status = derive_display_status(
            Decimal("100.00"), Decimal("100.00"), TODAY - timedelta(days=10), TODAY
        )
        assert status == DisplayStatus.PAID

    def test_past_due_with_balance_is_overdue_even_if_partially_paid(self):
        status = derive_display_status(
            Decimal("100.00"), Decimal("40.00"), TODAY - timedelta(days=1), TODAY
        )
        assert status == DisplayStatus.OVERDUE

    def test_due_today_is_not_overdue(self):
        assert derive_display_status(Decimal("100"), Decimal("0"), TODAY, TODAY) == DisplayStatus.DUE

    def test_partial(self):
        status = derive_display_status(Decimal("100"), Decimal("0.01"), TODAY + timedelta(days=5), TODAY)
        assert status == DisplayStatus.PARTIAL

    def test_no_due_date_unpaid_is_due(self):
        assert derive_display_status(Decimal("100"), None, None, TODAY) == DisplayStatus.DUE

    def test_zero_total_is_paid(self):
        assert derive_display_status(Decimal("0"), Decimal("0"), None, TODAY) == DisplayStatus.PAID

    def test_due_amount_never_negative(self):
        assert due_amount(Decimal("100.00"), Decimal("30.00")) == Decimal("70.00")
        assert due_amount(Decimal("100.00"), Decimal("120.00")) == Decimal("0.00")

    @pytest.mark.parametrize(
        "paid,expected",
        [
            ("0", InvoiceStatus.UNPAID),
            ("0.01", InvoiceStatus.PARTIAL),
            ("99.99", InvoiceStatus.PARTIAL),
            ("100.00", InvoiceStatus.PAID),
        ],
    )
    def test_stored_status_after_payment(self, paid, expected):
        assert derive_invoice_status(Decimal("100.00"), Decimal(paid)) == expected
