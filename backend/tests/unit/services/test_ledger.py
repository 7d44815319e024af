"""
Tests for ledger arithmetic.

WHY: Totals, vendor dues and the running-balance ledger are what users
reconcile against their bank statements; they must add up to the cent.
"""

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest

from bizledger.core.exceptions import ValidationError
from bizledger.models.vendor import BillStatus
from bizledger.services.ledger import (
    bill_status_after_payment,
    build_ledger,
    document_totals,
    line_total,
    sum_amounts,
    to_money,
    vendor_due,
)


def bill(id, day, amount, number=None):
    return SimpleNamespace(id=id, bill_date=date(2026, 1, day), amount=Decimal(amount), bill_number=number)


def payment(id, day, amount, reference=None):
    return SimpleNamespace(
        id=id, payment_date=date(2026, 1, day), amount=Decimal(amount), reference=reference
    )


class TestMoney:
    def test_rounds_half_up_to_cents(self):
        assert to_money("2.345") == Decimal("2.35")
        assert to_money(Decimal("2.344")) == Decimal("2.34")

    def test_none_is_zero(self):
        assert to_money(None) == Decimal("0.00")

    def test_float_goes_through_str(self):
        assert to_money(0.1) == Decimal("0.10")


class TestDocumentTotals:
    def test_line_total(self):
        assert line_total(Decimal("2"), Decimal("50.00")) == Decimal("100.00")
        assert line_total(Decimal("3"), Decimal("10.00"), Decimal("5.00")) == Decimal("25.00")

    def test_line_discount_above_amount_rejected(self):
        with pytest.raises(ValidationError, match="Line discount"):
            line_total(Decimal("1"), Decimal("10.00"), Decimal("10.01"))

    def test_subtotal_and_total(self):
        subtotal, total = document_totals(
            [Decimal("100.00"), Decimal("30.00")], Decimal("10.00"), Decimal("5.50")
        )
        assert subtotal == Decimal("130.00")
        assert total == Decimal("125.50")

    def test_document_discount_cannot_make_total_negative(self):
        with pytest.raises(ValidationError):
            document_totals([Decimal("10.00")], Decimal("20.00"))

    def test_no_lines(self):
        assert document_totals([]) == (Decimal("0.00"), Decimal("0.00"))


class TestVendorDue:
    def test_due_is_billed_minus_paid(self):
        bills = [bill(1, 1, "100.00"), bill(2, 2, "50.00")]
        payments = [payment(1, 3, "30.00")]
        assert sum_amounts(bills) == Decimal("150.00")
        assert vendor_due(bills, payments) == Decimal("120.00")

    def test_overpayment_is_negative_due(self):
        assert vendor_due([bill(1, 1, "10.00")], [payment(1, 2, "15.00")]) == Decimal("-5.00")

    @pytest.mark.parametrize(
        "applied,expected",
        [
            ("0", BillStatus.UNPAID),
            ("20.00", BillStatus.PARTIAL),
            ("50.00", BillStatus.PAID),
            ("70.00", BillStatus.PAID),
        ],
    )
    def test_bill_status_after_payment(self, applied, expected):
        assert bill_status_after_payment(Decimal("50.00"), Decimal(applied)) == expected


class TestBuildLedger:
    def test_running_balance(self):
        entries = build_ledger(
            [bill(1, 1, "100.00", "B-1"), bill(2, 5, "50.00")],
            [payment(1, 3, "30.00", "chq 12")],
        )

        assert [(e.entry_type, e.entry_id) for e in entries] == [
            ("bill", 1),
            ("payment", 1),
            ("bill", 2),
        ]
        assert [e.balance for e in entries] == [
            Decimal("100.00"),
            Decimal("70.00"),
            Decimal("120.00"),
        ]
        assert entries[0].reference == "B-1"
        assert entries[1].reference == "chq 12"

    def test_same_day_bill_before_payment_then_by_id(self):
        entries = build_ledger(
            [bill(7, 2, "10.00"), bill(3, 2, "20.00")],
            [payment(1, 2, "5.00")],
        )
        assert [(e.entry_type, e.entry_id) for e in entries] == [
            ("bill", 3),
            ("bill", 7),
            ("payment", 1),
        ]
        assert entries[-1].balance == Decimal("25.00")

    def test_order_does_not_depend_on_input_order(self):
        bills = [bill(1, 1, "10.00"), bill(2, 3, "20.00")]
        payments = [payment(1, 2, "5.00"), payment(2, 3, "5.00")]
        assert build_ledger(bills, payments) == build_ledger(bills[::-1], payments[::-1])

    def test_final_balance_equals_vendor_due(self):
        bills = [bill(1, 1, "100.00"), bill(2, 2, "50.00")]
        payments = [payment(1, 3, "30.00"), payment(2, 4, "120.00")]
        assert build_ledger(bills, payments)[-1].balance == vendor_due(bills, payments)

    def test_empty(self):
        assert build_ledger([], []) == []
