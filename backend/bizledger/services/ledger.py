"""
Ledger arithmetic.

WHAT: Pure computations over already-fetched rows: line and document
totals, vendor due, bill status after a payment and the vendor ledger with
its running balance.

WHY: Money is Decimal everywhere and rounded to cents with ROUND_HALF_UP at
the point a value is stored, so totals computed here add up exactly.

HOW: Functions take plain values or any objects exposing the attributes
they read (``amount``, ``id``, ``bill_date``/``payment_date``), so the
same code serves ORM rows and test doubles.
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from bizledger.core.exceptions import ValidationError
from bizledger.models.vendor import BillStatus

CENT = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value: Any) -> Decimal:
    """Convert to a Decimal rounded to cents."""
    if value is None:
        return ZERO
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


# ============================================================================
# Line items and documents
# ============================================================================


def line_total(quantity: Any, unit_price: Any, discount: Any = ZERO) -> Decimal:
    """
    total = quantity * unit_price - discount

    Raises:
        ValidationError: if the discount exceeds the line amount
    """
    gross = Decimal(str(quantity)) * Decimal(str(unit_price))
    total = to_money(gross - Decimal(str(discount or 0)))
    if total < 0:
        raise ValidationError(
            message="Line discount cannot exceed quantity x unit price",
            quantity=str(quantity),
            unit_price=str(unit_price),
            discount=str(discount),
        )
    return total


def document_totals(
    line_totals: Iterable[Decimal],
    discount_amount: Any = ZERO,
    tax_amount: Any = ZERO,
) -> Tuple[Decimal, Decimal]:
    """
    Compute (subtotal, total) for a quotation or invoice.

    subtotal = sum of line totals
    total = subtotal - discount_amount + tax_amount

    Raises:
        ValidationError: if the discount makes the total negative
    """
    subtotal = to_money(sum((Decimal(t) for t in line_totals), ZERO))
    total = to_money(subtotal - to_money(discount_amount) + to_money(tax_amount))
    if total < 0:
        raise ValidationError(
            message="Discount cannot exceed subtotal plus tax",
            subtotal=str(subtotal),
            discount_amount=str(discount_amount),
        )
    return subtotal, total


# ============================================================================
# Vendors
# ============================================================================


def sum_amounts(rows: Iterable[Any]) -> Decimal:
    return to_money(sum((Decimal(r.amount) for r in rows), ZERO))


def vendor_due(bills: Iterable[Any], payments: Iterable[Any]) -> Decimal:
    """
    sum(bill amounts) - sum(payment amounts).

    Not clamped: a negative result is a credit with the vendor.
    """
    return sum_amounts(bills) - sum_amounts(payments)


def bill_status_after_payment(bill_amount: Any, applied_total: Any) -> BillStatus:
    """
    Status of a bill given everything applied to it so far.

    Args:
        bill_amount: The bill's amount
        applied_total: Sum of all payments linked to the bill (including the new one)
    """
    applied = Decimal(applied_total or 0)
    if applied >= Decimal(bill_amount):
        return BillStatus.PAID
    if applied > 0:
        return BillStatus.PARTIAL
    return BillStatus.UNPAID


@dataclass(frozen=True)
class LedgerEntry:
    """One row of a vendor ledger."""

    entry_type: str  # "bill" or "payment"
    entry_id: int
    entry_date: date
    amount: Decimal
    reference: Optional[str]
    balance: Decimal


# Same-day bills are listed before same-day payments
_TYPE_ORDER = {"bill": 0, "payment": 1}


def build_ledger(bills: Sequence[Any], payments: Sequence[Any]) -> List[LedgerEntry]:
    """
    Merge a vendor's bills and payments into one chronological ledger.

    Ordering is by date, then bills before payments, then row id, so the
    result does not depend on fetch order. The running balance adds each
    bill amount and subtracts each payment amount.

    Args:
        bills: Rows with id, bill_date, amount, bill_number
        payments: Rows with id, payment_date, amount, reference

    Returns:
        Ledger entries in order, each carrying the balance after it
    """
    rows = [
        ("bill", b.id, b.bill_date, to_money(b.amount), getattr(b, "bill_number", None))
        for b in bills
    ] + [
        ("payment", p.id, p.payment_date, to_money(p.amount), getattr(p, "reference", None))
        for p in payments
    ]
    rows.sort(key=lambda r: (r[2], _TYPE_ORDER[r[0]], r[1]))

    balance = ZERO
    entries: List[LedgerEntry] = []
    for entry_type, entry_id, entry_date, amount, reference in rows:
        balance = balance + amount if entry_type == "bill" else balance - amount
        entries.append(
            LedgerEntry(
                entry_type=entry_type,
                entry_id=entry_id,
                entry_date=entry_date,
                amount=amount,
                reference=reference,
                balance=balance,
            )
        )
    return entries
