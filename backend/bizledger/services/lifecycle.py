"""
Document lifecycle rules for quotations and invoices.

WHAT: The quotation transition graph, the edit/delete gates, the expiry
predicate and the invoice status derivations.

WHY: These rules are consulted by the API, the services, the expiry sweep
and the response builders. Keeping them as pure functions in one module
means there is exactly one definition of "may this quotation be sent" or
"is this invoice overdue", and each can be unit-tested without a database.

HOW: Plain functions over enum values, Decimals and dates. The ``ensure_*``
variants raise InvalidStateTransitionError before anything is written.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Dict, FrozenSet, Optional

from bizledger.core.exceptions import InvalidStateTransitionError
from bizledger.models.invoice import InvoiceStatus
from bizledger.models.quotation import QuotationStatus


# ============================================================================
# Quotations
# ============================================================================

# Directed and acyclic. EXPIRED is only entered through the expiry sweep.
QUOTATION_TRANSITIONS: Dict[QuotationStatus, FrozenSet[QuotationStatus]] = {
    QuotationStatus.DRAFT: frozenset({QuotationStatus.SENT, QuotationStatus.EXPIRED}),
    QuotationStatus.SENT: frozenset(
        {QuotationStatus.ACCEPTED, QuotationStatus.REJECTED, QuotationStatus.EXPIRED}
    ),
    QuotationStatus.ACCEPTED: frozenset({QuotationStatus.CONVERTED, QuotationStatus.EXPIRED}),
    QuotationStatus.REJECTED: frozenset(),
    QuotationStatus.CONVERTED: frozenset(),
    QuotationStatus.EXPIRED: frozenset(),
}

TERMINAL_QUOTATION_STATUSES = frozenset(
    status for status, targets in QUOTATION_TRANSITIONS.items() if not targets
)

EXPIRABLE_QUOTATION_STATUSES = frozenset(
    status
    for status, targets in QUOTATION_TRANSITIONS.items()
    if QuotationStatus.EXPIRED in targets
)


def can_transition(current: QuotationStatus, target: QuotationStatus) -> bool:
    """Return True if ``current -> target`` is an edge of the graph."""
    return target in QUOTATION_TRANSITIONS.get(QuotationStatus(current), frozenset())


def ensure_transition(current: QuotationStatus, target: QuotationStatus) -> None:
    """
    Reject an out-of-graph status change.

    Raises:
        InvalidStateTransitionError: carrying current_state and requested_state
    """
    current = QuotationStatus(current)
    target = QuotationStatus(target)
    if can_transition(current, target):
        return

    if current in TERMINAL_QUOTATION_STATUSES:
        message = f"Quotation is {current.value} and can no longer change status"
    elif target == QuotationStatus.DRAFT:
        message = "A quotation cannot be moved back to draft"
    else:
        allowed = sorted(s.value for s in QUOTATION_TRANSITIONS[current])
        message = (
            f"Cannot change quotation status from {current.value} to {target.value}; "
            f"allowed: {', '.join(allowed)}"
        )
    raise InvalidStateTransitionError(
        message=message,
        current_state=current.value,
        requested_state=target.value,
    )


def is_editable(status: QuotationStatus) -> bool:
    """Only drafts may have their header or line items changed."""
    return QuotationStatus(status) == QuotationStatus.DRAFT


def can_delete(status: QuotationStatus) -> bool:
    return QuotationStatus(status) == QuotationStatus.DRAFT


def ensure_editable(status: QuotationStatus) -> None:
    if not is_editable(status):
        raise InvalidStateTransitionError(
            message=f"Only draft quotations can be edited (quotation is {QuotationStatus(status).value})",
            current_state=QuotationStatus(status).value,
            requested_state="edit",
        )


def ensure_deletable(status: QuotationStatus) -> None:
    if not can_delete(status):
        raise InvalidStateTransitionError(
            message=f"Only draft quotations can be deleted (quotation is {QuotationStatus(status).value})",
            current_state=QuotationStatus(status).value,
            requested_state="delete",
        )


def is_past_validity(valid_until: Optional[date], today: date) -> bool:
    """True when the quotation's validity ended before ``today``."""
    return valid_until is not None and valid_until < today


def should_expire(status: QuotationStatus, valid_until: Optional[date], today: date) -> bool:
    """True when the expiry sweep must move this quotation to EXPIRED."""
    return (
        QuotationStatus(status) in EXPIRABLE_QUOTATION_STATUSES
        and is_past_validity(valid_until, today)
    )


# ============================================================================
# Invoices
# ============================================================================


class DisplayStatus(str, Enum):
    """Status shown for an invoice; derived at read time, never stored."""

    PAID = "paid"
    OVERDUE = "overdue"
    PARTIAL = "partial"
    DUE = "due"


def due_amount(total: Decimal, paid_amount: Decimal) -> Decimal:
    """Amount still owed on an invoice, never negative."""
    due = Decimal(total) - Decimal(paid_amount or 0)
    return due if due > 0 else Decimal("0.00")


def derive_display_status(
    total: Decimal,
    paid_amount: Decimal,
    due_date: Optional[date],
    today: date,
) -> DisplayStatus:
    """
    Derive the invoice status shown to users.

    Evaluated in this order:
        1. nothing left to pay          -> PAID (even if the due date passed)
        2. due date strictly before today -> OVERDUE
        3. something paid               -> PARTIAL
        4. otherwise                    -> DUE

    Args:
        total: Invoice total
        paid_amount: Sum of applied payments
        due_date: Optional payment due date
        today: Current date (injected)

    Returns:
        DisplayStatus
    """
    paid = Decimal(paid_amount or 0)
    due = Decimal(total) - paid
    if due <= 0:
        return DisplayStatus.PAID
    if due_date is not None and due_date < today:
        return DisplayStatus.OVERDUE
    if paid > 0:
        return DisplayStatus.PARTIAL
    return DisplayStatus.DUE


def derive_invoice_status(total: Decimal, paid_amount: Decimal) -> InvoiceStatus:
    """Stored invoice status after a payment: paid, partial or unpaid."""
    paid = Decimal(paid_amount or 0)
    if paid >= Decimal(total):
        return InvoiceStatus.PAID
    if paid > 0:
        return InvoiceStatus.PARTIAL
    return InvoiceStatus.UNPAID
