"""
Invoice model for billing and payment tracking.

WHAT: Invoices, their line items and the payments applied to them.

WHY: An invoice records what a customer owes. It is created directly or by
converting an accepted quotation, and it changes afterwards only by
recording payments:
- paid_amount only ever grows and never exceeds total
- the stored status (unpaid/partial/paid) is recomputed from the amounts on
  every payment
- the status shown to users adds OVERDUE, derived at read time from
  due_date (services/lifecycle.py::derive_display_status)

HOW: Amounts are Numeric(12, 2) and handled as Decimal. Deleting an invoice
cascades to its items and payments.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Date,
    ForeignKey,
    UniqueConstraint,
    Enum as SQLEnum,
)
from sqlalchemy.orm import relationship, Mapped

from bizledger.models.base import (
    Base,
    MONEY,
    ZERO,
    PrimaryKeyMixin,
    TenantMixin,
    TimestampMixin,
    money_column,
)


class InvoiceStatus(str, Enum):
    """
    Stored invoice payment status.

    - UNPAID: nothing paid yet
    - PARTIAL: some payment received, balance remains
    - PAID: paid_amount reached total
    """

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class Invoice(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """
    Invoice header.

    Attributes:
        invoice_number: Sequential per-organization number (e.g., INV-0001)
        customer_id: Billed customer
        quotation_id: Source quotation when created by conversion
        subtotal/discount_amount/tax_amount/total: Document amounts
        paid_amount: Running total of applied payments
        status: Stored payment status
    """

    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("org_id", "invoice_number", name="uq_invoices_org_number"),
    )

    invoice_number: Mapped[str] = Column(
        String(50),
        nullable=False,
        index=True,
        comment="Sequential per-organization invoice number",
    )
    customer_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    quotation_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("quotations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
        comment="Source quotation (null for direct invoices)",
    )

    issue_date: Mapped[date] = Column(Date, nullable=False, default=date.today)
    due_date: Mapped[Optional[date]] = Column(Date, nullable=True, comment="Payment due date")

    subtotal: Mapped[Decimal] = money_column("Sum of line totals")
    discount_amount: Mapped[Decimal] = money_column("Document-level discount")
    tax_amount: Mapped[Decimal] = money_column("Document-level tax")
    total: Mapped[Decimal] = money_column("Final amount due")
    paid_amount: Mapped[Decimal] = money_column("Sum of applied payments")

    status: Mapped[InvoiceStatus] = Column(
        SQLEnum(
            InvoiceStatus,
            name="invoicestatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=InvoiceStatus.UNPAID,
        index=True,
    )

    notes: Mapped[Optional[str]] = Column(Text, nullable=True)
    created_by: Mapped[Optional[int]] = Column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )

    items: Mapped[List["InvoiceItem"]] = relationship(
        "InvoiceItem",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceItem.position",
        lazy="selectin",
    )
    payments: Mapped[List["InvoicePayment"]] = relationship(
        "InvoicePayment",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoicePayment.id",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number={self.invoice_number}, status={self.status})>"

    @property
    def balance_due(self) -> Decimal:
        """Remaining amount owed, floored at zero."""
        due = (self.total or ZERO) - (self.paid_amount or ZERO)
        return due if due > 0 else ZERO


class InvoiceItem(Base, PrimaryKeyMixin):
    """Invoice line item. total = quantity * unit_price - discount."""

    __tablename__ = "invoice_items"

    invoice_id: Mapped[int] = Column(
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = Column(Integer, nullable=False, default=0)
    description: Mapped[str] = Column(String(500), nullable=False)
    quantity: Mapped[Decimal] = Column(MONEY, nullable=False, default=Decimal("1"))
    unit_price: Mapped[Decimal] = Column(MONEY, nullable=False, default=ZERO)
    discount: Mapped[Decimal] = Column(MONEY, nullable=False, default=ZERO)
    total: Mapped[Decimal] = Column(MONEY, nullable=False, default=ZERO)

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="items")


class InvoicePayment(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """A payment applied to one invoice."""

    __tablename__ = "invoice_payments"

    invoice_id: Mapped[int] = Column(
        Integer,
        ForeignKey("invoices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = Column(MONEY, nullable=False)
    payment_date: Mapped[date] = Column(Date, nullable=False, default=date.today)
    payment_method: Mapped[str] = Column(String(50), nullable=False, default="cash")
    reference: Mapped[Optional[str]] = Column(String(255), nullable=True)
    notes: Mapped[Optional[str]] = Column(Text, nullable=True)
    recorded_by: Mapped[Optional[int]] = Column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )

    invoice: Mapped["Invoice"] = relationship("Invoice", back_populates="payments")
