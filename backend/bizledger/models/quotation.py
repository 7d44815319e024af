"""
Quotation model.

WHAT: A priced proposal sent to a customer before any invoice exists.

WHY: Quotations have their own lifecycle (draft → sent → accepted/rejected,
accepted → converted, non-terminal → expired). Conversion creates an invoice
and records the link here, so ``status == CONVERTED`` exactly when
``converted_invoice_id`` is set.

HOW: Header amounts are denormalized from the line items on every write
(see services/lifecycle.py for the transition rules and
services/ledger.py for the arithmetic).
"""

from datetime import datetime, date
from decimal import Decimal
from enum import Enum
from typing import List, Optional
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    DateTime,
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


class QuotationStatus(str, Enum):
    """
    Quotation lifecycle status.

    - DRAFT: editable, deletable
    - SENT: delivered to the customer; line items locked
    - ACCEPTED: customer agreed; may be converted once
    - REJECTED: customer declined (terminal)
    - CONVERTED: an invoice was created from it (terminal)
    - EXPIRED: valid_until passed before a decision (terminal)
    """

    DRAFT = "draft"
    SENT = "sent"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    CONVERTED = "converted"
    EXPIRED = "expired"


class Quotation(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """Quotation header."""

    __tablename__ = "quotations"
    __table_args__ = (
        UniqueConstraint("org_id", "quotation_number", name="uq_quotations_org_number"),
    )

    quotation_number: Mapped[str] = Column(
        String(50),
        nullable=False,
        index=True,
        comment="Sequential per-organization number (e.g., QT-0001)",
    )
    customer_id: Mapped[Optional[int]] = Column(
        Integer,
        ForeignKey("customers.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    issue_date: Mapped[date] = Column(Date, nullable=False, default=date.today)
    valid_until: Mapped[Optional[date]] = Column(
        Date,
        nullable=True,
        comment="Expiry date; the sweep expires open quotations after this day",
    )

    subtotal: Mapped[Decimal] = money_column("Sum of line totals")
    discount_amount: Mapped[Decimal] = money_column("Document-level discount")
    tax_amount: Mapped[Decimal] = money_column("Document-level tax")
    total: Mapped[Decimal] = money_column("subtotal - discount_amount + tax_amount")

    notes: Mapped[Optional[str]] = Column(Text, nullable=True)

    status: Mapped[QuotationStatus] = Column(
        SQLEnum(
            QuotationStatus,
            name="quotationstatus",
            values_callable=lambda enum: [e.value for e in enum],
        ),
        nullable=False,
        default=QuotationStatus.DRAFT,
        index=True,
    )

    # Plain reference, no FK: the link survives deletion of the invoice so a
    # converted quotation always keeps its conversion record.
    converted_invoice_id: Mapped[Optional[int]] = Column(
        Integer,
        nullable=True,
        index=True,
        comment="Invoice created by conversion",
    )

    # Audit fields
    created_by: Mapped[Optional[int]] = Column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )
    status_changed_at: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    status_changed_by: Mapped[Optional[int]] = Column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )
    rejection_reason: Mapped[Optional[str]] = Column(Text, nullable=True)
    rejected_at: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    rejected_by: Mapped[Optional[int]] = Column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )
    converted_at: Mapped[Optional[datetime]] = Column(DateTime, nullable=True)
    converted_by: Mapped[Optional[int]] = Column(
        Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True
    )

    items: Mapped[List["QuotationItem"]] = relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.position",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        return (
            f"<Quotation(id={self.id}, number={self.quotation_number}, status={self.status})>"
        )


class QuotationItem(Base, PrimaryKeyMixin):
    """Quotation line item. total = quantity * unit_price - discount."""

    __tablename__ = "quotation_items"

    quotation_id: Mapped[int] = Column(
        Integer,
        ForeignKey("quotations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = Column(Integer, nullable=False, default=0)
    description: Mapped[str] = Column(String(500), nullable=False)
    quantity: Mapped[Decimal] = Column(MONEY, nullable=False, default=Decimal("1"))
    unit_price: Mapped[Decimal] = Column(MONEY, nullable=False, default=ZERO)
    discount: Mapped[Decimal] = Column(MONEY, nullable=False, default=ZERO)
    total: Mapped[Decimal] = Column(MONEY, nullable=False, default=ZERO)

    quotation: Mapped["Quotation"] = relationship("Quotation", back_populates="items")
