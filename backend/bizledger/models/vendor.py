"""
Vendor, vendor bill and vendor payment models.

WHAT: Suppliers the organization owes money to, the bills they issue and
the payments made to them.

WHY: A vendor's outstanding due is sum(bills) - sum(payments). It is not
clamped at zero: overpayment (a credit with the vendor) is representable.
A payment may name the bill it settles; that bill's status is then
recomputed from everything applied to it so far.
"""

from enum import Enum
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    Boolean,
    Date,
    ForeignKey,
    Enum as SQLEnum,
)
from datetime import date

from bizledger.models.base import (
    Base,
    MONEY,
    PrimaryKeyMixin,
    TenantMixin,
    TimestampMixin,
)


class BillStatus(str, Enum):
    """Vendor bill payment status."""

    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class Vendor(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """Supplier of an organization."""

    __tablename__ = "vendors"

    name = Column(String(255), nullable=False, index=True)
    contact_person = Column(String(255), nullable=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def __repr__(self) -> str:
        return f"<Vendor(id={self.id}, name={self.name})>"


class VendorBill(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """Amount owed to a vendor."""

    __tablename__ = "vendor_bills"

    vendor_id = Column(
        Integer,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bill_number = Column(String(100), nullable=True, comment="Vendor's own reference")
    bill_date = Column(Date, nullable=False, default=date.today, index=True)
    due_date = Column(Date, nullable=True)
    amount = Column(MONEY, nullable=False)
    status = Column(
        SQLEnum(BillStatus, name="billstatus", values_callable=lambda enum: [e.value for e in enum]),
        nullable=False,
        default=BillStatus.UNPAID,
        index=True,
    )
    notes = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<VendorBill(id={self.id}, vendor_id={self.vendor_id}, amount={self.amount})>"


class VendorPayment(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """Amount paid to a vendor, optionally applied to one bill."""

    __tablename__ = "vendor_payments"

    vendor_id = Column(
        Integer,
        ForeignKey("vendors.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    bill_id = Column(
        Integer,
        ForeignKey("vendor_bills.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    amount = Column(MONEY, nullable=False)
    payment_date = Column(Date, nullable=False, default=date.today, index=True)
    payment_method = Column(String(50), nullable=False, default="cash")
    reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<VendorPayment(id={self.id}, vendor_id={self.vendor_id}, amount={self.amount})>"
