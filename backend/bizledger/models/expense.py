"""
Expense and expense category models.

WHY: Categories group expenses for reporting. A category that still has
expenses cannot be deleted; the check happens in ExpenseService before the
delete is issued, and the RESTRICT foreign key backs it up in storage.
"""

from datetime import date
from sqlalchemy import Column, Integer, String, Text, Date, ForeignKey, UniqueConstraint

from bizledger.models.base import (
    Base,
    MONEY,
    PrimaryKeyMixin,
    TenantMixin,
    TimestampMixin,
)


class ExpenseCategory(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """Named group of expenses."""

    __tablename__ = "expense_categories"
    __table_args__ = (
        UniqueConstraint("org_id", "name", name="uq_expense_categories_org_name"),
    )

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<ExpenseCategory(id={self.id}, name={self.name})>"


class Expense(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """A single business expense."""

    __tablename__ = "expenses"

    category_id = Column(
        Integer,
        ForeignKey("expense_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    vendor_id = Column(
        Integer,
        ForeignKey("vendors.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    amount = Column(MONEY, nullable=False)
    expense_date = Column(Date, nullable=False, default=date.today, index=True)
    description = Column(Text, nullable=True)
    payment_method = Column(String(50), nullable=True)
    reference = Column(String(255), nullable=True)
    created_by = Column(Integer, ForeignKey("members.id", ondelete="SET NULL"), nullable=True)

    def __repr__(self) -> str:
        return f"<Expense(id={self.id}, category_id={self.category_id}, amount={self.amount})>"
