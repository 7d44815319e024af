"""
Base model class and shared column helpers for all SQLAlchemy models.

WHY: Every table has an integer id and created/updated timestamps, and
every monetary amount has the same precision. Declaring these once keeps
the schema consistent across quotations, invoices, bills and expenses.
"""

from datetime import datetime
from decimal import Decimal
from sqlalchemy import Column, Integer, DateTime, ForeignKey, Numeric
from sqlalchemy.orm import DeclarativeBase, declared_attr

# Two decimal places, up to 9,999,999,999.99
MONEY = Numeric(12, 2)
ZERO = Decimal("0.00")


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class TimestampMixin:
    """
    Mixin to add created_at and updated_at timestamps to models.
    """

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class PrimaryKeyMixin:
    """Mixin to add an auto-incrementing integer primary key."""

    id = Column(Integer, primary_key=True, index=True)


class TenantMixin:
    """
    Mixin for rows owned by exactly one organization.

    WHY: org_id is the tenant boundary. Every API lookup goes through
    BaseDAO.get_by_id_and_org, which needs this column on the model.
    """

    @declared_attr
    def org_id(cls):
        return Column(
            Integer,
            ForeignKey("organizations.id", ondelete="CASCADE"),
            nullable=False,
            index=True,
            comment="Owning organization",
        )


def money_column(comment: str, nullable: bool = False) -> Column:
    """Build a Numeric(12, 2) column defaulting to zero."""
    return Column(MONEY, nullable=nullable, default=ZERO, comment=comment)
