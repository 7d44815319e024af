"""
Customer model.

WHY: Quotations and invoices reference the customer they are addressed to.
"""

from sqlalchemy import Column, String, Text

from bizledger.models.base import Base, TimestampMixin, PrimaryKeyMixin, TenantMixin


class Customer(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """Customer of an organization."""

    __tablename__ = "customers"

    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return f"<Customer(id={self.id}, name={self.name})>"
