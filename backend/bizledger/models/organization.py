"""
Organization model.

WHY: Organizations are the tenants of the system. Every business row
(customers, quotations, invoices, vendors, expenses) carries an org_id and
is only ever read or written on behalf of a member of that organization.
"""

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship

from bizledger.models.base import Base, TimestampMixin, PrimaryKeyMixin


class Organization(Base, PrimaryKeyMixin, TimestampMixin):
    """Organization model representing a tenant."""

    __tablename__ = "organizations"

    name = Column(String(255), nullable=False, index=True)

    # WHY: soft-deactivation keeps historical invoices and the audit trail
    is_active = Column(Boolean, nullable=False, default=True)

    members = relationship("Member", back_populates="organization", lazy="selectin")

    def __repr__(self) -> str:
        return f"<Organization(id={self.id}, name={self.name})>"
