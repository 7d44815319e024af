"""
Member model.

WHAT: A person who belongs to one organization with one role.

WHY: The role decides which (resource, action) pairs the member may perform
(see services/permissions.py). Members are provisioned by the identity
provider; this service stores only what authorization needs.
"""

from enum import Enum
from sqlalchemy import Column, String, Boolean, Enum as SQLEnum
from sqlalchemy.orm import relationship

from bizledger.models.base import Base, TimestampMixin, PrimaryKeyMixin, TenantMixin


class OrgRole(str, Enum):
    """Roles a member can hold inside an organization."""

    OWNER = "owner"
    MANAGER = "manager"
    ACCOUNTS = "accounts"
    SALES_STAFF = "sales_staff"
    DESIGNER = "designer"
    EMPLOYEE = "employee"


class Member(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """Organization member."""

    __tablename__ = "members"

    name = Column(String(255), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    role = Column(
        SQLEnum(OrgRole, name="orgrole", values_callable=lambda enum: [e.value for e in enum]),
        nullable=False,
        default=OrgRole.EMPLOYEE,
    )
    is_active = Column(Boolean, nullable=False, default=True)

    organization = relationship("Organization", back_populates="members")

    @property
    def is_owner(self) -> bool:
        return self.role == OrgRole.OWNER

    def __repr__(self) -> str:
        return f"<Member(id={self.id}, email={self.email}, role={self.role})>"
