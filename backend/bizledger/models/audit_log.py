"""
Audit Log Model.

WHAT: Append-only record of who changed what.

WHY: Financial records (quotations, invoices, payments, bills) must be
traceable: every create, status change, payment and delete is written here
together with the acting member and the request it came from.

HOW: JSON columns hold before/after values and extra context
(JSON on both PostgreSQL and SQLite).
"""

import enum
from sqlalchemy import Column, Integer, String, Enum, ForeignKey, Text, JSON

from bizledger.models.base import Base, TimestampMixin, PrimaryKeyMixin


class AuditAction(str, enum.Enum):
    """Auditable actions."""

    # Data mutation events
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    # Document lifecycle events
    STATUS_CHANGE = "STATUS_CHANGE"
    CONVERT = "CONVERT"
    PAYMENT = "PAYMENT"

    # Team events
    ROLE_CHANGE = "ROLE_CHANGE"
    ACCOUNT_DEACTIVATED = "ACCOUNT_DEACTIVATED"

    BULK_OPERATION = "BULK_OPERATION"


class AuditLog(Base, PrimaryKeyMixin, TimestampMixin):
    """
    Immutable audit log entry.

    Fields:
    - actor_member_id: Who performed the action (null for background jobs)
    - action: What happened (AuditAction)
    - resource_type / resource_id: What it happened to
    - org_id: Tenant
    - changes: Before/after values
    - extra_data: Additional context
    - request_id / ip_address / user_agent: Request context
    """

    __tablename__ = "audit_logs"

    actor_member_id = Column(
        Integer,
        ForeignKey("members.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    action = Column(
        Enum(AuditAction, name="auditaction", values_callable=lambda e: [a.value for a in e]),
        nullable=False,
        index=True,
    )
    resource_type = Column(String(100), nullable=False, index=True)
    resource_id = Column(Integer, nullable=True, index=True)
    org_id = Column(
        Integer,
        ForeignKey("organizations.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    # Example: {"status": {"before": "sent", "after": "accepted"}}
    changes = Column(JSON, nullable=True)
    # NOTE: 'metadata' is reserved by SQLAlchemy
    extra_data = Column(JSON, nullable=True)

    request_id = Column(String(64), nullable=True, index=True)
    ip_address = Column(String(45), nullable=True)
    user_agent = Column(Text, nullable=True)

    def __repr__(self) -> str:
        return (
            f"<AuditLog(id={self.id}, action={self.action.value}, "
            f"actor_member_id={self.actor_member_id}, resource_type={self.resource_type})>"
        )
