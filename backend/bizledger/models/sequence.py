"""
Document number sequence model.

WHAT: One counter row per (organization, document type).

WHY: Invoice and quotation numbers are human-readable, sequential and
independent per organization. Keeping the counter in its own row lets the
allocation lock exactly one row for the duration of the caller's
transaction, so two concurrent creates never receive the same number.
"""

from enum import Enum
from sqlalchemy import Column, Integer, String, UniqueConstraint, Enum as SQLEnum

from bizledger.models.base import Base, TimestampMixin, PrimaryKeyMixin, TenantMixin


class DocumentType(str, Enum):
    """Kinds of numbered documents."""

    INVOICE = "invoice"
    QUOTATION = "quotation"


class DocumentSequence(Base, PrimaryKeyMixin, TimestampMixin, TenantMixin):
    """Per-organization number counter for one document type."""

    __tablename__ = "document_sequences"
    __table_args__ = (
        UniqueConstraint("org_id", "doc_type", name="uq_document_sequences_org_type"),
    )

    doc_type = Column(
        SQLEnum(DocumentType, name="documenttype", values_callable=lambda enum: [e.value for e in enum]),
        nullable=False,
    )
    prefix = Column(String(20), nullable=False, comment="Prepended to the padded number (e.g., INV-)")
    current_value = Column(
        Integer,
        nullable=False,
        default=0,
        comment="Last number handed out (0 = none yet)",
    )
    starting_number = Column(Integer, nullable=False, default=1, comment="First number handed out")

    def __repr__(self) -> str:
        return (
            f"<DocumentSequence(org_id={self.org_id}, doc_type={self.doc_type}, "
            f"current_value={self.current_value})>"
        )
