"""
Database models package.

WHY: Importing every model here lets Alembic and Base.metadata.create_all
discover all tables from a single import.
"""

from bizledger.models.base import Base, TimestampMixin, PrimaryKeyMixin, TenantMixin
from bizledger.models.organization import Organization
from bizledger.models.member import Member, OrgRole
from bizledger.models.customer import Customer
from bizledger.models.sequence import DocumentSequence, DocumentType
from bizledger.models.quotation import Quotation, QuotationItem, QuotationStatus
from bizledger.models.invoice import Invoice, InvoiceItem, InvoicePayment, InvoiceStatus
from bizledger.models.vendor import Vendor, VendorBill, VendorPayment, BillStatus
from bizledger.models.expense import Expense, ExpenseCategory
from bizledger.models.audit_log import AuditLog, AuditAction

__all__ = [
    "Base",
    "TimestampMixin",
    "PrimaryKeyMixin",
    "TenantMixin",
    "Organization",
    "Member",
    "OrgRole",
    "Customer",
    "DocumentSequence",
    "DocumentType",
    "Quotation",
    "QuotationItem",
    "QuotationStatus",
    "Invoice",
    "InvoiceItem",
    "InvoicePayment",
    "InvoiceStatus",
    "Vendor",
    "VendorBill",
    "VendorPayment",
    "BillStatus",
    "Expense",
    "ExpenseCategory",
    "AuditLog",
    "AuditAction",
]
