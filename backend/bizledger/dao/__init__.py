"""
Data Access Object (DAO) package.

WHY: DAOs provide a clean separation between database operations and business logic,
making the codebase more testable and maintainable.
"""

from bizledger.dao.base import BaseDAO
from bizledger.dao.audit_log import AuditLogDAO
from bizledger.dao.member import MemberDAO, OrganizationDAO
from bizledger.dao.customer import CustomerDAO
from bizledger.dao.sequence import DocumentSequenceDAO
from bizledger.dao.quotation import QuotationDAO
from bizledger.dao.invoice import InvoiceDAO, InvoicePaymentDAO
from bizledger.dao.vendor import VendorDAO, VendorBillDAO, VendorPaymentDAO
from bizledger.dao.expense import ExpenseDAO, ExpenseCategoryDAO

__all__ = [
    "BaseDAO",
    "AuditLogDAO",
    "MemberDAO",
    "OrganizationDAO",
    "CustomerDAO",
    "DocumentSequenceDAO",
    "QuotationDAO",
    "InvoiceDAO",
    "InvoicePaymentDAO",
    "VendorDAO",
    "VendorBillDAO",
    "VendorPaymentDAO",
    "ExpenseDAO",
    "ExpenseCategoryDAO",
]
