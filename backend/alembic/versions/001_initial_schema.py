"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19

WHAT: Creates every table: organizations, members, customers,
document_sequences, quotations (+ items), invoices (+ items, payments),
vendors, vendor_bills, vendor_payments, expense_categories, expenses and
audit_logs.

HOW: Money columns are NUMERIC(12, 2). Every business table carries org_id
with ON DELETE CASCADE to organizations. quotations.converted_invoice_id is
deliberately not a foreign key: the link is kept even if the invoice is
later deleted.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


ORG_ROLES = ('owner', 'manager', 'accounts', 'sales_staff', 'designer', 'employee')
QUOTATION_STATUSES = ('draft', 'sent', 'accepted', 'rejected', 'converted', 'expired')
PAYMENT_STATUSES = ('unpaid', 'partial', 'paid')
DOCUMENT_TYPES = ('invoice', 'quotation')
AUDIT_ACTIONS = (
    'CREATE', 'UPDATE', 'DELETE', 'STATUS_CHANGE', 'CONVERT', 'PAYMENT',
    'ROLE_CHANGE', 'ACCOUNT_DEACTIVATED', 'BULK_OPERATION',
)

ENUM_NAMES = ('orgrole', 'documenttype', 'quotationstatus', 'invoicestatus', 'billstatus', 'auditaction')


def _id() -> sa.Column:
    return sa.Column('id', sa.Integer(), primary_key=True)


def _org_id(nullable: bool = False, ondelete: str = 'CASCADE') -> sa.Column:
    return sa.Column(
        'org_id', sa.Integer(), sa.ForeignKey('organizations.id', ondelete=ondelete), nullable=nullable
    )


def _member_ref(name: str) -> sa.Column:
    return sa.Column(name, sa.Integer(), sa.ForeignKey('members.id', ondelete='SET NULL'), nullable=True)


def _money(name: str, nullable: bool = False, default: bool = True) -> sa.Column:
    return sa.Column(
        name,
        sa.Numeric(12, 2),
        nullable=nullable,
        server_default=sa.text('0') if default else None,
    )


def _timestamps() -> list:
    return [
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=sa.func.now()),
    ]


def _line_item_columns() -> list:
    return [
        sa.Column('position', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('description', sa.String(500), nullable=False),
        _money('quantity'),
        _money('unit_price'),
        _money('discount'),
        _money('total'),
    ]


def _index(table: str, *columns: str) -> None:
    op.create_index(f"ix_{table}_{'_'.join(columns)}", table, list(columns))


def upgrade() -> None:
    """Create all tables."""
    op.create_table(
        'organizations',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    _index('organizations', 'name')

    op.create_table(
        'members',
        _id(),
        _org_id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', sa.Enum(*ORG_ROLES, name='orgrole'), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    _index('members', 'org_id')
    _index('members', 'email')

    op.create_table(
        'customers',
        _id(),
        _org_id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    _index('customers', 'org_id')
    _index('customers', 'name')

    op.create_table(
        'document_sequences',
        _id(),
        _org_id(),
        sa.Column('doc_type', sa.Enum(*DOCUMENT_TYPES, name='documenttype'), nullable=False),
        sa.Column('prefix', sa.String(20), nullable=False),
        sa.Column('current_value', sa.Integer(), nullable=False, server_default=sa.text('0')),
        sa.Column('starting_number', sa.Integer(), nullable=False, server_default=sa.text('1')),
        *_timestamps(),
        sa.UniqueConstraint('org_id', 'doc_type', name='uq_document_sequences_org_type'),
    )
    _index('document_sequences', 'org_id')

    op.create_table(
        'quotations',
        _id(),
        _org_id(),
        sa.Column('quotation_number', sa.String(50), nullable=False),
        sa.Column(
            'customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('valid_until', sa.Date(), nullable=True),
        _money('subtotal'),
        _money('discount_amount'),
        _money('tax_amount'),
        _money('total'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('status', sa.Enum(*QUOTATION_STATUSES, name='quotationstatus'), nullable=False),
        sa.Column('converted_invoice_id', sa.Integer(), nullable=True),
        _member_ref('created_by'),
        sa.Column('status_changed_at', sa.DateTime(), nullable=True),
        _member_ref('status_changed_by'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('rejected_at', sa.DateTime(), nullable=True),
        _member_ref('rejected_by'),
        sa.Column('converted_at', sa.DateTime(), nullable=True),
        _member_ref('converted_by'),
        *_timestamps(),
        sa.UniqueConstraint('org_id', 'quotation_number', name='uq_quotations_org_number'),
    )
    for column in ('org_id', 'quotation_number', 'customer_id', 'status', 'converted_invoice_id'):
        _index('quotations', column)

    op.create_table(
        'quotation_items',
        _id(),
        sa.Column(
            'quotation_id', sa.Integer(), sa.ForeignKey('quotations.id', ondelete='CASCADE'), nullable=False
        ),
        *_line_item_columns(),
    )
    _index('quotation_items', 'quotation_id')

    op.create_table(
        'invoices',
        _id(),
        _org_id(),
        sa.Column('invoice_number', sa.String(50), nullable=False),
        sa.Column(
            'customer_id', sa.Integer(), sa.ForeignKey('customers.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column(
            'quotation_id', sa.Integer(), sa.ForeignKey('quotations.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('issue_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        _money('subtotal'),
        _money('discount_amount'),
        _money('tax_amount'),
        _money('total'),
        _money('paid_amount'),
        sa.Column('status', sa.Enum(*PAYMENT_STATUSES, name='invoicestatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        _member_ref('created_by'),
        *_timestamps(),
        sa.UniqueConstraint('org_id', 'invoice_number', name='uq_invoices_org_number'),
    )
    for column in ('org_id', 'invoice_number', 'customer_id', 'quotation_id', 'status'):
        _index('invoices', column)

    op.create_table(
        'invoice_items',
        _id(),
        sa.Column(
            'invoice_id', sa.Integer(), sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False
        ),
        *_line_item_columns(),
    )
    _index('invoice_items', 'invoice_id')

    op.create_table(
        'invoice_payments',
        _id(),
        _org_id(),
        sa.Column(
            'invoice_id', sa.Integer(), sa.ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False
        ),
        _money('amount', default=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=False, server_default='cash'),
        sa.Column('reference', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        _member_ref('recorded_by'),
        *_timestamps(),
    )
    _index('invoice_payments', 'org_id')
    _index('invoice_payments', 'invoice_id')

    op.create_table(
        'vendors',
        _id(),
        _org_id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('contact_person', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('address', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    _index('vendors', 'org_id')
    _index('vendors', 'name')

    op.create_table(
        'vendor_bills',
        _id(),
        _org_id(),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False),
        sa.Column('bill_number', sa.String(100), nullable=True),
        sa.Column('bill_date', sa.Date(), nullable=False),
        sa.Column('due_date', sa.Date(), nullable=True),
        _money('amount', default=False),
        sa.Column('status', sa.Enum(*PAYMENT_STATUSES, name='billstatus'), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    for column in ('org_id', 'vendor_id', 'bill_date', 'status'):
        _index('vendor_bills', column)

    op.create_table(
        'vendor_payments',
        _id(),
        _org_id(),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('vendors.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'bill_id', sa.Integer(), sa.ForeignKey('vendor_bills.id', ondelete='SET NULL'), nullable=True
        ),
        _money('amount', default=False),
        sa.Column('payment_date', sa.Date(), nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=False, server_default='cash'),
        sa.Column('reference', sa.String(255), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        *_timestamps(),
    )
    for column in ('org_id', 'vendor_id', 'bill_id', 'payment_date'):
        _index('vendor_payments', column)

    op.create_table(
        'expense_categories',
        _id(),
        _org_id(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint('org_id', 'name', name='uq_expense_categories_org_name'),
    )
    _index('expense_categories', 'org_id')

    op.create_table(
        'expenses',
        _id(),
        _org_id(),
        sa.Column(
            'category_id',
            sa.Integer(),
            sa.ForeignKey('expense_categories.id', ondelete='RESTRICT'),
            nullable=False,
        ),
        sa.Column('vendor_id', sa.Integer(), sa.ForeignKey('vendors.id', ondelete='SET NULL'), nullable=True),
        _money('amount', default=False),
        sa.Column('expense_date', sa.Date(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('payment_method', sa.String(50), nullable=True),
        sa.Column('reference', sa.String(255), nullable=True),
        _member_ref('created_by'),
        *_timestamps(),
    )
    for column in ('org_id', 'category_id', 'vendor_id', 'expense_date'):
        _index('expenses', column)

    op.create_table(
        'audit_logs',
        _id(),
        _member_ref('actor_member_id'),
        sa.Column('action', sa.Enum(*AUDIT_ACTIONS, name='auditaction'), nullable=False),
        sa.Column('resource_type', sa.String(100), nullable=False),
        sa.Column('resource_id', sa.Integer(), nullable=True),
        _org_id(nullable=True, ondelete='SET NULL'),
        sa.Column('changes', sa.JSON(), nullable=True),
        sa.Column('extra_data', sa.JSON(), nullable=True),
        sa.Column('request_id', sa.String(64), nullable=True),
        sa.Column('ip_address', sa.String(45), nullable=True),
        sa.Column('user_agent', sa.Text(), nullable=True),
        *_timestamps(),
    )
    for column in ('actor_member_id', 'action', 'resource_type', 'resource_id', 'org_id', 'request_id'):
        _index('audit_logs', column)


def downgrade() -> None:
    """Drop all tables and enum types."""
    for table in (
        'audit_logs',
        'expenses',
        'expense_categories',
        'vendor_payments',
        'vendor_bills',
        'vendors',
        'invoice_payments',
        'invoice_items',
        'invoices',
        'quotation_items',
        'quotations',
        'document_sequences',
        'customers',
        'members',
        'organizations',
    ):
        op.drop_table(table)

    bind = op.get_bind()
    for name in ENUM_NAMES:
        sa.Enum(name=name).drop(bind, checkfirst=True)
