"""
Invoice Data Access Object (DAO).

WHAT: Queries and writes for invoices, invoice items and invoice payments.

WHY: Payment and status rules live in services/invoice_service.py; this
module reads and writes rows, always scoped by org_id.
"""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.dao.base import BaseDAO
from bizledger.models.invoice import Invoice, InvoicePayment, InvoiceStatus


class InvoiceDAO(BaseDAO[Invoice]):
    """Data Access Object for Invoice model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Invoice, session)

    async def list_for_org(
        self,
        org_id: int,
        status: Optional[InvoiceStatus] = None,
        customer_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Invoice]:
        """
        List invoices, newest first.

        Args:
            org_id: Organization ID
            status: Optional stored-status filter
            customer_id: Optional customer filter
            skip: Pagination offset
            limit: Pagination limit
        """
        query = select(Invoice).where(Invoice.org_id == org_id)
        if status is not None:
            query = query.where(Invoice.status == status)
        if customer_id is not None:
            query = query.where(Invoice.customer_id == customer_id)
        query = query.order_by(Invoice.issue_date.desc(), Invoice.id.desc())

        result = await self.session.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())

    async def get_for_update(self, invoice_id: int, org_id: int) -> Optional[Invoice]:
        """Load an invoice with a row lock so concurrent payments apply one at a time."""
        result = await self.session.execute(
            select(Invoice)
            .where(Invoice.id == invoice_id, Invoice.org_id == org_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()


class InvoicePaymentDAO(BaseDAO[InvoicePayment]):
    """Data Access Object for InvoicePayment model."""

    def __init__(self, session: AsyncSession):
        super().__init__(InvoicePayment, session)
