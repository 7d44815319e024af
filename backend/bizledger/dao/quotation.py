"""
Quotation Data Access Object (DAO).

WHAT: Queries and writes for quotations and their line items.

WHY: Status rules live in services/lifecycle.py; this module only reads and
writes rows, always scoped by org_id.
"""

from datetime import date, datetime
from typing import Dict, List, Optional
from sqlalchemy import select, func, update
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.dao.base import BaseDAO
from bizledger.models.quotation import Quotation, QuotationStatus
from bizledger.services.lifecycle import EXPIRABLE_QUOTATION_STATUSES


class QuotationDAO(BaseDAO[Quotation]):
    """Data Access Object for Quotation model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Quotation, session)

    async def list_for_org(
        self,
        org_id: int,
        status: Optional[QuotationStatus] = None,
        customer_id: Optional[int] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Quotation]:
        """
        List quotations, newest first.

        Args:
            org_id: Organization ID
            status: Optional status filter
            customer_id: Optional customer filter
            skip: Pagination offset
            limit: Pagination limit
        """
        query = select(Quotation).where(Quotation.org_id == org_id)
        if status is not None:
            query = query.where(Quotation.status == status)
        if customer_id is not None:
            query = query.where(Quotation.customer_id == customer_id)
        query = query.order_by(Quotation.issue_date.desc(), Quotation.id.desc())

        result = await self.session.execute(query.offset(skip).limit(limit))
        return list(result.scalars().all())

    async def count_by_status(self, org_id: int) -> Dict[str, int]:
        """
        Count quotations per status.

        Returns:
            Mapping of every status value to its count (zero included)
        """
        result = await self.session.execute(
            select(Quotation.status, func.count(Quotation.id))
            .where(Quotation.org_id == org_id)
            .group_by(Quotation.status)
        )
        counts = {status.value: 0 for status in QuotationStatus}
        for status, count in result.all():
            counts[QuotationStatus(status).value] = count
        return counts

    async def expire_past_validity(
        self,
        today: date,
        org_id: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> int:
        """
        Move open quotations whose valid_until is before ``today`` to EXPIRED.

        Args:
            today: Current date
            org_id: Restrict to one organization (None = all)
            now: Timestamp recorded as status_changed_at

        Returns:
            Number of quotations expired
        """
        stmt = (
            update(Quotation)
            .where(
                Quotation.status.in_(list(EXPIRABLE_QUOTATION_STATUSES)),
                Quotation.valid_until.is_not(None),
                Quotation.valid_until < today,
            )
            .values(
                status=QuotationStatus.EXPIRED,
                status_changed_at=now or datetime.utcnow(),
                status_changed_by=None,
            )
            .execution_options(synchronize_session="fetch")
        )
        if org_id is not None:
            stmt = stmt.where(Quotation.org_id == org_id)

        result = await self.session.execute(stmt)
        return result.rowcount or 0

    async def get_for_update(self, quotation_id: int, org_id: int) -> Optional[Quotation]:
        """
        Load a quotation with a row lock held until the transaction ends.

        WHY: Serializes concurrent transitions of the same quotation, so a
        quotation is converted at most once. SQLite ignores FOR UPDATE.
        """
        result = await self.session.execute(
            select(Quotation)
            .where(Quotation.id == quotation_id, Quotation.org_id == org_id)
            .with_for_update()
        )
        return result.scalar_one_or_none()
