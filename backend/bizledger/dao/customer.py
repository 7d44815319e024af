"""Customer DAO."""

from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.dao.base import BaseDAO
from bizledger.models.customer import Customer


class CustomerDAO(BaseDAO[Customer]):
    """Data Access Object for Customer model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Customer, session)

    async def search(
        self,
        org_id: int,
        query: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Customer]:
        """List customers, optionally filtered by a case-insensitive name match."""
        stmt = select(Customer).where(Customer.org_id == org_id)
        if query:
            stmt = stmt.where(Customer.name.ilike(f"%{query}%"))
        stmt = stmt.order_by(Customer.name, Customer.id).offset(skip).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
