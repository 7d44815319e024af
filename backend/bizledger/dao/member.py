"""
Member and Organization DAOs.
"""

from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.dao.base import BaseDAO
from bizledger.models.member import Member, OrgRole
from bizledger.models.organization import Organization


class OrganizationDAO(BaseDAO[Organization]):
    """Data Access Object for Organization model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Organization, session)

    async def get_name(self, org_id: int) -> str:
        """Display name of an organization (empty string if it is gone)."""
        result = await self.session.execute(select(Organization.name).where(Organization.id == org_id))
        return result.scalar_one_or_none() or ""


class MemberDAO(BaseDAO[Member]):
    """Data Access Object for Member model."""

    def __init__(self, session: AsyncSession):
        super().__init__(Member, session)

    async def list_for_org(self, org_id: int, include_inactive: bool = True) -> List[Member]:
        """
        List an organization's members, owners first, then by name.
        """
        query = select(Member).where(Member.org_id == org_id)
        if not include_inactive:
            query = query.where(Member.is_active.is_(True))
        result = await self.session.execute(query.order_by(Member.name, Member.id))
        members = list(result.scalars().all())
        return sorted(members, key=lambda m: 0 if m.role == OrgRole.OWNER else 1)
