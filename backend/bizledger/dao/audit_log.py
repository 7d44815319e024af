"""
Audit Log Data Access Object (DAO).

WHAT: Append and query operations for audit log entries.

HOW: Does not extend BaseDAO, so there is no update or delete path;
entries are append-only.
"""

from typing import Optional, List, Dict, Any
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.models.audit_log import AuditLog, AuditAction


class AuditLogDAO:
    """Data Access Object for audit log operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        action: AuditAction,
        resource_type: str,
        actor_member_id: Optional[int] = None,
        resource_id: Optional[int] = None,
        org_id: Optional[int] = None,
        changes: Optional[Dict[str, Any]] = None,
        extra_data: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLog:
        """
        Append an audit log entry.

        Args:
            action: Type of event
            resource_type: Category of affected resource ("quotation", "invoice", ...)
            actor_member_id: Member who performed the action (None for background jobs)
            resource_id: Specific resource ID
            org_id: Organization context
            changes: Before/after values
            extra_data: Additional context
            request_id: Correlation id of the originating request
            ip_address: Client IP address
            user_agent: Client user agent

        Returns:
            Created AuditLog entry
        """
        entry = AuditLog(
            action=action,
            resource_type=resource_type,
            actor_member_id=actor_member_id,
            resource_id=resource_id,
            org_id=org_id,
            changes=changes,
            extra_data=extra_data,
            request_id=request_id,
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(entry)
        await self.session.flush()
        return entry

    async def get_for_resource(
        self,
        org_id: int,
        resource_type: str,
        resource_id: int,
    ) -> List[AuditLog]:
        """History of one resource, oldest first."""
        result = await self.session.execute(
            select(AuditLog)
            .where(
                AuditLog.org_id == org_id,
                AuditLog.resource_type == resource_type,
                AuditLog.resource_id == resource_id,
            )
            .order_by(AuditLog.id)
        )
        return list(result.scalars().all())

    async def get_by_org(
        self,
        org_id: int,
        action: Optional[AuditAction] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[AuditLog]:
        query = select(AuditLog).where(AuditLog.org_id == org_id)
        if action is not None:
            query = query.where(AuditLog.action == action)
        result = await self.session.execute(
            query.order_by(AuditLog.id.desc()).offset(skip).limit(limit)
        )
        return list(result.scalars().all())
