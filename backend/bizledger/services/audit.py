"""
Audit logging service.

WHAT: Writes audit log entries enriched with the current request context.

WHY: Every change to a financial record is traceable to a member and a
request. Audit writes share the request's transaction, so a rolled-back
operation leaves no audit entry behind either.

HOW: Wraps AuditLogDAO. Context (request id, IP, user agent) comes from
RequestContextMiddleware via a ContextVar. A failing audit write is logged
and swallowed; it never fails the business operation.
"""

import logging
from typing import Optional, Dict, Any

from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.dao.audit_log import AuditLogDAO
from bizledger.models.audit_log import AuditLog, AuditAction
from bizledger.middleware.request_context import get_request_context


logger = logging.getLogger(__name__)


class AuditService:
    """
    Service for creating audit log entries.

    Example:
        audit = AuditService(db)
        await audit.log_status_change("quotation", q.id, member, "draft", "sent")
    """

    def __init__(self, session: AsyncSession):
        self.dao = AuditLogDAO(session)
        self._session = session

    async def log_event(
        self,
        action: AuditAction,
        resource_type: str,
        actor_member_id: Optional[int] = None,
        resource_id: Optional[int] = None,
        org_id: Optional[int] = None,
        changes: Optional[Dict[str, Any]] = None,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        """
        Log a generic audit event.

        Returns:
            Created AuditLog or None if logging failed

        Note:
            Never raises; failures go to the application log.
        """
        ctx = get_request_context()
        try:
            return await self.dao.create(
                action=action,
                resource_type=resource_type,
                actor_member_id=actor_member_id,
                resource_id=resource_id,
                org_id=org_id,
                changes=changes,
                extra_data=extra_data,
                request_id=ctx.request_id if ctx else None,
                ip_address=ctx.ip_address if ctx else None,
                user_agent=ctx.user_agent if ctx else None,
            )
        except Exception as e:
            logger.error(f"Failed to create audit log: {e}", exc_info=True)
            return None

    async def log_create(
        self,
        resource_type: str,
        resource_id: int,
        actor_member_id: Optional[int],
        org_id: int,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        return await self.log_event(
            action=AuditAction.CREATE,
            resource_type=resource_type,
            actor_member_id=actor_member_id,
            resource_id=resource_id,
            org_id=org_id,
            extra_data=extra_data,
        )

    async def log_update(
        self,
        resource_type: str,
        resource_id: int,
        actor_member_id: Optional[int],
        org_id: int,
        changes: Dict[str, Any],
    ) -> Optional[AuditLog]:
        """Record changed fields as {"field": {"before": ..., "after": ...}}."""
        return await self.log_event(
            action=AuditAction.UPDATE,
            resource_type=resource_type,
            actor_member_id=actor_member_id,
            resource_id=resource_id,
            org_id=org_id,
            changes=changes,
        )

    async def log_delete(
        self,
        resource_type: str,
        resource_id: int,
        actor_member_id: Optional[int],
        org_id: int,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        return await self.log_event(
            action=AuditAction.DELETE,
            resource_type=resource_type,
            actor_member_id=actor_member_id,
            resource_id=resource_id,
            org_id=org_id,
            extra_data=extra_data,
        )

    async def log_status_change(
        self,
        resource_type: str,
        resource_id: int,
        actor_member_id: Optional[int],
        org_id: int,
        before: str,
        after: str,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        return await self.log_event(
            action=AuditAction.STATUS_CHANGE,
            resource_type=resource_type,
            actor_member_id=actor_member_id,
            resource_id=resource_id,
            org_id=org_id,
            changes={"status": {"before": before, "after": after}},
            extra_data=extra_data,
        )

    async def log_payment(
        self,
        resource_type: str,
        resource_id: int,
        actor_member_id: Optional[int],
        org_id: int,
        amount: str,
        extra_data: Optional[Dict[str, Any]] = None,
    ) -> Optional[AuditLog]:
        return await self.log_event(
            action=AuditAction.PAYMENT,
            resource_type=resource_type,
            actor_member_id=actor_member_id,
            resource_id=resource_id,
            org_id=org_id,
            extra_data={"amount": amount, **(extra_data or {})},
        )

    async def log_bulk_operation(
        self,
        resource_type: str,
        operation: str,
        actor_member_id: Optional[int],
        org_id: int,
        requested: int,
        succeeded: int,
        failed: int,
    ) -> Optional[AuditLog]:
        return await self.log_event(
            action=AuditAction.BULK_OPERATION,
            resource_type=resource_type,
            actor_member_id=actor_member_id,
            org_id=org_id,
            extra_data={
                "operation": operation,
                "requested": requested,
                "succeeded": succeeded,
                "failed": failed,
            },
        )
