"""
FastAPI dependencies for authentication and authorization.

WHY: Every route resolves the caller the same way: bearer token → member →
organization. Handlers receive the Member and use ``member.org_id`` to scope
every query, so tenant isolation does not depend on the client sending the
right organization id.
"""

import logging
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.auth import verify_token
from bizledger.core.exceptions import AuthenticationError, InsufficientPermissionsError
from bizledger.dao.member import MemberDAO
from bizledger.db.session import get_db
from bizledger.models.member import Member
from bizledger.services.permissions import can_perform

logger = logging.getLogger(__name__)

# auto_error=False: a missing header is reported as our 401, not Starlette's 403
security = HTTPBearer(auto_error=False)


async def get_current_member(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> Member:
    """
    Resolve the authenticated member from the bearer token.

    The token must carry ``member_id``; when it also carries ``org_id`` the
    two must agree with the stored member.

    Args:
        credentials: Bearer token from the Authorization header
        db: Database session

    Returns:
        Active Member

    Raises:
        AuthenticationError: missing/invalid/expired token, unknown or inactive member
    """
    if credentials is None:
        raise AuthenticationError(message="Missing bearer token")

    # TokenExpiredError / TokenInvalidError are AuthenticationError subclasses
    payload = verify_token(credentials.credentials)

    member_id = payload.get("member_id")
    if not member_id:
        raise AuthenticationError(message="Invalid token: missing member_id")

    member = await MemberDAO(db).get_by_id(int(member_id))
    if member is None:
        raise AuthenticationError(message="Member not found", member_id=member_id)

    token_org = payload.get("org_id")
    if token_org is not None and int(token_org) != member.org_id:
        raise AuthenticationError(message="Token organization does not match member")

    if not member.is_active:
        raise AuthenticationError(message="Member account is inactive", member_id=member.id)

    return member


def require_permission(resource: str, action: str):
    """
    Factory for a capability gate.

    Usage:
        @router.delete("/{invoice_id}")
        async def delete_invoice(
            member: Member = Depends(require_permission("invoices", "delete")),
        ): ...

    Args:
        resource: Resource name in the permission matrix
        action: Action name in the permission matrix

    Returns:
        Dependency resolving to the current member if allowed
    """

    async def permission_checker(member: Member = Depends(get_current_member)) -> Member:
        if not can_perform(member.role, resource, action):
            logger.info(
                f"Denied {resource}.{action} for member {member.id} (role {member.role.value})"
            )
            raise InsufficientPermissionsError(
                message=f"Your role cannot {action} {resource.replace('_', ' ')}",
                role=member.role.value,
                resource=resource,
                action=action,
            )
        return member

    return permission_checker
