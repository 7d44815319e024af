"""
Team Service.

WHAT: Lists an organization's members and applies owner-only role changes
and deactivations.

WHY: The member list is served from a per-organization TTLCache. Every
mutation here invalidates that organization's entry after writing, so the
TTL only bounds staleness caused by writers outside this process.
"""

import logging
from typing import List, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.cache import TTLCache
from bizledger.core.config import settings
from bizledger.core.exceptions import AuthorizationError, MemberNotFoundError, ValidationError
from bizledger.dao.member import MemberDAO
from bizledger.models.audit_log import AuditAction
from bizledger.models.member import Member, OrgRole
from bizledger.schemas.team import MemberResponse
from bizledger.services.audit import AuditService

logger = logging.getLogger(__name__)

# org_id -> List[MemberResponse]
team_cache = TTLCache(ttl_seconds=settings.TEAM_CACHE_TTL_SECONDS)


class TeamService:
    """Service for team membership."""

    def __init__(self, session: AsyncSession, cache: Optional[TTLCache] = None):
        self.session = session
        self.member_dao = MemberDAO(session)
        self.audit = AuditService(session)
        self.cache = cache if cache is not None else team_cache

    async def list_members(self, org_id: int) -> List[MemberResponse]:
        """Members of the organization, owners first (cached)."""

        async def load() -> List[MemberResponse]:
            members = await self.member_dao.list_for_org(org_id)
            return [MemberResponse.model_validate(m) for m in members]

        return await self.cache.get_or_load(org_id, load)

    async def _get_target(self, member_id: int, actor: Member) -> Member:
        if not actor.is_owner:
            raise AuthorizationError(message="Only the organization owner can manage team members")
        member = await self.member_dao.get_by_id_and_org(member_id, actor.org_id)
        if member is None:
            raise MemberNotFoundError(
                message=f"Team member with id {member_id} not found",
                resource_id=member_id,
            )
        if member.is_owner:
            raise AuthorizationError(message="The organization owner cannot be changed here")
        return member

    async def change_role(self, member_id: int, role: OrgRole, actor: Member) -> Member:
        """
        Change a member's role.

        Raises:
            AuthorizationError: actor is not the owner, or the target is the owner
            ValidationError: ownership cannot be assigned through this route
        """
        role = OrgRole(role)
        if role == OrgRole.OWNER:
            raise ValidationError(message="Ownership cannot be assigned by a role change")
        member = await self._get_target(member_id, actor)

        before = member.role
        if before != role:
            member = await self.member_dao.update_instance(member, role=role)
            await self.audit.log_event(
                action=AuditAction.ROLE_CHANGE,
                resource_type="member",
                actor_member_id=actor.id,
                resource_id=member.id,
                org_id=actor.org_id,
                changes={"role": {"before": before.value, "after": role.value}},
            )
            logger.info(f"Member {member.id} role {before.value} -> {role.value}")
        self.cache.invalidate(actor.org_id)
        return member

    async def deactivate(self, member_id: int, actor: Member) -> Member:
        """
        Deactivate a member; their tokens stop resolving immediately.

        Raises:
            ValidationError: the owner tried to deactivate themselves
        """
        if member_id == actor.id:
            raise ValidationError(message="You cannot deactivate your own account")
        member = await self._get_target(member_id, actor)

        if member.is_active:
            member = await self.member_dao.update_instance(member, is_active=False)
            await self.audit.log_event(
                action=AuditAction.ACCOUNT_DEACTIVATED,
                resource_type="member",
                actor_member_id=actor.id,
                resource_id=member.id,
                org_id=actor.org_id,
            )
            logger.info(f"Member {member.id} deactivated by {actor.id}")
        self.cache.invalidate(actor.org_id)
        return member
