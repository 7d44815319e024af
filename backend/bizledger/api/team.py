"""
Team API endpoints.

The member list is served from a per-organization TTL cache; role changes
and deactivations are owner-only and invalidate it.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bizledger.core.deps import require_permission
from bizledger.db.session import get_db
from bizledger.models.member import Member
from bizledger.schemas.team import MemberResponse, RoleChange, TeamListResponse
from bizledger.services.team_service import TeamService


router = APIRouter(prefix="/team", tags=["team"])


@router.get("", response_model=TeamListResponse, summary="List team members")
async def list_team(
    member: Member = Depends(require_permission("team_members", "view")),
    db: AsyncSession = Depends(get_db),
) -> TeamListResponse:
    return TeamListResponse(members=await TeamService(db).list_members(member.org_id))


@router.patch("/{member_id}/role", response_model=MemberResponse, summary="Change role")
async def change_role(
    member_id: int,
    data: RoleChange,
    member: Member = Depends(require_permission("team_members", "edit")),
    db: AsyncSession = Depends(get_db),
) -> MemberResponse:
    """
    Change a member's role.

    Raises:
        AuthorizationError (403): target is the owner
        ValidationError (400): requested role is owner
    """
    updated = await TeamService(db).change_role(member_id, data.role, member)
    return MemberResponse.model_validate(updated)


@router.post(
    "/{member_id}/deactivate",
    response_model=MemberResponse,
    summary="Deactivate member",
)
async def deactivate_member(
    member_id: int,
    member: Member = Depends(require_permission("team_members", "delete")),
    db: AsyncSession = Depends(get_db),
) -> MemberResponse:
    updated = await TeamService(db).deactivate(member_id, member)
    return MemberResponse.model_validate(updated)
