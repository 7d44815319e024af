"""Team member schemas."""

from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict

from bizledger.models.member import OrgRole


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    org_id: int
    name: str
    email: str
    role: OrgRole
    is_active: bool
    created_at: datetime


class TeamListResponse(BaseModel):
    members: List[MemberResponse]


class RoleChange(BaseModel):
    role: OrgRole
