from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from luckyapi.models.group import GroupStatus
from luckyapi.schemas.pagination import PaginatedResponse


class GroupCreateRequest(BaseModel):
    """그룹 개설 요청"""

    treasure_id: str = Field(..., min_length=1, description="보물 ID")
    group_name: Optional[str] = Field(None, max_length=100, description="그룹명")
    max_members: Optional[int] = Field(None, ge=1, description="최대 인원 (미지정 시 무제한)")
    order_id: Optional[str] = Field(None, description="개설 원인 주문 ID")


class GroupJoinRequest(BaseModel):
    order_id: Optional[str] = Field(None, description="참여 원인 주문 ID")


class GroupJoinResult(BaseModel):
    """참여/개설 결과"""

    final_group_id: str
    is_owner: bool
    already_in_group: bool


class GroupLeaveResponse(BaseModel):
    success: bool = True
    group_id: str


class GroupUserSummary(BaseModel):
    user_id: str
    nickname: Optional[str] = None
    avatar: Optional[str] = None


class GroupMemberView(GroupUserSummary):
    is_owner: bool
    joined_at: Optional[datetime] = None


class GroupView(BaseModel):
    """활성 그룹 목록 항목"""

    group_id: str
    treasure_id: str
    group_name: str
    group_status: GroupStatus
    current_members: int
    max_members: int
    updated_at: Optional[datetime] = None
    creator: GroupUserSummary
    members: List[GroupMemberView] = Field(default_factory=list, description="멤버 미리보기")
    member_count: int


class GroupListResponse(PaginatedResponse[GroupView]):
    pass


class GroupMembersResponse(PaginatedResponse[GroupMemberView]):
    group_id: str
