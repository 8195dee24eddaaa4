"""
그룹 API 라우터

- POST /groups: 그룹 개설
- POST /groups/{group_id}/join: 그룹 참여
- POST /groups/{group_id}/leave: 그룹 탈퇴
- GET /groups?treasure_id=: 보물별 활성 그룹 목록
- GET /groups/{group_id}/members: 그룹 멤버 목록
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from luckyapi.core.auth_middleware import get_current_user_id
from luckyapi.deps import get_group_service
from luckyapi.schemas.group import (
    GroupCreateRequest,
    GroupJoinRequest,
    GroupJoinResult,
    GroupLeaveResponse,
    GroupListResponse,
    GroupMembersResponse,
)
from luckyapi.schemas.pagination import PaginationLimits
from luckyapi.services.group_service import GroupService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=GroupJoinResult)
def create_group(
    request: GroupCreateRequest,
    user_id: str = Depends(get_current_user_id),
    group_service: GroupService = Depends(get_group_service),
) -> GroupJoinResult:
    """
    그룹 개설 - 요청자가 개설자(owner)가 됨

    HTTP Status:
        200: 개설 완료
        400: 보물 판매 중지/없음
        409: 이미 해당 보물의 활성 그룹에 참여 중
    """
    return group_service.create_group(user_id, request)


@router.post("/{group_id}/join", response_model=GroupJoinResult)
def join_group(
    group_id: str = Path(..., description="그룹 ID"),
    request: Optional[GroupJoinRequest] = Body(None),
    user_id: str = Depends(get_current_user_id),
    group_service: GroupService = Depends(get_group_service),
) -> GroupJoinResult:
    """그룹 참여 - 이미 멤버이면 already_in_group=true"""
    order_id = request.order_id if request else None
    return group_service.join_group(user_id, group_id, order_id=order_id)


@router.post("/{group_id}/leave", response_model=GroupLeaveResponse)
def leave_group(
    group_id: str = Path(..., description="그룹 ID"),
    user_id: str = Depends(get_current_user_id),
    group_service: GroupService = Depends(get_group_service),
) -> GroupLeaveResponse:
    """그룹 탈퇴 - 개설자 탈퇴 시 권한 승계 또는 그룹 종료"""
    return group_service.leave_group(user_id, group_id)


@router.get("", response_model=GroupListResponse)
def list_groups(
    treasure_id: str = Query(..., description="보물 ID"),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        PaginationLimits.GROUPS["default"],
        ge=PaginationLimits.GROUPS["min"],
        le=PaginationLimits.GROUPS["max"],
    ),
    group_service: GroupService = Depends(get_group_service),
) -> GroupListResponse:
    """보물별 활성 그룹 목록 (최근 갱신순)"""
    return group_service.list_active_for_treasure(treasure_id, page=page, page_size=page_size)


@router.get("/{group_id}/members", response_model=GroupMembersResponse)
def list_group_members(
    group_id: str = Path(..., description="그룹 ID"),
    page: int = Query(1, ge=1),
    page_size: int = Query(
        PaginationLimits.GROUP_MEMBERS["default"],
        ge=PaginationLimits.GROUP_MEMBERS["min"],
        le=PaginationLimits.GROUP_MEMBERS["max"],
    ),
    group_service: GroupService = Depends(get_group_service),
) -> GroupMembersResponse:
    """그룹 멤버 목록 (개설자 우선, 가입 순)"""
    return group_service.list_members(group_id, page=page, page_size=page_size)
