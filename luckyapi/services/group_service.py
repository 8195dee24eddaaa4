import logging
from typing import Optional

from sqlalchemy.orm import Session

from luckyapi.config import Settings, settings as default_settings
from luckyapi.core.exceptions import (
    ConflictError,
    GroupFullError,
    GroupInactiveError,
    GroupNotFoundError,
    MembershipConflictError,
    NotAMemberError,
    TreasureUnavailableError,
)
from luckyapi.database.session import unit_of_work
from luckyapi.models.group import GroupStatus, TreasureGroup
from luckyapi.repositories.group_repository import GroupRepository
from luckyapi.repositories.treasure_repository import TreasureRepository
from luckyapi.schemas.group import (
    GroupCreateRequest,
    GroupJoinResult,
    GroupLeaveResponse,
    GroupListResponse,
    GroupMembersResponse,
)
from luckyapi.schemas.pagination import clamp_page

logger = logging.getLogger(__name__)

SUCCESSION_ATTEMPTS = 3


class GroupService:
    """보물 공동구매 그룹 코디네이터

    join_or_create 는 체크아웃 트랜잭션 안에서 호출되므로 커밋하지 않는다.
    create_group / join_group / leave_group 은 각각 하나의 unit of work.
    """

    def __init__(self, db: Session, app_settings: Optional[Settings] = None):
        self.db = db
        self.settings = app_settings or default_settings
        self.group_repo = GroupRepository(db)
        self.treasure_repo = TreasureRepository(db)

    def _join_existing(
        self, group: TreasureGroup, user_id: str, order_id: Optional[str]
    ) -> GroupJoinResult:
        """기존 그룹 참여 - 멱등, 정원 가드, 유니크 위반 시 보상 후 Conflict"""
        if group.group_status != GroupStatus.ACTIVE:
            raise GroupInactiveError(details={"group_id": group.group_id})

        membership = self.group_repo.get_membership(group.group_id, user_id)
        if membership is not None:
            return GroupJoinResult(
                final_group_id=group.group_id,
                is_owner=bool(membership.is_owner),
                already_in_group=True,
            )

        if not self.group_repo.increment_members(group.group_id):
            logger.warning(f"Group {group.group_id} is full or inactive, user {user_id} rejected")
            raise GroupFullError(details={"group_id": group.group_id})

        if not self.group_repo.add_member(group.group_id, user_id, is_owner=False, order_id=order_id):
            # 같은 사용자의 동시 참여 - 증가분 보상
            self.group_repo.decrement_members(group.group_id)
            logger.warning(f"Concurrent join detected: group={group.group_id}, user={user_id}")
            raise MembershipConflictError(details={"group_id": group.group_id})

        logger.info(f"User {user_id} joined group {group.group_id}")
        return GroupJoinResult(
            final_group_id=group.group_id, is_owner=False, already_in_group=False
        )

    def join_or_create(
        self,
        user_id: str,
        treasure_id: str,
        order_id: Optional[str] = None,
        group_id: Optional[str] = None,
        max_members: Optional[int] = None,
        group_name: str = "",
    ) -> GroupJoinResult:
        """그룹 참여 또는 자동 개설 (호출자 트랜잭션 내부)

        Args:
            user_id: 사용자 ID
            treasure_id: 보물 ID
            order_id: 원인 주문 ID
            group_id: 지정 시 해당 그룹 참여, 없으면 기존 활성 그룹 재사용 또는 개설
            max_members: 개설 시 최대 인원 (기본값: 무제한 센티널)
            group_name: 개설 시 그룹명

        Returns:
            GroupJoinResult: 최종 그룹 ID, 개설자 여부, 기존 참여 여부
        """
        if group_id:
            group = self.group_repo.get_group(group_id)
            if group is None or group.treasure_id != treasure_id:
                raise GroupNotFoundError(details={"group_id": group_id})
            return self._join_existing(group, user_id, order_id)

        membership = self.group_repo.find_active_membership(user_id, treasure_id)
        if membership is not None:
            return GroupJoinResult(
                final_group_id=membership.group_id,
                is_owner=bool(membership.is_owner),
                already_in_group=True,
            )

        group = self.group_repo.create_group_with_owner(
            treasure_id=treasure_id,
            creator_id=user_id,
            max_members=max_members or self.settings.GROUP_DEFAULT_MAX_MEMBERS,
            group_name=group_name,
            order_id=order_id,
        )
        if group is None:
            # 동시 개설 경쟁에서 패배 - 승자의 그룹 반환
            winner = self.group_repo.find_group_by_active_creator(treasure_id, user_id)
            if winner is None:
                raise ConflictError(
                    "Concurrent group creation could not be resolved",
                    details={"treasure_id": treasure_id},
                    error_code="GROUP_006",
                )
            logger.info(f"Group creation race resolved: user {user_id} -> group {winner.group_id}")
            return GroupJoinResult(
                final_group_id=winner.group_id,
                is_owner=winner.creator_id == user_id,
                already_in_group=True,
            )

        logger.info(f"User {user_id} opened group {group.group_id} for treasure {treasure_id}")
        return GroupJoinResult(
            final_group_id=group.group_id, is_owner=True, already_in_group=False
        )

    def create_group(self, user_id: str, request: GroupCreateRequest) -> GroupJoinResult:
        """그룹 명시 개설 - 같은 보물의 활성 그룹에 이미 속해 있으면 Conflict"""
        with unit_of_work(self.db):
            if not self.treasure_repo.is_active(request.treasure_id):
                raise TreasureUnavailableError(
                    "Treasure not found or inactive",
                    details={"treasure_id": request.treasure_id},
                )

            if self.group_repo.find_active_membership(user_id, request.treasure_id):
                raise ConflictError(
                    "User already belongs to an active group for this treasure",
                    details={"treasure_id": request.treasure_id},
                    error_code="GROUP_006",
                )

            result = self.join_or_create(
                user_id=user_id,
                treasure_id=request.treasure_id,
                order_id=request.order_id,
                max_members=request.max_members,
                group_name=request.group_name or "",
            )
            if result.already_in_group:
                raise ConflictError(
                    "User already belongs to an active group for this treasure",
                    details={"treasure_id": request.treasure_id},
                    error_code="GROUP_006",
                )
            return result

    def join_group(
        self, user_id: str, group_id: str, order_id: Optional[str] = None
    ) -> GroupJoinResult:
        """그룹 명시 참여"""
        with unit_of_work(self.db):
            group = self.group_repo.get_group(group_id)
            if group is None:
                raise GroupNotFoundError(details={"group_id": group_id})
            return self._join_existing(group, user_id, order_id)

    def _hand_over(self, group_id: str, user_id: str) -> None:
        """떠나는 개설자의 권한 승계 또는 그룹 종료

        승계/종료 모두 가드 UPDATE 이므로, 조회 이후 멤버 구성이 바뀌어
        적용되지 않으면 다시 조회해서 재시도한다.
        """
        for _ in range(SUCCESSION_ATTEMPTS):
            successor = self.group_repo.next_owner(group_id, user_id)
            if successor is None:
                if self.group_repo.deactivate_if_empty(group_id, user_id):
                    logger.info(f"Group {group_id} closed, no members remain")
                    return
            elif self.group_repo.transfer_ownership(group_id, successor.user_id):
                logger.info(
                    f"Group {group_id} ownership transferred {user_id} -> {successor.user_id}"
                )
                return
            logger.warning(f"Group {group_id} membership changed during hand-over, retrying")

        raise ConflictError(
            "Group membership kept changing while the owner was leaving",
            details={"group_id": group_id},
            error_code="GROUP_007",
        )

    def leave_group(self, user_id: str, group_id: str) -> GroupLeaveResponse:
        """그룹 탈퇴

        그룹 행을 잠근 뒤, 개설자가 떠나면 가장 먼저 가입한 잔여 멤버에게
        개설자 권한을 넘기고 남은 멤버가 없으면 그룹을 INACTIVE 로 전환한다.
        이후 멤버십 삭제, 인원 감소(0 하한) 순으로 하나의 트랜잭션에서 처리한다.
        """
        with unit_of_work(self.db):
            # 참여(인원 증가 UPDATE)는 잠금 해제까지 대기
            if self.group_repo.lock_group(group_id) is None:
                raise NotAMemberError(details={"group_id": group_id})

            membership = self.group_repo.get_membership(group_id, user_id)
            if membership is None:
                raise NotAMemberError(details={"group_id": group_id})

            if membership.is_owner:
                self._hand_over(group_id, user_id)

            self.group_repo.delete_member(group_id, user_id)
            self.group_repo.decrement_members(group_id)

        logger.info(f"User {user_id} left group {group_id}")
        return GroupLeaveResponse(success=True, group_id=group_id)

    def list_active_for_treasure(
        self, treasure_id: str, page: int = 1, page_size: Optional[int] = None
    ) -> GroupListResponse:
        params = clamp_page(
            page,
            page_size or self.settings.DEFAULT_PAGE_SIZE,
            self.settings.MAX_PAGE_SIZE,
        )
        items, total = self.group_repo.list_active_for_treasure(
            treasure_id=treasure_id,
            offset=params.offset,
            limit=params.page_size,
            preview_size=self.settings.GROUP_MEMBER_PREVIEW_SIZE,
        )
        return GroupListResponse(
            items=items,
            total=total,
            page=params.page,
            page_size=params.page_size,
            has_next=params.offset + len(items) < total,
        )

    def list_members(
        self, group_id: str, page: int = 1, page_size: Optional[int] = None
    ) -> GroupMembersResponse:
        if self.group_repo.get_group(group_id) is None:
            raise GroupNotFoundError(details={"group_id": group_id})

        params = clamp_page(
            page,
            page_size or self.settings.DEFAULT_PAGE_SIZE,
            self.settings.MAX_PAGE_SIZE,
        )
        items, total = self.group_repo.list_members(
            group_id, offset=params.offset, limit=params.page_size
        )
        return GroupMembersResponse(
            group_id=group_id,
            items=items,
            total=total,
            page=params.page,
            page_size=params.page_size,
            has_next=params.offset + len(items) < total,
        )
