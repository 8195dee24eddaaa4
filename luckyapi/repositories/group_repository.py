from typing import List, Optional, Tuple

from sqlalchemy import asc, case, desc, exists
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from luckyapi.models.group import GroupStatus, TreasureGroup, TreasureGroupMember
from luckyapi.models.user import User
from luckyapi.repositories.base import BaseRepository
from luckyapi.schemas.group import GroupMemberView, GroupUserSummary, GroupView


def active_creator_key(treasure_id: str, creator_id: str) -> str:
    return f"{treasure_id}:{creator_id}"


class GroupRepository(BaseRepository[TreasureGroup, GroupView]):
    """그룹/멤버십 리포지토리

    - 인원 카운터는 가드 UPDATE로만 변경
    - 멤버십/그룹 삽입은 SAVEPOINT 안에서 수행, 유니크 위반 시 False/None 반환
    - 개설자 승계/비활성화도 가드 UPDATE, 영향 행이 없으면 False
    """

    def __init__(self, db: Session):
        super().__init__(TreasureGroup, GroupView, db)

    # ----- 조회 -----

    def get_group(self, group_id: str) -> Optional[TreasureGroup]:
        return (
            self.db.query(TreasureGroup)
            .filter(TreasureGroup.group_id == group_id)
            .populate_existing()
            .first()
        )

    def lock_group(self, group_id: str) -> Optional[TreasureGroup]:
        """그룹 행 잠금 (SELECT ... FOR UPDATE), 트랜잭션 종료까지 유지"""
        return (
            self.db.query(TreasureGroup)
            .filter(TreasureGroup.group_id == group_id)
            .with_for_update()
            .populate_existing()
            .first()
        )

    def get_membership(self, group_id: str, user_id: str) -> Optional[TreasureGroupMember]:
        return (
            self.db.query(TreasureGroupMember)
            .filter(
                TreasureGroupMember.group_id == group_id,
                TreasureGroupMember.user_id == user_id,
            )
            .populate_existing()
            .first()
        )

    def find_active_membership(
        self, user_id: str, treasure_id: str
    ) -> Optional[TreasureGroupMember]:
        """해당 보물의 ACTIVE 그룹 중 사용자가 속한 멤버십 (가장 먼저 가입한 것)"""
        return (
            self.db.query(TreasureGroupMember)
            .join(TreasureGroup, TreasureGroup.group_id == TreasureGroupMember.group_id)
            .filter(
                TreasureGroupMember.user_id == user_id,
                TreasureGroup.treasure_id == treasure_id,
                TreasureGroup.group_status == GroupStatus.ACTIVE,
            )
            .order_by(asc(TreasureGroupMember.joined_at), asc(TreasureGroupMember.id))
            .populate_existing()
            .first()
        )

    def find_group_by_active_creator(
        self, treasure_id: str, creator_id: str
    ) -> Optional[TreasureGroup]:
        return (
            self.db.query(TreasureGroup)
            .filter(
                TreasureGroup.active_creator_key
                == active_creator_key(treasure_id, creator_id)
            )
            .populate_existing()
            .first()
        )

    def next_owner(self, group_id: str, leaving_user_id: str) -> Optional[TreasureGroupMember]:
        """가장 먼저 가입한 잔여 멤버 (동률 시 삽입 순서)"""
        return (
            self.db.query(TreasureGroupMember)
            .filter(
                TreasureGroupMember.group_id == group_id,
                TreasureGroupMember.user_id != leaving_user_id,
            )
            .order_by(asc(TreasureGroupMember.joined_at), asc(TreasureGroupMember.id))
            .populate_existing()
            .first()
        )

    # ----- 가드 카운터 -----

    def increment_members(self, group_id: str) -> bool:
        """ACTIVE 이고 정원 미달일 때만 current_members + 1"""
        updated_count = (
            self.db.query(TreasureGroup)
            .filter(
                TreasureGroup.group_id == group_id,
                TreasureGroup.group_status == GroupStatus.ACTIVE,
                TreasureGroup.current_members < TreasureGroup.max_members,
            )
            .update(
                {"current_members": TreasureGroup.current_members + 1},
                synchronize_session=False,
            )
        )
        self.db.flush()
        return updated_count == 1

    def decrement_members(self, group_id: str) -> bool:
        """current_members - 1 (0 미만으로 내려가지 않음)"""
        updated_count = (
            self.db.query(TreasureGroup)
            .filter(TreasureGroup.group_id == group_id)
            .update(
                {
                    "current_members": case(
                        (TreasureGroup.current_members >= 1, TreasureGroup.current_members - 1),
                        else_=0,
                    )
                },
                synchronize_session=False,
            )
        )
        self.db.flush()
        return updated_count == 1

    # ----- 삽입 (SAVEPOINT) -----

    def add_member(
        self,
        group_id: str,
        user_id: str,
        is_owner: bool = False,
        order_id: Optional[str] = None,
    ) -> bool:
        """멤버십 추가. (group_id, user_id) 중복이면 SAVEPOINT만 롤백하고 False"""
        try:
            with self.db.begin_nested():
                self.db.add(
                    TreasureGroupMember(
                        group_id=group_id,
                        user_id=user_id,
                        is_owner=is_owner,
                        order_id=order_id,
                    )
                )
        except IntegrityError:
            return False
        return True

    def create_group_with_owner(
        self,
        treasure_id: str,
        creator_id: str,
        max_members: int,
        group_name: str = "",
        order_id: Optional[str] = None,
    ) -> Optional[TreasureGroup]:
        """그룹 + 개설자 멤버십을 함께 생성. 같은 개설자의 활성 그룹이 이미 있으면 None"""
        group = TreasureGroup(
            treasure_id=treasure_id,
            creator_id=creator_id,
            group_name=group_name,
            current_members=1,
            max_members=max_members,
            group_status=GroupStatus.ACTIVE,
            active_creator_key=active_creator_key(treasure_id, creator_id),
        )
        try:
            with self.db.begin_nested():
                self.db.add(group)
                self.db.flush()
                self.db.add(
                    TreasureGroupMember(
                        group_id=group.group_id,
                        user_id=creator_id,
                        is_owner=True,
                        order_id=order_id,
                    )
                )
        except IntegrityError:
            return None
        return group

    # ----- 상태 변경 -----

    def transfer_ownership(self, group_id: str, new_owner_id: str) -> bool:
        """개설자 승계. 승계 대상 멤버십이 이미 없으면 아무 것도 바꾸지 않고 False"""
        promoted = (
            self.db.query(TreasureGroupMember)
            .filter(
                TreasureGroupMember.group_id == group_id,
                TreasureGroupMember.user_id == new_owner_id,
            )
            .update({"is_owner": True}, synchronize_session=False)
        )
        if promoted != 1:
            self.db.flush()
            return False

        (
            self.db.query(TreasureGroup)
            .filter(TreasureGroup.group_id == group_id)
            .update(
                {"creator_id": new_owner_id, "active_creator_key": None},
                synchronize_session=False,
            )
        )
        self.db.flush()
        return True

    def deactivate_if_empty(self, group_id: str, leaving_user_id: str) -> bool:
        """떠나는 사용자 외 멤버가 없을 때만 INACTIVE 전환"""
        others = exists().where(
            TreasureGroupMember.group_id == group_id,
            TreasureGroupMember.user_id != leaving_user_id,
        )
        updated_count = (
            self.db.query(TreasureGroup)
            .filter(TreasureGroup.group_id == group_id, ~others)
            .update(
                {"group_status": GroupStatus.INACTIVE, "active_creator_key": None},
                synchronize_session=False,
            )
        )
        self.db.flush()
        return updated_count == 1

    def delete_member(self, group_id: str, user_id: str) -> bool:
        deleted = (
            self.db.query(TreasureGroupMember)
            .filter(
                TreasureGroupMember.group_id == group_id,
                TreasureGroupMember.user_id == user_id,
            )
            .delete(synchronize_session=False)
        )
        self.db.flush()
        return deleted == 1

    # ----- 목록 프로젝션 -----

    def _members_query(self, group_id: str):
        return (
            self.db.query(TreasureGroupMember, User)
            .outerjoin(User, User.id == TreasureGroupMember.user_id)
            .filter(TreasureGroupMember.group_id == group_id)
            .order_by(
                desc(TreasureGroupMember.is_owner),
                asc(TreasureGroupMember.joined_at),
                asc(TreasureGroupMember.id),
            )
        )

    @staticmethod
    def _to_member_view(member: TreasureGroupMember, user: Optional[User]) -> GroupMemberView:
        return GroupMemberView(
            user_id=member.user_id,
            nickname=user.nickname if user else None,
            avatar=user.avatar if user else None,
            is_owner=bool(member.is_owner),
            joined_at=member.joined_at,
        )

    def count_members(self, group_id: str) -> int:
        return (
            self.db.query(TreasureGroupMember)
            .filter(TreasureGroupMember.group_id == group_id)
            .count()
        )

    def list_members(
        self, group_id: str, offset: int, limit: int
    ) -> Tuple[List[GroupMemberView], int]:
        """개설자 우선, 이후 가입 순"""
        rows = self._members_query(group_id).offset(offset).limit(limit).all()
        return (
            [self._to_member_view(member, user) for member, user in rows],
            self.count_members(group_id),
        )

    def _creator_summary(self, creator_id: str) -> GroupUserSummary:
        user = self.db.query(User).filter(User.id == creator_id).first()
        return GroupUserSummary(
            user_id=creator_id,
            nickname=user.nickname if user else None,
            avatar=user.avatar if user else None,
        )

    def list_active_for_treasure(
        self, treasure_id: str, offset: int, limit: int, preview_size: int
    ) -> Tuple[List[GroupView], int]:
        """ACTIVE 그룹 목록 (최근 갱신순) + 개설자 정보 + 멤버 미리보기"""
        filters = {"treasure_id": treasure_id, "group_status": GroupStatus.ACTIVE}
        total = self.count(filters)
        groups = (
            self._filtered(filters)
            .order_by(desc(TreasureGroup.updated_at), desc(TreasureGroup.group_id))
            .offset(offset)
            .limit(limit)
            .all()
        )

        views = []
        for group in groups:
            preview = self._members_query(group.group_id).limit(preview_size).all()
            views.append(
                GroupView(
                    group_id=group.group_id,
                    treasure_id=group.treasure_id,
                    group_name=group.group_name or "",
                    group_status=group.group_status,
                    current_members=group.current_members,
                    max_members=group.max_members,
                    updated_at=group.updated_at,
                    creator=self._creator_summary(group.creator_id),
                    members=[self._to_member_view(m, u) for m, u in preview],
                    member_count=self.count_members(group.group_id),
                )
            )
        return views, total
