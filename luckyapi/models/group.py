import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, CheckConstraint, DateTime, Enum, ForeignKey, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.schema import UniqueConstraint

from luckyapi.models.base import AutoIncrementBigInt, BaseModel, new_uuid


class GroupStatus(enum.Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class TreasureGroup(BaseModel):
    """
    보물 공동구매 그룹

    - current_members는 가드 UPDATE(current_members < max_members)로만 증가
    - active_creator_key는 개설자가 멤버로 남아 있는 동안 "<treasure_id>:<creator_id>",
      개설자가 떠나면 NULL. 동시 자동 개설 경쟁을 유니크 제약으로 판정하는 데 사용
    """

    __tablename__ = "treasure_groups"
    __table_args__ = (
        CheckConstraint("current_members >= 0", name="ck_group_members_non_negative"),
        CheckConstraint("current_members <= max_members", name="ck_group_members_capacity"),
    )

    group_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    treasure_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("treasures.treasure_id"), nullable=False, index=True
    )
    creator_id: Mapped[str] = mapped_column(String(36), nullable=False)
    group_name: Mapped[str] = mapped_column(String(100), nullable=False, default="")
    current_members: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    max_members: Mapped[int] = mapped_column(Integer, nullable=False)
    group_status: Mapped[GroupStatus] = mapped_column(
        Enum(GroupStatus), nullable=False, default=GroupStatus.ACTIVE
    )
    active_creator_key: Mapped[Optional[str]] = mapped_column(
        String(80), unique=True, nullable=True
    )


class TreasureGroupMember(BaseModel):
    """그룹 멤버십 - (group_id, user_id) 유니크, 탈퇴 시 행 삭제"""

    __tablename__ = "treasure_group_members"
    __table_args__ = (
        UniqueConstraint("group_id", "user_id", name="uq_group_member"),
    )

    # 삽입 순서 - joined_at 동률 시 정렬 기준
    id: Mapped[int] = mapped_column(AutoIncrementBigInt, primary_key=True, autoincrement=True)
    group_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("treasure_groups.group_id"), nullable=False, index=True
    )
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    is_owner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    order_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
