from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from luckyapi.models.base import BaseModel


class User(BaseModel):
    """사용자 프로필 투영 - 인증/가입은 외부 서비스 소관, 여기서는 조회 전용"""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    nickname: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    def __repr__(self):
        return f"<User(id={self.id}, nickname={self.nickname})>"
