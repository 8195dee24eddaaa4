from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from luckyapi.models.base import BaseModel

EXCHANGE_RATE_KEY = "exchange_rate"


class SystemConfig(BaseModel):
    """시스템 설정 키-값 (외부 관리, 읽기 전용)"""

    __tablename__ = "system_configs"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")
