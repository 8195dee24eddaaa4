import enum
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from luckyapi.models.base import BaseModel, new_uuid


class TreasureState(enum.Enum):
    ACTIVE = "ACTIVE"  # 판매중
    INACTIVE = "INACTIVE"  # 판매 중지


class Treasure(BaseModel):
    """보물(상품) - 카탈로그는 외부 관리, 여기서는 재고 카운터만 변경"""

    __tablename__ = "treasures"
    __table_args__ = (
        CheckConstraint(
            "seq_buy_quantity >= 0 AND seq_buy_quantity <= seq_shelves_quantity",
            name="ck_treasure_stock_bounds",
        ),
    )

    treasure_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    treasure_name: Mapped[str] = mapped_column(String(255), nullable=False)
    treasure_cover_img: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    product_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    state: Mapped[TreasureState] = mapped_column(
        Enum(TreasureState), nullable=False, default=TreasureState.ACTIVE
    )
    unit_amount: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    seq_shelves_quantity: Mapped[int] = mapped_column(Integer, nullable=False)  # 총 판매 가능 수량
    seq_buy_quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # 판매된 수량
    max_per_buy_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)  # 사용자당 구매 한도
    max_unit_coins: Mapped[Optional[Decimal]] = mapped_column(Numeric(18, 2), nullable=True)  # 엔트리당 코인 사용 한도

    @property
    def available_entries(self) -> int:
        return int(self.seq_shelves_quantity or 0) - int(self.seq_buy_quantity or 0)
