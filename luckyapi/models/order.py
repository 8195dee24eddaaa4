import enum
from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from luckyapi.models.base import BaseModel, new_uuid
from luckyapi.models.group import TreasureGroup
from luckyapi.models.treasure import Treasure

MONEY = Numeric(18, 2)


class OrderStatus(enum.Enum):
    PENDING_PAYMENT = "PENDING_PAYMENT"
    PROCESSING_PAYMENT = "PROCESSING_PAYMENT"
    PAID = "PAID"
    CANCELED = "CANCELED"
    REFUNDED = "REFUNDED"


class PayStatus(enum.Enum):
    UNPAID = "UNPAID"
    PAID = "PAID"
    FAILED = "FAILED"


class RefundStatus(enum.Enum):
    NO_REFUND = "NO_REFUND"
    REFUNDING = "REFUNDING"
    REFUNDED = "REFUNDED"


class Order(BaseModel):
    """주문 - 체크아웃 1회당 1건, 금액 필드는 생성 후 변경 불가"""

    __tablename__ = "orders"
    __table_args__ = (
        Index("idx_orders_user_treasure", "user_id", "treasure_id"),
        Index("idx_orders_user_created", "user_id", "created_at"),
    )

    order_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    order_no: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    treasure_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("treasures.treasure_id"), nullable=False
    )

    # 가격 내역
    original_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    discount_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    coupon_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    coin_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    coin_used: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    final_amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    unit_price: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    buy_quantity: Mapped[int] = mapped_column(Integer, nullable=False)

    order_status: Mapped[OrderStatus] = mapped_column(
        Enum(OrderStatus), nullable=False, default=OrderStatus.PENDING_PAYMENT
    )
    pay_status: Mapped[PayStatus] = mapped_column(
        Enum(PayStatus), nullable=False, default=PayStatus.UNPAID
    )
    refund_status: Mapped[RefundStatus] = mapped_column(
        Enum(RefundStatus), nullable=False, default=RefundStatus.NO_REFUND
    )
    paid_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    coupon_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    address_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    group_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("treasure_groups.group_id"), nullable=True
    )
    is_group_owner: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    treasure = relationship(Treasure, lazy="joined")
    group = relationship(TreasureGroup, lazy="joined")
