from datetime import datetime
from decimal import Decimal
from enum import Enum, IntEnum
from typing import List, Optional

from pydantic import BaseModel, Field

from luckyapi.models.group import GroupStatus
from luckyapi.models.order import OrderStatus, PayStatus, RefundStatus
from luckyapi.schemas.pagination import PaginatedResponse


class PaymentMethod(IntEnum):
    CASH = 1
    COIN = 2


class OrderStatusFilter(str, Enum):
    ALL = "all"
    PAID = "paid"
    UNPAID = "unpaid"
    REFUNDED = "refunded"
    CANCELLED = "cancelled"


class CheckoutRequest(BaseModel):
    """체크아웃 요청"""

    treasure_id: str = Field(..., min_length=1, description="보물 ID")
    entries: int = Field(..., description="구매 엔트리 수 (1 이상)")
    payment_method: int = Field(..., description="결제 수단 (1: 현금, 2: 코인)")
    group_id: Optional[str] = Field(None, description="참여할 그룹 ID (없으면 자동 참여/개설)")
    coupon_id: Optional[str] = Field(None, description="쿠폰 ID (현재 할인 미적용, 기록만)")
    address_id: Optional[str] = Field(None, description="배송지 ID")


class CheckoutResponse(BaseModel):
    """체크아웃 결과 요약"""

    order_id: str
    order_no: str
    treasure_id: str
    group_id: Optional[str] = None
    is_group_owner: bool = False
    already_in_group: bool = False
    lottery_tickets: List[str] = Field(default_factory=list)
    activity_coin: int = 0


class PricingBreakdown(BaseModel):
    """체크아웃 가격 계산 결과"""

    original_amount: Decimal
    coupon_amount: Decimal
    coin_used: Decimal
    coin_amount: Decimal
    discount_amount: Decimal
    final_amount: Decimal


class OrderTreasureSummary(BaseModel):
    treasure_name: str
    treasure_cover_img: Optional[str] = None
    product_name: Optional[str] = None
    seq_buy_quantity: int
    seq_shelves_quantity: int

    class Config:
        from_attributes = True


class OrderGroupSummary(BaseModel):
    group_id: str
    current_members: int
    max_members: int
    group_status: GroupStatus

    class Config:
        from_attributes = True


class OrderView(BaseModel):
    """주문 목록/상세 공통 뷰"""

    order_id: str
    order_no: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    paid_at: Optional[datetime] = None

    buy_quantity: int
    treasure_id: str

    unit_price: Decimal
    original_amount: Decimal
    discount_amount: Decimal
    coupon_amount: Decimal
    coin_amount: Decimal
    coin_used: Decimal
    final_amount: Decimal

    order_status: OrderStatus
    pay_status: PayStatus
    refund_status: RefundStatus

    treasure: Optional[OrderTreasureSummary] = None
    group: Optional[OrderGroupSummary] = None  # ACTIVE 그룹만 노출


class OrderTransactionEntry(BaseModel):
    transaction_no: str
    amount: Decimal
    balance_type: str
    status: str
    created_at: Optional[datetime] = None


class OrderDetailResponse(OrderView):
    transactions: List[OrderTransactionEntry] = Field(default_factory=list)


class OrderListResponse(PaginatedResponse[OrderView]):
    pass
