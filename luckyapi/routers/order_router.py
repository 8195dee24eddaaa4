"""
주문 API 라우터

- POST /orders/checkout: 체크아웃 (지갑 차감 + 재고 예약 + 주문 생성 + 그룹 참여)
- GET /orders: 내 주문 목록
- GET /orders/{order_id}: 주문 상세
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from luckyapi.core.auth_middleware import get_current_user_id
from luckyapi.deps import get_order_service
from luckyapi.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    OrderDetailResponse,
    OrderListResponse,
    OrderStatusFilter,
)
from luckyapi.schemas.pagination import PaginationLimits
from luckyapi.services.order_service import OrderService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["orders"])


@router.post("/checkout", response_model=CheckoutResponse)
def checkout(
    request: CheckoutRequest,
    user_id: str = Depends(get_current_user_id),
    order_service: OrderService = Depends(get_order_service),
) -> CheckoutResponse:
    """
    체크아웃 - 전체가 하나의 트랜잭션, 실패 시 어떤 부분 상태도 남지 않음

    HTTP Status:
        200: 주문 완료
        400: 판매 불가/재고 부족/한도 초과/잔액 부족
        404: 그룹 없음
        409: 그룹 정원 초과/동시 참여 충돌
        422: 요청 형식 오류
    """
    return order_service.checkout(user_id, request)


@router.get("", response_model=OrderListResponse)
def list_my_orders(
    status: OrderStatusFilter = Query(OrderStatusFilter.ALL, description="주문 상태 필터"),
    page: int = Query(1, ge=1, description="페이지 번호"),
    page_size: int = Query(
        PaginationLimits.ORDERS["default"],
        ge=PaginationLimits.ORDERS["min"],
        le=PaginationLimits.ORDERS["max"],
        description="페이지당 항목 수",
    ),
    treasure_id: Optional[str] = Query(None, description="보물 ID 필터"),
    user_id: str = Depends(get_current_user_id),
    order_service: OrderService = Depends(get_order_service),
) -> OrderListResponse:
    """내 주문 목록 (최신순)"""
    return order_service.list_orders(
        user_id,
        status=status,
        page=page,
        page_size=page_size,
        treasure_id=treasure_id,
    )


@router.get("/{order_id}", response_model=OrderDetailResponse)
def get_order_detail(
    order_id: str = Path(..., description="주문 ID"),
    user_id: str = Depends(get_current_user_id),
    order_service: OrderService = Depends(get_order_service),
) -> OrderDetailResponse:
    """주문 상세 + 관련 원장 항목"""
    return order_service.get_order_detail(user_id, order_id)
