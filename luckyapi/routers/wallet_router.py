"""
지갑 API 라우터

- GET /wallet/balance: 내 지갑 잔액 (없으면 생성)
- GET /wallet/transactions: 내 원장 이력 (최신순)
- POST /wallet/credit: 현금 충전
- POST /wallet/debit: 현금 차감

사용자 식별: 게이트웨이가 전달하는 X-User-Id 헤더
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from luckyapi.core.auth_middleware import get_current_user_id
from luckyapi.deps import get_wallet_service
from luckyapi.models.wallet import BalanceType
from luckyapi.schemas.pagination import PaginatedResponse, PaginationLimits
from luckyapi.schemas.wallet import (
    WalletAmountRequest,
    WalletBalanceResponse,
    WalletOperationResponse,
    WalletTransactionEntry,
)
from luckyapi.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/wallet", tags=["wallet"])


@router.get("/balance", response_model=WalletBalanceResponse)
def get_my_balance(
    user_id: str = Depends(get_current_user_id),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletBalanceResponse:
    """
    내 지갑 잔액 조회

    HTTP Status:
        200: 성공
        401: X-User-Id 누락
    """
    return wallet_service.get_balance(user_id)


@router.get("/transactions", response_model=PaginatedResponse[WalletTransactionEntry])
def get_my_transactions(
    page: int = Query(1, ge=1, description="페이지 번호"),
    page_size: int = Query(
        PaginationLimits.WALLET_TRANSACTIONS["default"],
        ge=PaginationLimits.WALLET_TRANSACTIONS["min"],
        le=PaginationLimits.WALLET_TRANSACTIONS["max"],
        description="페이지당 항목 수",
    ),
    balance_type: Optional[BalanceType] = Query(None, description="CASH 또는 COIN"),
    user_id: str = Depends(get_current_user_id),
    wallet_service: WalletService = Depends(get_wallet_service),
):
    """내 원장 이력 조회 (최신순)"""
    return wallet_service.get_transactions(
        user_id, page=page, page_size=page_size, balance_type=balance_type
    )


@router.post("/credit", response_model=WalletOperationResponse)
def credit_cash(
    request: WalletAmountRequest,
    user_id: str = Depends(get_current_user_id),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletOperationResponse:
    """
    현금 충전

    HTTP Status:
        200: 충전 완료
        400: 금액이 0 이하 (INVALID_AMOUNT)
    """
    return wallet_service.credit_cash(
        user_id,
        request.amount,
        related_id=request.related_id,
        related_type=request.related_type,
        description=request.desc,
    )


@router.post("/debit", response_model=WalletOperationResponse)
def debit_cash(
    request: WalletAmountRequest,
    user_id: str = Depends(get_current_user_id),
    wallet_service: WalletService = Depends(get_wallet_service),
) -> WalletOperationResponse:
    """
    현금 차감

    HTTP Status:
        200: 차감 완료
        400: 잔액 부족 (INSUFFICIENT_BALANCE) 또는 금액 오류 (INVALID_AMOUNT)
    """
    return wallet_service.debit_cash(
        user_id,
        request.amount,
        related_id=request.related_id,
        related_type=request.related_type,
        description=request.desc,
    )
