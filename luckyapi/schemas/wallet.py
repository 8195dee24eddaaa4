from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from luckyapi.models.wallet import BalanceType, TransactionStatus, TransactionType


class WalletBalanceResponse(BaseModel):
    """지갑 잔액 응답"""

    wallet_id: str = Field(..., description="지갑 ID")
    user_id: str = Field(..., description="사용자 ID")
    cash_balance: Decimal = Field(..., description="현금 잔액")
    coin_balance: Decimal = Field(..., description="코인 잔액")
    frozen_balance: Decimal = Field(..., description="동결 잔액")
    total_recharge: Decimal = Field(..., description="누적 충전액")
    total_withdraw: Decimal = Field(..., description="누적 출금액")

    class Config:
        from_attributes = True


class WalletAmountRequest(BaseModel):
    """현금 충전/차감 요청 - 금액 검증은 서비스에서 InvalidAmount로 처리"""

    amount: Decimal = Field(..., description="금액 (0보다 커야 함)")
    related_id: Optional[str] = Field(None, max_length=36, description="연관 엔티티 ID")
    related_type: Optional[str] = Field(None, max_length=32, description="연관 엔티티 타입")
    desc: Optional[str] = Field(None, max_length=255, description="설명")


class LedgerWriteResult(BaseModel):
    """원장 기록 결과 - 가드 UPDATE가 실패하면 success=False, 아무 것도 기록되지 않음"""

    success: bool
    balance: Decimal
    transaction_no: Optional[str] = None
    transaction_id: Optional[str] = None


class WalletOperationResponse(BaseModel):
    """현금 충전/차감 응답"""

    success: bool = Field(True, description="성공 여부")
    balance_type: BalanceType = Field(..., description="잔액 종류")
    balance: Decimal = Field(..., description="변경 후 잔액")
    transaction_no: str = Field(..., description="원장 트랜잭션 번호")
    transaction_id: str = Field(..., description="원장 트랜잭션 ID")


class WalletTransactionEntry(BaseModel):
    """원장 항목"""

    id: str
    transaction_no: str
    transaction_type: TransactionType
    balance_type: BalanceType
    amount: Decimal = Field(..., description="부호 있는 금액 (음수 = 차감)")
    before_balance: Decimal
    after_balance: Decimal
    related_id: Optional[str] = None
    related_type: Optional[str] = None
    description: Optional[str] = None
    status: TransactionStatus
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
