"""
지갑/원장 데이터 모델

사용자 지갑(현금/코인 잔액)과 모든 잔액 변동을 기록하는 원장(Ledger) 테이블을 정의합니다.
잔액의 증감은 반드시 원장 항목 1건과 같은 트랜잭션에서 함께 기록됩니다.
"""

import enum
from decimal import Decimal
from typing import Optional

from sqlalchemy import CheckConstraint, Enum, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from luckyapi.models.base import BaseModel, new_uuid

MONEY = Numeric(18, 2)


class TransactionType(enum.Enum):
    RECHARGE = "RECHARGE"  # 충전
    CONSUMPTION = "CONSUMPTION"  # 소비
    REFUND = "REFUND"  # 환불
    REWARD = "REWARD"  # 보상
    WITHDRAWAL = "WITHDRAWAL"  # 출금
    COIN_EXCHANGE = "COIN_EXCHANGE"  # 코인 차감/교환
    INVITE_REWARD = "INVITE_REWARD"  # 초대 보상


class BalanceType(enum.Enum):
    CASH = "CASH"
    COIN = "COIN"


class TransactionStatus(enum.Enum):
    SUCCESS = "SUCCESS"
    FAILED = "FAILED"
    PROCESSING = "PROCESSING"


class UserWallet(BaseModel):
    """
    사용자 지갑 - 사용자당 1개, 최초 접근 시 upsert로 생성

    잔액 컬럼은 가드 UPDATE로만 변경되며, 음수 잔액은 체크 제약으로도 차단됩니다.
    """

    __tablename__ = "user_wallets"
    __table_args__ = (
        CheckConstraint("cash_balance >= 0", name="ck_wallet_cash_non_negative"),
        CheckConstraint("coin_balance >= 0", name="ck_wallet_coin_non_negative"),
    )

    wallet_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    cash_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    coin_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    frozen_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    total_recharge: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))
    total_withdraw: Mapped[Decimal] = mapped_column(MONEY, nullable=False, default=Decimal("0"))

    def balance_of(self, balance_type: BalanceType) -> Decimal:
        if balance_type == BalanceType.COIN:
            return self.coin_balance
        return self.cash_balance


class WalletTransaction(BaseModel):
    """
    지갑 원장 - 불변(append-only)

    - amount는 부호 있는 값 (음수 = 차감)
    - related_id는 원인 엔티티(주문 등) 생성 직후 같은 트랜잭션에서만 채워질 수 있음
    """

    __tablename__ = "wallet_transactions"
    __table_args__ = (
        Index("idx_wallet_tx_user_created", "user_id", "created_at"),
        Index("idx_wallet_tx_related", "related_id"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_uuid)
    transaction_no: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False)
    wallet_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("user_wallets.wallet_id"), nullable=False
    )
    transaction_type: Mapped[TransactionType] = mapped_column(
        Enum(TransactionType), nullable=False
    )
    balance_type: Mapped[BalanceType] = mapped_column(Enum(BalanceType), nullable=False)
    amount: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    before_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    after_balance: Mapped[Decimal] = mapped_column(MONEY, nullable=False)
    related_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    related_type: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    status: Mapped[TransactionStatus] = mapped_column(
        Enum(TransactionStatus), nullable=False, default=TransactionStatus.SUCCESS
    )
