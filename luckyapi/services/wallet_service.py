import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from luckyapi.config import Settings, settings as default_settings
from luckyapi.core.exceptions import (
    InsufficientBalanceError,
    InternalServerError,
    InvalidAmountError,
)
from luckyapi.database.session import unit_of_work
from luckyapi.models.wallet import BalanceType, TransactionType
from luckyapi.repositories.wallet_repository import WalletRepository
from luckyapi.schemas.pagination import PaginatedResponse, clamp_page
from luckyapi.schemas.wallet import (
    LedgerWriteResult,
    WalletBalanceResponse,
    WalletOperationResponse,
    WalletTransactionEntry,
)

logger = logging.getLogger(__name__)


def _positive_amount(amount) -> Decimal:
    try:
        value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidAmountError(details={"amount": str(amount)})
    if not value.is_finite() or value <= 0:
        raise InvalidAmountError(details={"amount": str(amount)})
    return value


class WalletService:
    """지갑 원장 서비스

    credit/debit 는 호출자의 트랜잭션 안에서 동작하며 커밋하지 않는다
    (체크아웃에서 같은 세션으로 사용). credit_cash 등 공개 연산은 각각
    하나의 unit of work 로 커밋한다.
    """

    def __init__(self, db: Session, app_settings: Optional[Settings] = None):
        self.db = db
        self.settings = app_settings or default_settings
        self.wallet_repo = WalletRepository(db)

    # ----- 트랜잭션 내부 프리미티브 -----

    def credit(
        self,
        user_id: str,
        amount,
        balance_type: BalanceType,
        transaction_type: TransactionType,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> LedgerWriteResult:
        value = _positive_amount(amount)
        result = self.wallet_repo.credit(
            user_id=user_id,
            amount=value,
            balance_type=balance_type,
            transaction_type=transaction_type,
            related_id=related_id,
            related_type=related_type,
            description=description,
        )
        if not result.success:
            # 지갑 upsert 직후이므로 도달하지 않아야 함
            raise InternalServerError(
                f"Failed to credit {balance_type.value.lower()} balance",
                details={"user_id": user_id},
            )
        return result

    def debit(
        self,
        user_id: str,
        amount,
        balance_type: BalanceType,
        transaction_type: TransactionType,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> LedgerWriteResult:
        value = _positive_amount(amount)
        result = self.wallet_repo.debit(
            user_id=user_id,
            amount=value,
            balance_type=balance_type,
            transaction_type=transaction_type,
            related_id=related_id,
            related_type=related_type,
            description=description,
        )
        if not result.success:
            logger.warning(
                f"Insufficient {balance_type.value} balance for user {user_id}: "
                f"requested={value}, current={result.balance}"
            )
            raise InsufficientBalanceError(
                f"Insufficient {balance_type.value.lower()} balance",
                details={
                    "balance_type": balance_type.value,
                    "requested": str(value),
                    "current": str(result.balance),
                },
            )
        return result

    # ----- 공개 연산 (각각 하나의 트랜잭션) -----

    def get_balance(self, user_id: str) -> WalletBalanceResponse:
        """지갑 잔액 조회 (없으면 생성)"""
        with unit_of_work(self.db):
            return self.wallet_repo.get_balance(user_id)

    def _committed(self, operation, **kwargs) -> WalletOperationResponse:
        with unit_of_work(self.db):
            result = operation(**kwargs)
        logger.info(
            f"{kwargs['transaction_type'].value} {kwargs['balance_type'].value} "
            f"{kwargs['amount']} for user {kwargs['user_id']}: "
            f"balance={result.balance}, txn={result.transaction_no}"
        )
        return WalletOperationResponse(
            success=True,
            balance_type=kwargs["balance_type"],
            balance=result.balance,
            transaction_no=result.transaction_no,
            transaction_id=result.transaction_id,
        )

    def credit_cash(
        self,
        user_id: str,
        amount,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletOperationResponse:
        """현금 충전

        Args:
            user_id: 사용자 ID
            amount: 충전 금액 (0 초과)
            related_id: 연관 엔티티 ID
            related_type: 연관 엔티티 타입 (기본값: recharge)
            description: 설명

        Returns:
            WalletOperationResponse: 충전 후 잔액과 원장 번호
        """
        return self._committed(
            self.credit,
            user_id=user_id,
            amount=amount,
            balance_type=BalanceType.CASH,
            transaction_type=TransactionType.RECHARGE,
            related_id=related_id,
            related_type=related_type or "recharge",
            description=description,
        )

    def debit_cash(
        self,
        user_id: str,
        amount,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletOperationResponse:
        """현금 차감 - 잔액 부족 시 InsufficientBalanceError, 잔액 변화 없음"""
        return self._committed(
            self.debit,
            user_id=user_id,
            amount=amount,
            balance_type=BalanceType.CASH,
            transaction_type=TransactionType.CONSUMPTION,
            related_id=related_id,
            related_type=related_type or "order",
            description=description or "spend",
        )

    def credit_coin(
        self,
        user_id: str,
        coins,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletOperationResponse:
        return self._committed(
            self.credit,
            user_id=user_id,
            amount=coins,
            balance_type=BalanceType.COIN,
            transaction_type=TransactionType.REWARD,
            related_id=related_id,
            related_type=related_type,
            description=description or "coin credit",
        )

    def debit_coin(
        self,
        user_id: str,
        coins,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> WalletOperationResponse:
        return self._committed(
            self.debit,
            user_id=user_id,
            amount=coins,
            balance_type=BalanceType.COIN,
            transaction_type=TransactionType.COIN_EXCHANGE,
            related_id=related_id,
            related_type=related_type or "order",
            description=description or "coin debit",
        )

    def get_transactions(
        self,
        user_id: str,
        page: int = 1,
        page_size: Optional[int] = None,
        balance_type: Optional[BalanceType] = None,
    ) -> PaginatedResponse[WalletTransactionEntry]:
        """원장 이력 조회 (최신순)"""
        params = clamp_page(
            page,
            page_size or self.settings.DEFAULT_PAGE_SIZE,
            self.settings.MAX_PAGE_SIZE,
        )
        items, total = self.wallet_repo.get_transactions(
            user_id=user_id,
            offset=params.offset,
            limit=params.page_size,
            balance_type=balance_type,
        )
        return PaginatedResponse[WalletTransactionEntry](
            items=items,
            total=total,
            page=params.page,
            page_size=params.page_size,
            has_next=params.offset + len(items) < total,
        )
