from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import desc, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from luckyapi.models.base import new_uuid
from luckyapi.models.wallet import (
    BalanceType,
    TransactionStatus,
    TransactionType,
    UserWallet,
    WalletTransaction,
)
from luckyapi.repositories.base import BaseRepository
from luckyapi.schemas.wallet import (
    LedgerWriteResult,
    WalletBalanceResponse,
    WalletTransactionEntry,
)
from luckyapi.utils.identifiers import generate_transaction_no


class WalletRepository(BaseRepository[UserWallet, WalletBalanceResponse]):
    """지갑/원장 리포지토리

    잔액은 단일 가드 UPDATE ... RETURNING 으로만 변경하고, 같은 세션에서
    원장 항목을 추가한다. 커밋은 호출자가 담당한다.
    """

    def __init__(self, db: Session):
        super().__init__(UserWallet, WalletBalanceResponse, db)

    @staticmethod
    def _balance_column(balance_type: BalanceType):
        if balance_type == BalanceType.COIN:
            return UserWallet.coin_balance
        return UserWallet.cash_balance

    def ensure_wallet(self, user_id: str) -> UserWallet:
        """지갑이 없으면 생성 (user_id 기준 멱등 upsert) 후 조회"""
        values = {"wallet_id": new_uuid(), "user_id": user_id}
        dialect = self.db.get_bind().dialect.name

        if dialect == "postgresql":
            stmt = pg_insert(UserWallet)
        elif dialect == "sqlite":
            stmt = sqlite_insert(UserWallet)
        else:
            raise NotImplementedError(f"Unsupported database dialect for wallet upsert: {dialect}")
        self.db.execute(
            stmt.values(**values).on_conflict_do_nothing(index_elements=["user_id"])
        )

        return (
            self.db.query(UserWallet)
            .filter(UserWallet.user_id == user_id)
            .populate_existing()
            .one()
        )

    def get_balance(self, user_id: str) -> WalletBalanceResponse:
        return self._to_schema(self.ensure_wallet(user_id))

    def _append_ledger(
        self,
        wallet: UserWallet,
        transaction_type: TransactionType,
        balance_type: BalanceType,
        amount: Decimal,
        before_balance: Decimal,
        after_balance: Decimal,
        related_id: Optional[str],
        related_type: Optional[str],
        description: Optional[str],
    ) -> WalletTransaction:
        entry = WalletTransaction(
            transaction_no=generate_transaction_no(),
            user_id=wallet.user_id,
            wallet_id=wallet.wallet_id,
            transaction_type=transaction_type,
            balance_type=balance_type,
            amount=amount,
            before_balance=before_balance,
            after_balance=after_balance,
            related_id=related_id,
            related_type=related_type,
            description=description,
            status=TransactionStatus.SUCCESS,
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def credit(
        self,
        user_id: str,
        amount: Decimal,
        balance_type: BalanceType,
        transaction_type: TransactionType,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> LedgerWriteResult:
        """잔액 증가 + 원장 기록 (amount > 0)"""
        wallet = self.ensure_wallet(user_id)
        column = self._balance_column(balance_type)

        values = {column.key: column + amount}
        if balance_type == BalanceType.CASH and transaction_type == TransactionType.RECHARGE:
            values["total_recharge"] = UserWallet.total_recharge + amount

        stmt = (
            update(UserWallet)
            .where(UserWallet.user_id == user_id)
            .values(values)
            .returning(column)
            .execution_options(synchronize_session=False)
        )
        after = self.db.execute(stmt).scalar_one_or_none()
        if after is None:
            return LedgerWriteResult(success=False, balance=wallet.balance_of(balance_type))

        entry = self._append_ledger(
            wallet,
            transaction_type,
            balance_type,
            amount=amount,
            before_balance=after - amount,
            after_balance=after,
            related_id=related_id,
            related_type=related_type,
            description=description,
        )
        return LedgerWriteResult(
            success=True,
            balance=after,
            transaction_no=entry.transaction_no,
            transaction_id=entry.id,
        )

    def debit(
        self,
        user_id: str,
        amount: Decimal,
        balance_type: BalanceType,
        transaction_type: TransactionType,
        related_id: Optional[str] = None,
        related_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> LedgerWriteResult:
        """잔액 차감 + 원장 기록 (amount > 0)

        balance >= amount 조건의 단일 UPDATE. 영향 행이 없으면 잔액 부족이며
        아무 것도 기록하지 않고 success=False 를 반환한다.
        """
        wallet = self.ensure_wallet(user_id)
        column = self._balance_column(balance_type)

        stmt = (
            update(UserWallet)
            .where(UserWallet.user_id == user_id, column >= amount)
            .values({column.key: column - amount})
            .returning(column)
            .execution_options(synchronize_session=False)
        )
        after = self.db.execute(stmt).scalar_one_or_none()
        if after is None:
            return LedgerWriteResult(success=False, balance=wallet.balance_of(balance_type))

        entry = self._append_ledger(
            wallet,
            transaction_type,
            balance_type,
            amount=-amount,
            before_balance=after + amount,
            after_balance=after,
            related_id=related_id,
            related_type=related_type,
            description=description,
        )
        return LedgerWriteResult(
            success=True,
            balance=after,
            transaction_no=entry.transaction_no,
            transaction_id=entry.id,
        )

    def backfill_related_id(self, transaction_ids: Sequence[str], related_id: str) -> int:
        """같은 트랜잭션에서 생성된 원장 항목에 원인 엔티티 ID를 채움"""
        if not transaction_ids:
            return 0
        updated = (
            self.db.query(WalletTransaction)
            .filter(WalletTransaction.id.in_(list(transaction_ids)))
            .update({"related_id": related_id}, synchronize_session=False)
        )
        self.db.flush()
        return updated

    def get_transactions(
        self,
        user_id: str,
        offset: int,
        limit: int,
        balance_type: Optional[BalanceType] = None,
    ) -> Tuple[List[WalletTransactionEntry], int]:
        """원장 이력 조회 (최신순)"""
        query = self.db.query(WalletTransaction).filter(
            WalletTransaction.user_id == user_id
        )
        if balance_type is not None:
            query = query.filter(WalletTransaction.balance_type == balance_type)

        total = query.count()
        rows = (
            query.order_by(desc(WalletTransaction.created_at), desc(WalletTransaction.transaction_no))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return [WalletTransactionEntry.model_validate(row) for row in rows], total

    def get_transactions_for_related(
        self, user_id: str, related_id: str, limit: int
    ) -> List[WalletTransaction]:
        return (
            self.db.query(WalletTransaction)
            .filter(
                WalletTransaction.user_id == user_id,
                WalletTransaction.related_id == related_id,
            )
            .order_by(desc(WalletTransaction.created_at), desc(WalletTransaction.transaction_no))
            .limit(limit)
            .all()
        )
