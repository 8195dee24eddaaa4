from decimal import Decimal
from unittest.mock import Mock

import pytest

from luckyapi.core.exceptions import ErrorKind, InsufficientBalanceError, InvalidAmountError
from luckyapi.models.wallet import (
    BalanceType,
    TransactionType,
    UserWallet,
    WalletTransaction,
)
from luckyapi.repositories.wallet_repository import WalletRepository
from luckyapi.services.wallet_service import WalletService

USER = "user-wallet-1"


@pytest.fixture
def wallet_service(db_session):
    return WalletService(db_session)


def _wallet(db_session, user_id=USER) -> UserWallet:
    return (
        db_session.query(UserWallet)
        .filter(UserWallet.user_id == user_id)
        .populate_existing()
        .one()
    )


def _ledger(db_session, user_id=USER):
    return (
        db_session.query(WalletTransaction)
        .filter(WalletTransaction.user_id == user_id)
        .order_by(WalletTransaction.created_at, WalletTransaction.transaction_no)
        .all()
    )


class TestWalletRepository:
    """WalletRepository 가드 업데이트 테스트"""

    def test_ensure_wallet_is_idempotent(self, db_session):
        """ensure_wallet 반복 호출 시 지갑은 하나"""
        repo = WalletRepository(db_session)

        first = repo.ensure_wallet(USER)
        second = repo.ensure_wallet(USER)
        db_session.commit()

        assert first.wallet_id == second.wallet_id
        assert db_session.query(UserWallet).filter(UserWallet.user_id == USER).count() == 1
        assert first.cash_balance == Decimal("0")

    def test_ensure_wallet_rejects_unsupported_dialect(self):
        """upsert 를 지원하지 않는 DB 에서는 조용히 넘어가지 않고 실패"""
        db = Mock()
        db.get_bind.return_value.dialect.name = "mysql"
        repo = WalletRepository(db)

        with pytest.raises(NotImplementedError):
            repo.ensure_wallet(USER)

        db.execute.assert_not_called()

    def test_debit_guard_returns_failure_without_writes(self, db_session):
        """잔액 부족 차감은 success=False, 원장 미기록"""
        repo = WalletRepository(db_session)

        result = repo.debit(USER, Decimal("10"), BalanceType.CASH, TransactionType.CONSUMPTION)
        db_session.commit()

        assert result.success is False
        assert result.transaction_no is None
        assert _wallet(db_session).cash_balance == Decimal("0")
        assert _ledger(db_session) == []

    def test_backfill_related_id(self, db_session):
        repo = WalletRepository(db_session)
        credit = repo.credit(USER, Decimal("5"), BalanceType.CASH, TransactionType.RECHARGE)

        updated = repo.backfill_related_id([credit.transaction_id], "order-1")
        db_session.commit()

        assert updated == 1
        assert _ledger(db_session)[0].related_id == "order-1"
        assert repo.backfill_related_id([], "order-1") == 0


class TestWalletService:
    """WalletService 테스트"""

    def test_get_balance_creates_wallet(self, wallet_service):
        """지갑이 없으면 0 잔액으로 생성"""
        # Act
        balance = wallet_service.get_balance(USER)

        # Assert
        assert balance.user_id == USER
        assert balance.cash_balance == Decimal("0")
        assert balance.coin_balance == Decimal("0")

    def test_credit_cash_records_ledger(self, db_session, wallet_service):
        """현금 충전 시 잔액/누적충전/원장 기록"""
        # Act
        result = wallet_service.credit_cash(USER, Decimal("100"), description="top up")

        # Assert
        assert result.balance == Decimal("100")
        assert result.transaction_no.startswith("TXN")
        wallet = _wallet(db_session)
        assert wallet.cash_balance == Decimal("100")
        assert wallet.total_recharge == Decimal("100")

        entries = _ledger(db_session)
        assert len(entries) == 1
        assert entries[0].amount == Decimal("100")
        assert entries[0].before_balance == Decimal("0")
        assert entries[0].after_balance == Decimal("100")
        assert entries[0].transaction_type == TransactionType.RECHARGE
        assert entries[0].related_type == "recharge"

    def test_debit_scenario(self, db_session, wallet_service):
        """100 충전 → 50 차감 성공 → 80 차감 실패, 잔액 50 유지"""
        # Arrange
        wallet_service.credit_cash(USER, Decimal("100"))

        # Act
        result = wallet_service.debit_cash(USER, Decimal("50"))

        # Assert
        assert result.balance == Decimal("50")
        debit_entry = next(e for e in _ledger(db_session) if e.transaction_no == result.transaction_no)
        assert debit_entry.amount == Decimal("-50")
        assert debit_entry.before_balance == Decimal("100")
        assert debit_entry.after_balance == Decimal("50")
        assert debit_entry.transaction_type == TransactionType.CONSUMPTION

        with pytest.raises(InsufficientBalanceError) as exc_info:
            wallet_service.debit_cash(USER, Decimal("80"))

        assert exc_info.value.kind == ErrorKind.INSUFFICIENT_BALANCE
        assert _wallet(db_session).cash_balance == Decimal("50")
        assert len(_ledger(db_session)) == 2

    @pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-1"), "abc"])
    def test_non_positive_amount_rejected(self, db_session, wallet_service, amount):
        """0 이하 또는 숫자가 아닌 금액은 InvalidAmount"""
        with pytest.raises(InvalidAmountError) as exc_info:
            wallet_service.credit_cash(USER, amount)

        assert exc_info.value.kind == ErrorKind.INVALID_AMOUNT
        assert _ledger(db_session) == []

    def test_coin_credit_and_debit(self, db_session, wallet_service):
        """코인 충전/차감은 코인 잔액만 변경"""
        wallet_service.credit_coin(USER, Decimal("30"))
        result = wallet_service.debit_coin(USER, Decimal("12"))

        assert result.balance == Decimal("18")
        assert result.balance_type == BalanceType.COIN
        wallet = _wallet(db_session)
        assert wallet.coin_balance == Decimal("18")
        assert wallet.cash_balance == Decimal("0")
        assert wallet.total_recharge == Decimal("0")

        types = {entry.transaction_type for entry in _ledger(db_session)}
        assert types == {TransactionType.REWARD, TransactionType.COIN_EXCHANGE}

    def test_coin_debit_insufficient(self, wallet_service):
        wallet_service.credit_coin(USER, Decimal("5"))

        with pytest.raises(InsufficientBalanceError):
            wallet_service.debit_coin(USER, Decimal("6"))

    def test_get_transactions_paginates_and_filters(self, wallet_service):
        """원장 이력 페이지네이션 및 잔액 종류 필터"""
        wallet_service.credit_cash(USER, Decimal("10"))
        wallet_service.credit_cash(USER, Decimal("20"))
        wallet_service.credit_coin(USER, Decimal("7"))

        page = wallet_service.get_transactions(USER, page=1, page_size=2)
        assert page.total == 3
        assert len(page.items) == 2
        assert page.has_next is True

        coins = wallet_service.get_transactions(USER, balance_type=BalanceType.COIN)
        assert coins.total == 1
        assert coins.items[0].amount == Decimal("7")
        assert coins.has_next is False

    def test_get_transactions_clamps_page_size(self, wallet_service):
        page = wallet_service.get_transactions(USER, page=0, page_size=1000)

        assert page.page == 1
        assert page.page_size == 100
