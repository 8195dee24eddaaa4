import os

# luckyapi.database.connection 이 import 시점에 엔진을 만들므로 먼저 설정
os.environ.setdefault("DATABASE_URL", "sqlite://")

from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from luckyapi.database.session import get_db
from luckyapi.main import create_app
from luckyapi.models.base import Base
from luckyapi.models import group, order, system_config, treasure, user, wallet  # noqa: F401
from luckyapi.models.treasure import Treasure, TreasureState
from luckyapi.models.user import User
from luckyapi.services.wallet_service import WalletService


@pytest.fixture
def engine():
    """테스트마다 새 인메모리 SQLite (SAVEPOINT 지원 설정)"""
    test_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(test_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    Base.metadata.create_all(bind=test_engine)
    yield test_engine
    test_engine.dispose()


@pytest.fixture
def db_session(engine):
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
    )
    session = TestingSessionLocal()
    yield session
    session.close()


@pytest.fixture
def make_treasure(db_session):
    """보물 생성 헬퍼"""

    def _make(
        shelves: int = 10,
        bought: int = 0,
        unit_amount: str = "1.00",
        max_per_buy_quantity=None,
        max_unit_coins=None,
        state: TreasureState = TreasureState.ACTIVE,
        name: str = "Test Treasure",
    ) -> Treasure:
        treasure = Treasure(
            treasure_name=name,
            product_name=f"{name} product",
            state=state,
            unit_amount=Decimal(unit_amount),
            seq_shelves_quantity=shelves,
            seq_buy_quantity=bought,
            max_per_buy_quantity=max_per_buy_quantity,
            max_unit_coins=Decimal(max_unit_coins) if max_unit_coins is not None else None,
        )
        db_session.add(treasure)
        db_session.commit()
        return treasure

    return _make


@pytest.fixture
def make_user(db_session):
    def _make(user_id: str, nickname: str = None) -> User:
        profile = User(id=user_id, nickname=nickname or user_id, avatar=f"https://cdn.example.com/{user_id}.png")
        db_session.add(profile)
        db_session.commit()
        return profile

    return _make


@pytest.fixture
def fund_wallet(db_session):
    """지갑 충전 헬퍼 (현금/코인)"""

    def _fund(user_id: str, cash: str = "0", coins: str = "0") -> None:
        service = WalletService(db_session)
        if Decimal(cash) > 0:
            service.credit_cash(user_id, Decimal(cash))
        if Decimal(coins) > 0:
            service.credit_coin(user_id, Decimal(coins))

    return _fund


@pytest.fixture
def client(db_session):
    """테스트 세션을 주입한 API 클라이언트"""
    app = create_app()

    def _override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = _override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
