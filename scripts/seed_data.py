"""
개발용 시드 데이터 스크립트
환율 설정, 데모 보물, 데모 사용자/지갑을 생성
"""

import sys
import os

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from decimal import Decimal

from luckyapi.config import settings
from luckyapi.database.connection import SessionLocal
from luckyapi.database.session import unit_of_work
from luckyapi.models.system_config import EXCHANGE_RATE_KEY, SystemConfig
from luckyapi.models.treasure import Treasure, TreasureState
from luckyapi.models.user import User
from luckyapi.services.wallet_service import WalletService

DEMO_TREASURES = [
    {
        "treasure_id": "00000000-0000-0000-0000-000000000001",
        "treasure_name": "iPhone 16 Pro",
        "product_name": "Apple iPhone 16 Pro 256GB",
        "unit_amount": Decimal("1.00"),
        "seq_shelves_quantity": 1000,
        "max_per_buy_quantity": 100,
        "max_unit_coins": Decimal("5"),
    },
    {
        "treasure_id": "00000000-0000-0000-0000-000000000002",
        "treasure_name": "Gold Bar 10g",
        "product_name": "24K Gold Bar 10g",
        "unit_amount": Decimal("5.00"),
        "seq_shelves_quantity": 200,
        "max_per_buy_quantity": None,
        "max_unit_coins": Decimal("10"),
    },
]

DEMO_USERS = [
    ("00000000-0000-0000-0000-00000000a001", "alice", Decimal("500.00"), Decimal("200")),
    ("00000000-0000-0000-0000-00000000a002", "bob", Decimal("100.00"), Decimal("0")),
]


def seed_exchange_rate():
    """환율 설정 시드"""
    db = SessionLocal()
    try:
        with unit_of_work(db):
            config = db.get(SystemConfig, EXCHANGE_RATE_KEY)
            if config is None:
                db.add(
                    SystemConfig(
                        key=EXCHANGE_RATE_KEY,
                        value=str(settings.DEFAULT_EXCHANGE_RATE),
                        description="coins per currency unit",
                    )
                )
        print(f"✅ 환율 설정 완료: {EXCHANGE_RATE_KEY}={settings.DEFAULT_EXCHANGE_RATE}")
    finally:
        db.close()


def seed_treasures():
    """데모 보물 시드"""
    db = SessionLocal()
    try:
        with unit_of_work(db):
            for data in DEMO_TREASURES:
                if db.get(Treasure, data["treasure_id"]) is not None:
                    continue
                db.add(Treasure(state=TreasureState.ACTIVE, seq_buy_quantity=0, **data))
        print(f"✅ 보물 시드 데이터 생성 완료: {len(DEMO_TREASURES)}개")
    finally:
        db.close()


def seed_wallets():
    """데모 사용자 + 지갑 충전"""
    db = SessionLocal()
    try:
        with unit_of_work(db):
            for user_id, nickname, _, _ in DEMO_USERS:
                if db.get(User, user_id) is None:
                    db.add(User(id=user_id, nickname=nickname))

        wallet_service = WalletService(db)
        for user_id, nickname, cash, coins in DEMO_USERS:
            if cash > 0:
                wallet_service.credit_cash(user_id, cash, description="seed recharge")
            if coins > 0:
                wallet_service.credit_coin(user_id, coins, description="seed coins")
            print(f"   {nickname}: cash={cash}, coins={coins}")
        print(f"✅ 지갑 시드 데이터 생성 완료: {len(DEMO_USERS)}명")
    except Exception as e:
        print(f"❌ 지갑 시드 데이터 생성 실패: {str(e)}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed_exchange_rate()
    seed_treasures()
    seed_wallets()
