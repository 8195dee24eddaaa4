import secrets
from datetime import datetime
from typing import Optional


def _timestamp(now: Optional[datetime] = None) -> str:
    now = now or datetime.now()
    # yyyyMMddHHmmssSSS
    return now.strftime("%Y%m%d%H%M%S") + f"{now.microsecond // 1000:03d}"


def _random_digits(width: int = 6) -> str:
    return f"{secrets.randbelow(10 ** width):0{width}d}"


def generate_order_no(now: Optional[datetime] = None) -> str:
    """주문 번호: ORD + 타임스탬프(ms) + 6자리 난수"""
    return f"ORD{_timestamp(now)}{_random_digits()}"


def generate_transaction_no(now: Optional[datetime] = None) -> str:
    """원장 트랜잭션 번호: TXN + 타임스탬프(ms) + 6자리 난수"""
    return f"TXN{_timestamp(now)}{_random_digits()}"
