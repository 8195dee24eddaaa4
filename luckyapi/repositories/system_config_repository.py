import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

from sqlalchemy.orm import Session

from luckyapi.models.system_config import EXCHANGE_RATE_KEY, SystemConfig

logger = logging.getLogger(__name__)


class SystemConfigRepository:
    """시스템 설정 조회 (읽기 전용)"""

    def __init__(self, db: Session):
        self.db = db

    def get_value(self, key: str) -> Optional[str]:
        row = self.db.query(SystemConfig).filter(SystemConfig.key == key).first()
        return row.value if row else None

    def get_exchange_rate(self, default: Decimal) -> Decimal:
        """코인/통화 1단위 환율. 미설정이거나 양수가 아니면 기본값"""
        raw = self.get_value(EXCHANGE_RATE_KEY)
        if raw is None:
            return default
        try:
            rate = Decimal(raw.strip())
        except (InvalidOperation, AttributeError):
            logger.warning(f"Invalid exchange_rate config value: {raw!r}, using {default}")
            return default
        if not rate.is_finite() or rate <= 0:
            logger.warning(f"Non-positive exchange_rate config value: {raw!r}, using {default}")
            return default
        return rate
