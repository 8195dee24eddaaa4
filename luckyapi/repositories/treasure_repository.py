from typing import Optional

from sqlalchemy.orm import Session

from luckyapi.models.treasure import Treasure, TreasureState
from luckyapi.repositories.base import BaseRepository
from luckyapi.schemas.order import OrderTreasureSummary


class TreasureRepository(BaseRepository[Treasure, OrderTreasureSummary]):
    """보물 리포지토리 - 카탈로그 조회 + 재고 가드 업데이트"""

    def __init__(self, db: Session):
        super().__init__(Treasure, OrderTreasureSummary, db)

    def get_treasure(self, treasure_id: str) -> Optional[Treasure]:
        return (
            self.db.query(Treasure)
            .filter(Treasure.treasure_id == treasure_id)
            .populate_existing()
            .first()
        )

    def is_active(self, treasure_id: str) -> bool:
        return self.exists({"treasure_id": treasure_id, "state": TreasureState.ACTIVE})

    def reserve_entries(self, treasure_id: str, entries: int) -> bool:
        """재고 예약 - 잔여 수량이 충분하고 판매중일 때만 seq_buy_quantity 증가

        영향 행이 0이면 False (재고 부족 또는 판매 중지).
        """
        updated_count = (
            self.db.query(Treasure)
            .filter(
                Treasure.treasure_id == treasure_id,
                Treasure.state == TreasureState.ACTIVE,
                (Treasure.seq_shelves_quantity - Treasure.seq_buy_quantity) >= entries,
            )
            .update(
                {"seq_buy_quantity": Treasure.seq_buy_quantity + entries},
                synchronize_session=False,
            )
        )
        self.db.flush()
        return updated_count == 1
