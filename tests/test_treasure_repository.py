from luckyapi.models.treasure import Treasure, TreasureState
from luckyapi.repositories.treasure_repository import TreasureRepository


def _reload(db_session, treasure_id) -> Treasure:
    return (
        db_session.query(Treasure)
        .filter(Treasure.treasure_id == treasure_id)
        .populate_existing()
        .one()
    )


class TestTreasureRepository:
    """재고 가드 업데이트 테스트"""

    def test_reserve_entries_within_stock(self, db_session, make_treasure):
        treasure = make_treasure(shelves=10, bought=8)
        repo = TreasureRepository(db_session)

        assert repo.reserve_entries(treasure.treasure_id, 2) is True
        db_session.commit()

        assert _reload(db_session, treasure.treasure_id).seq_buy_quantity == 10

    def test_reserve_entries_never_oversells(self, db_session, make_treasure):
        """잔여 수량보다 많이 요청하면 0행 업데이트"""
        treasure = make_treasure(shelves=10, bought=8)
        repo = TreasureRepository(db_session)

        assert repo.reserve_entries(treasure.treasure_id, 3) is False
        db_session.commit()

        assert _reload(db_session, treasure.treasure_id).seq_buy_quantity == 8

    def test_repeated_reservations_stop_at_capacity(self, db_session, make_treasure):
        """요청 합계가 재고를 넘어도 판매 수량은 재고 이하"""
        treasure = make_treasure(shelves=5)
        repo = TreasureRepository(db_session)

        results = [repo.reserve_entries(treasure.treasure_id, 2) for _ in range(4)]
        db_session.commit()

        assert results == [True, True, False, False]
        reloaded = _reload(db_session, treasure.treasure_id)
        assert reloaded.seq_buy_quantity == 4
        assert reloaded.seq_buy_quantity <= reloaded.seq_shelves_quantity

    def test_reserve_entries_inactive_treasure(self, db_session, make_treasure):
        treasure = make_treasure(shelves=10, state=TreasureState.INACTIVE)
        repo = TreasureRepository(db_session)

        assert repo.reserve_entries(treasure.treasure_id, 1) is False
        assert repo.is_active(treasure.treasure_id) is False

    def test_reserve_entries_unknown_treasure(self, db_session):
        repo = TreasureRepository(db_session)

        assert repo.reserve_entries("missing", 1) is False
        assert repo.get_treasure("missing") is None
