from typing import List, Optional, Tuple

from sqlalchemy import desc, func
from sqlalchemy.orm import Query, Session

from luckyapi.models.order import Order, OrderStatus, PayStatus, RefundStatus
from luckyapi.repositories.base import BaseRepository
from luckyapi.schemas.order import OrderStatusFilter, OrderView
from luckyapi.utils.identifiers import generate_order_no


class OrderRepository(BaseRepository[Order, OrderView]):
    """주문 리포지토리"""

    def __init__(self, db: Session):
        super().__init__(Order, OrderView, db)

    def create_order(self, **kwargs) -> Order:
        """주문 생성 (flush만 수행)"""
        kwargs.setdefault("order_no", generate_order_no())
        order = Order(**kwargs)
        self.db.add(order)
        self.db.flush()
        return order

    def sum_paid_entries(self, user_id: str, treasure_id: str) -> int:
        """사용자가 해당 보물에 대해 결제 완료(환불 제외)한 엔트리 합계"""
        total = (
            self.db.query(func.coalesce(func.sum(Order.buy_quantity), 0))
            .filter(
                Order.user_id == user_id,
                Order.treasure_id == treasure_id,
                Order.pay_status == PayStatus.PAID,
                Order.order_status == OrderStatus.PAID,
                Order.refund_status != RefundStatus.REFUNDED,
            )
            .scalar()
        )
        return int(total or 0)

    def set_group(self, order_id: str, group_id: Optional[str], is_group_owner: bool) -> bool:
        updated_count = (
            self.db.query(Order)
            .filter(Order.order_id == order_id)
            .update(
                {"group_id": group_id, "is_group_owner": is_group_owner},
                synchronize_session=False,
            )
        )
        self.db.flush()
        return updated_count == 1

    def _where_by_status(
        self, query: Query, status: OrderStatusFilter
    ) -> Query:
        if status == OrderStatusFilter.PAID:
            return query.filter(
                Order.pay_status == PayStatus.PAID,
                Order.order_status == OrderStatus.PAID,
                Order.refund_status == RefundStatus.NO_REFUND,
            )
        if status == OrderStatusFilter.UNPAID:
            return query.filter(
                Order.pay_status == PayStatus.UNPAID,
                Order.order_status == OrderStatus.PENDING_PAYMENT,
            )
        if status == OrderStatusFilter.REFUNDED:
            return query.filter(Order.refund_status == RefundStatus.REFUNDED)
        if status == OrderStatusFilter.CANCELLED:
            return query.filter(Order.order_status == OrderStatus.CANCELED)
        return query

    def list_orders(
        self,
        user_id: str,
        status: OrderStatusFilter,
        offset: int,
        limit: int,
        treasure_id: Optional[str] = None,
    ) -> Tuple[List[Order], int]:
        """사용자 주문 목록 (최신순)"""
        query = self.db.query(Order).filter(Order.user_id == user_id).populate_existing()
        if treasure_id:
            query = query.filter(Order.treasure_id == treasure_id)
        query = self._where_by_status(query, status)

        total = query.count()
        rows = (
            query.order_by(desc(Order.created_at), desc(Order.order_id))
            .offset(offset)
            .limit(limit)
            .all()
        )
        return rows, total

    def get_order(self, user_id: str, order_id: str) -> Optional[Order]:
        return (
            self.db.query(Order)
            .filter(Order.order_id == order_id, Order.user_id == user_id)
            .populate_existing()
            .first()
        )
