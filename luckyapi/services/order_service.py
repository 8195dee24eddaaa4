import logging
from datetime import datetime, timezone
from decimal import ROUND_DOWN, ROUND_UP, Decimal
from typing import List, Optional

from sqlalchemy.orm import Session

from luckyapi.config import Settings, settings as default_settings
from luckyapi.core.exceptions import (
    InsufficientStockError,
    NotFoundError,
    QuotaExceededError,
    TreasureUnavailableError,
    ValidationError,
)
from luckyapi.database.session import unit_of_work
from luckyapi.models.group import GroupStatus
from luckyapi.models.order import Order, OrderStatus, PayStatus, RefundStatus
from luckyapi.models.treasure import Treasure, TreasureState
from luckyapi.models.wallet import BalanceType, TransactionType
from luckyapi.repositories.order_repository import OrderRepository
from luckyapi.repositories.system_config_repository import SystemConfigRepository
from luckyapi.repositories.treasure_repository import TreasureRepository
from luckyapi.repositories.wallet_repository import WalletRepository
from luckyapi.schemas.order import (
    CheckoutRequest,
    CheckoutResponse,
    OrderDetailResponse,
    OrderGroupSummary,
    OrderListResponse,
    OrderStatusFilter,
    OrderTransactionEntry,
    OrderTreasureSummary,
    OrderView,
    PaymentMethod,
    PricingBreakdown,
)
from luckyapi.schemas.pagination import clamp_page
from luckyapi.services.group_service import GroupService
from luckyapi.services.wallet_service import WalletService

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
CENT = Decimal("0.01")


def price_order(
    treasure: Treasure,
    entries: int,
    payment_method: PaymentMethod,
    coin_balance: Decimal,
    exchange_rate: Decimal,
) -> PricingBreakdown:
    """주문 가격 계산

    - 코인 결제: 사용 가능 코인 = min(코인 잔액, 엔트리당 코인 한도 * entries),
      코인 할인액 = 사용 가능 코인 / 환율 (소수 둘째 자리 내림),
      실제 차감 코인 = 코인 할인액 * 환율 (할인액이 0이면 차감 없음)
    - 쿠폰 할인은 적용하지 않음 (coupon_amount = 0)
    - 할인액 = max(쿠폰, 코인), 합산하지 않음
    """
    original_amount = Decimal(treasure.unit_amount) * entries
    coupon_amount = ZERO
    coin_used = ZERO
    coin_amount = ZERO

    if payment_method == PaymentMethod.COIN:
        max_coin_usable = Decimal(treasure.max_unit_coins or 0) * entries
        coin_usable = min(Decimal(coin_balance or 0), max_coin_usable)
        if coin_usable > 0:
            coin_amount = (coin_usable / exchange_rate).quantize(CENT, rounding=ROUND_DOWN)
            # 내림된 할인액만큼만 코인 차감 (올림해도 coin_usable 이하)
            coin_used = (coin_amount * exchange_rate).quantize(CENT, rounding=ROUND_UP)

    discount_amount = max(coupon_amount, coin_amount)
    final_amount = max(original_amount - discount_amount, ZERO)

    return PricingBreakdown(
        original_amount=original_amount,
        coupon_amount=coupon_amount,
        coin_used=coin_used,
        coin_amount=coin_amount,
        discount_amount=discount_amount,
        final_amount=final_amount,
    )


class OrderService:
    """체크아웃 오케스트레이터 및 주문 조회

    체크아웃은 하나의 세션(트랜잭션)에서 지갑 차감, 재고 예약, 주문 생성,
    원장 related_id 보충, 그룹 참여/개설을 순서대로 수행한다. 어느 단계든
    예외가 발생하면 전체가 롤백된다.
    """

    def __init__(self, db: Session, app_settings: Optional[Settings] = None):
        self.db = db
        self.settings = app_settings or default_settings
        self.order_repo = OrderRepository(db)
        self.treasure_repo = TreasureRepository(db)
        self.wallet_repo = WalletRepository(db)
        self.config_repo = SystemConfigRepository(db)
        self.wallet_service = WalletService(db, self.settings)
        self.group_service = GroupService(db, self.settings)

    @staticmethod
    def _validate_request(request: CheckoutRequest) -> PaymentMethod:
        if request.entries is None or request.entries < 1:
            raise ValidationError("entries must be at least 1", details={"entries": request.entries})
        try:
            return PaymentMethod(int(request.payment_method))
        except (TypeError, ValueError):
            raise ValidationError(
                "invalid payment method",
                details={"payment_method": request.payment_method},
            )

    def _check_quota(self, user_id: str, treasure: Treasure, entries: int) -> None:
        cap = treasure.max_per_buy_quantity
        if not cap or cap <= 0:
            return

        already_bought = self.order_repo.sum_paid_entries(user_id, treasure.treasure_id)
        left_quota = cap - already_bought
        if left_quota <= 0:
            raise QuotaExceededError(
                f"purchase limit of {cap} entries reached for this treasure",
                details={"limit": cap, "purchased": already_bought},
            )
        if entries > left_quota:
            raise QuotaExceededError(
                f"can only purchase {left_quota} more entries for this treasure",
                details={"limit": cap, "purchased": already_bought, "remaining": left_quota},
            )

    def checkout(self, user_id: str, request: CheckoutRequest) -> CheckoutResponse:
        """체크아웃

        Args:
            user_id: 인증된 사용자 ID
            request: 체크아웃 요청

        Returns:
            CheckoutResponse: 주문/그룹 요약

        Raises:
            ValidationError, TreasureUnavailableError, InsufficientStockError,
            QuotaExceededError, InsufficientBalanceError, GroupNotFoundError,
            GroupInactiveError, GroupFullError, MembershipConflictError
        """
        payment_method = self._validate_request(request)
        entries = request.entries
        treasure_id = request.treasure_id

        with unit_of_work(self.db):
            rate = self.config_repo.get_exchange_rate(self.settings.DEFAULT_EXCHANGE_RATE)

            treasure = self.treasure_repo.get_treasure(treasure_id)
            if treasure is None or treasure.state != TreasureState.ACTIVE:
                raise TreasureUnavailableError(details={"treasure_id": treasure_id})
            if treasure.max_per_buy_quantity and entries > treasure.max_per_buy_quantity:
                raise QuotaExceededError(
                    f"cannot purchase more than {treasure.max_per_buy_quantity} entries at once",
                    details={"max_per_buy_quantity": treasure.max_per_buy_quantity},
                )

            # 사전 확인 (최종 판정은 재고 가드 UPDATE)
            available = treasure.available_entries
            if available <= 0:
                raise InsufficientStockError(details={"treasure_id": treasure_id})
            if entries > available:
                raise InsufficientStockError(
                    f"only {available} entries left in stock",
                    details={"treasure_id": treasure_id, "available": available},
                )

            self._check_quota(user_id, treasure, entries)

            wallet = self.wallet_repo.ensure_wallet(user_id)
            pricing = price_order(
                treasure,
                entries,
                payment_method,
                coin_balance=wallet.coin_balance,
                exchange_rate=rate,
            )

            # 코인 먼저, 이후 현금
            transaction_ids: List[str] = []
            if payment_method == PaymentMethod.COIN and pricing.coin_used > 0:
                coin_result = self.wallet_service.debit(
                    user_id,
                    pricing.coin_used,
                    BalanceType.COIN,
                    TransactionType.COIN_EXCHANGE,
                    related_type="order",
                    description=f"coin discount for treasure {treasure_id}",
                )
                transaction_ids.append(coin_result.transaction_id)
            if pricing.final_amount > 0:
                cash_result = self.wallet_service.debit(
                    user_id,
                    pricing.final_amount,
                    BalanceType.CASH,
                    TransactionType.CONSUMPTION,
                    related_type="order",
                    description=f"order pay for treasure {treasure_id}",
                )
                transaction_ids.append(cash_result.transaction_id)

            if not self.treasure_repo.reserve_entries(treasure_id, entries):
                logger.warning(
                    f"Stock reservation failed: treasure={treasure_id}, entries={entries}, user={user_id}"
                )
                raise InsufficientStockError(details={"treasure_id": treasure_id})

            order = self.order_repo.create_order(
                user_id=user_id,
                treasure_id=treasure_id,
                original_amount=pricing.original_amount,
                discount_amount=pricing.discount_amount,
                coupon_amount=pricing.coupon_amount,
                coin_amount=pricing.coin_amount,
                coin_used=pricing.coin_used,
                final_amount=pricing.final_amount,
                unit_price=treasure.unit_amount,
                buy_quantity=entries,
                order_status=OrderStatus.PAID,
                pay_status=PayStatus.PAID,
                refund_status=RefundStatus.NO_REFUND,
                paid_at=datetime.now(timezone.utc),
                coupon_id=request.coupon_id,
                address_id=request.address_id,
                is_group_owner=False,
            )

            self.wallet_repo.backfill_related_id(transaction_ids, order.order_id)

            joined = self.group_service.join_or_create(
                user_id=user_id,
                treasure_id=treasure_id,
                order_id=order.order_id,
                group_id=request.group_id,
            )
            self.order_repo.set_group(order.order_id, joined.final_group_id, joined.is_owner)

            response = CheckoutResponse(
                order_id=order.order_id,
                order_no=order.order_no,
                treasure_id=treasure_id,
                group_id=joined.final_group_id,
                is_group_owner=joined.is_owner,
                already_in_group=joined.already_in_group,
            )

        logger.info(
            f"Checkout completed: order={response.order_no}, user={user_id}, "
            f"treasure={treasure_id}, entries={entries}, final={pricing.final_amount}, "
            f"coins={pricing.coin_used}, group={response.group_id}"
        )
        return response

    @staticmethod
    def _build_order_view(order: Order, view_class=OrderView, **extra):
        group = None
        if order.group is not None and order.group.group_status == GroupStatus.ACTIVE:
            group = OrderGroupSummary.model_validate(order.group)
        treasure = (
            OrderTreasureSummary.model_validate(order.treasure) if order.treasure else None
        )
        return view_class(
            order_id=order.order_id,
            order_no=order.order_no,
            created_at=order.created_at,
            updated_at=order.updated_at,
            paid_at=order.paid_at,
            buy_quantity=order.buy_quantity,
            treasure_id=order.treasure_id,
            unit_price=order.unit_price,
            original_amount=order.original_amount,
            discount_amount=order.discount_amount,
            coupon_amount=order.coupon_amount,
            coin_amount=order.coin_amount,
            coin_used=order.coin_used,
            final_amount=order.final_amount,
            order_status=order.order_status,
            pay_status=order.pay_status,
            refund_status=order.refund_status,
            treasure=treasure,
            group=group,
            **extra,
        )

    def list_orders(
        self,
        user_id: str,
        status: OrderStatusFilter = OrderStatusFilter.ALL,
        page: int = 1,
        page_size: Optional[int] = None,
        treasure_id: Optional[str] = None,
    ) -> OrderListResponse:
        """주문 목록 (최신순)"""
        params = clamp_page(
            page,
            page_size or self.settings.DEFAULT_PAGE_SIZE,
            self.settings.MAX_PAGE_SIZE,
        )
        rows, total = self.order_repo.list_orders(
            user_id=user_id,
            status=status,
            offset=params.offset,
            limit=params.page_size,
            treasure_id=treasure_id,
        )
        return OrderListResponse(
            items=[self._build_order_view(row) for row in rows],
            total=total,
            page=params.page,
            page_size=params.page_size,
            has_next=params.offset + len(rows) < total,
        )

    def get_order_detail(self, user_id: str, order_id: str) -> OrderDetailResponse:
        """주문 상세 + 최근 원장 항목"""
        order = self.order_repo.get_order(user_id, order_id)
        if order is None:
            raise NotFoundError("Order not found", details={"order_id": order_id})

        transactions = self.wallet_repo.get_transactions_for_related(
            user_id, order_id, limit=self.settings.ORDER_DETAIL_TRANSACTION_LIMIT
        )
        return self._build_order_view(
            order,
            view_class=OrderDetailResponse,
            transactions=[
                OrderTransactionEntry(
                    transaction_no=t.transaction_no,
                    amount=t.amount,
                    balance_type=t.balance_type.value,
                    status=t.status.value,
                    created_at=t.created_at,
                )
                for t in transactions
            ],
        )
