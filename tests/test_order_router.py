import warnings
from decimal import Decimal
from unittest.mock import Mock

from fastapi.testclient import TestClient

from luckyapi.deps import get_order_service
from luckyapi.main import create_app
from luckyapi.schemas.order import CheckoutRequest, CheckoutResponse

HEADERS = {"X-User-Id": "router-buyer"}


class TestOrderRoutes:
    """주문 라우터 테스트 (테스트 DB 사용)"""

    def test_checkout_list_and_detail(self, client, make_treasure, fund_wallet):
        # Given
        treasure = make_treasure(shelves=10, unit_amount="2.00")
        fund_wallet("router-buyer", cash="10")

        # When
        response = client.post(
            "/api/v1/orders/checkout",
            json={"treasure_id": treasure.treasure_id, "entries": 2, "payment_method": 1},
            headers=HEADERS,
        )

        # Then
        assert response.status_code == 200
        checkout = response.json()
        assert checkout["is_group_owner"] is True
        assert checkout["already_in_group"] is False
        assert checkout["group_id"]

        listing = client.get("/api/v1/orders", headers=HEADERS).json()
        assert listing["total"] == 1
        assert listing["items"][0]["order_id"] == checkout["order_id"]

        detail = client.get(f"/api/v1/orders/{checkout['order_id']}", headers=HEADERS)
        assert detail.status_code == 200
        body = detail.json()
        assert Decimal(body["final_amount"]) == Decimal("4")
        assert body["order_status"] == "PAID"
        assert body["group"]["group_id"] == checkout["group_id"]
        assert len(body["transactions"]) == 1

    def test_checkout_out_of_stock_envelope(self, client, make_treasure, fund_wallet):
        treasure = make_treasure(shelves=10, bought=8)
        fund_wallet("router-buyer", cash="10")

        response = client.post(
            "/api/v1/orders/checkout",
            json={"treasure_id": treasure.treasure_id, "entries": 3, "payment_method": 1},
            headers=HEADERS,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"]["kind"] == "UNAVAILABLE"
        assert body["error"]["message"] == "only 2 entries left in stock"

    def test_checkout_unknown_group(self, client, make_treasure, fund_wallet):
        treasure = make_treasure(shelves=10)
        fund_wallet("router-buyer", cash="10")

        response = client.post(
            "/api/v1/orders/checkout",
            json={
                "treasure_id": treasure.treasure_id,
                "entries": 1,
                "payment_method": 1,
                "group_id": "missing",
            },
            headers=HEADERS,
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "GROUP_001"
        balance = client.get("/api/v1/wallet/balance", headers=HEADERS).json()
        assert Decimal(balance["cash_balance"]) == Decimal("10")

    def test_checkout_missing_fields(self, client):
        response = client.post(
            "/api/v1/orders/checkout", json={"entries": 1}, headers=HEADERS
        )

        assert response.status_code == 422
        assert response.json()["error"]["kind"] == "VALIDATION"

    def test_checkout_invalid_entries_without_deprecation_warnings(self, client):
        """서비스 검증 실패도 경고 없이 422 에러 형태로 응답"""
        with warnings.catch_warnings():
            warnings.filterwarnings("error", message=".*HTTP_422", category=DeprecationWarning)
            response = client.post(
                "/api/v1/orders/checkout",
                json={"treasure_id": "any", "entries": 0, "payment_method": 1},
                headers=HEADERS,
            )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"

    def test_order_detail_not_found(self, client):
        response = client.get("/api/v1/orders/missing", headers=HEADERS)

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND_001"

    def test_orders_require_user_header(self, client):
        response = client.get("/api/v1/orders")

        assert response.status_code == 401


class TestOrderRoutesWithMockService:
    """서비스를 모킹한 주문 라우터 테스트"""

    def test_checkout_delegates_to_service(self):
        # Given
        mock_service = Mock()
        mock_service.checkout.return_value = CheckoutResponse(
            order_id="o-1",
            order_no="ORD1",
            treasure_id="t-1",
            group_id="g-1",
            is_group_owner=False,
            already_in_group=True,
        )
        app = create_app()
        app.dependency_overrides[get_order_service] = lambda: mock_service

        # When
        response = TestClient(app).post(
            "/api/v1/orders/checkout",
            json={"treasure_id": "t-1", "entries": 1, "payment_method": 2, "group_id": "g-1"},
            headers=HEADERS,
        )

        # Then
        assert response.status_code == 200
        assert response.json()["already_in_group"] is True
        mock_service.checkout.assert_called_once_with(
            "router-buyer",
            CheckoutRequest(treasure_id="t-1", entries=1, payment_method=2, group_id="g-1"),
        )

    def test_unexpected_error_is_internal_envelope(self):
        mock_service = Mock()
        mock_service.list_orders.side_effect = RuntimeError("boom")
        app = create_app()
        app.dependency_overrides[get_order_service] = lambda: mock_service

        response = TestClient(app, raise_server_exceptions=False).get(
            "/api/v1/orders", headers=HEADERS
        )

        assert response.status_code == 500
        error = response.json()["error"]
        assert error["code"] == "INTERNAL_001"
        assert error["kind"] == "INTERNAL"
