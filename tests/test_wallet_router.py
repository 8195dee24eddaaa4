from decimal import Decimal
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from luckyapi.deps import get_wallet_service
from luckyapi.main import create_app
from luckyapi.models.wallet import BalanceType
from luckyapi.schemas.wallet import WalletOperationResponse

HEADERS = {"X-User-Id": "router-user"}


class TestWalletRoutes:
    """지갑 라우터 테스트 (테스트 DB 사용)"""

    def test_balance_requires_user_header(self, client):
        response = client.get("/api/v1/wallet/balance")

        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "AUTH_001"
        assert error["kind"] == "AUTHENTICATION"

    def test_balance_creates_wallet(self, client):
        response = client.get("/api/v1/wallet/balance", headers=HEADERS)

        assert response.status_code == 200
        data = response.json()
        assert data["user_id"] == "router-user"
        assert Decimal(data["cash_balance"]) == Decimal("0")

    def test_credit_then_debit(self, client):
        """100 충전 → 50 차감 → 80 차감 실패 (INSUFFICIENT_BALANCE)"""
        # Given
        credited = client.post("/api/v1/wallet/credit", json={"amount": "100"}, headers=HEADERS)
        assert credited.status_code == 200
        assert Decimal(credited.json()["balance"]) == Decimal("100")

        # When
        debited = client.post("/api/v1/wallet/debit", json={"amount": "50"}, headers=HEADERS)
        rejected = client.post("/api/v1/wallet/debit", json={"amount": "80"}, headers=HEADERS)

        # Then
        assert debited.status_code == 200
        assert Decimal(debited.json()["balance"]) == Decimal("50")
        assert rejected.status_code == 400
        assert rejected.json()["error"]["kind"] == "INSUFFICIENT_BALANCE"

        balance = client.get("/api/v1/wallet/balance", headers=HEADERS).json()
        assert Decimal(balance["cash_balance"]) == Decimal("50")
        assert Decimal(balance["total_recharge"]) == Decimal("100")

    def test_non_positive_amount(self, client):
        response = client.post("/api/v1/wallet/credit", json={"amount": "0"}, headers=HEADERS)

        assert response.status_code == 400
        assert response.json()["error"]["kind"] == "INVALID_AMOUNT"

    def test_malformed_amount_is_validation_error(self, client):
        response = client.post("/api/v1/wallet/credit", json={"amount": "abc"}, headers=HEADERS)

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_001"
        assert error["kind"] == "VALIDATION"

    def test_transactions_filtered_by_balance_type(self, client, fund_wallet):
        fund_wallet("router-user", cash="10", coins="3")

        response = client.get(
            "/api/v1/wallet/transactions",
            params={"balance_type": "COIN", "page_size": 10},
            headers=HEADERS,
        )

        assert response.status_code == 200
        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["balance_type"] == "COIN"
        assert Decimal(data["items"][0]["amount"]) == Decimal("3")

    def test_page_size_out_of_range(self, client):
        response = client.get(
            "/api/v1/wallet/transactions", params={"page_size": 1000}, headers=HEADERS
        )

        assert response.status_code == 422


class TestWalletRoutesWithMockService:
    """서비스를 모킹한 지갑 라우터 테스트"""

    @pytest.fixture
    def mock_service(self):
        return Mock()

    @pytest.fixture
    def mocked_client(self, mock_service):
        app = create_app()
        app.dependency_overrides[get_wallet_service] = lambda: mock_service
        yield TestClient(app)
        app.dependency_overrides.clear()

    def test_credit_passes_request_fields(self, mocked_client, mock_service):
        # Given
        mock_service.credit_cash.return_value = WalletOperationResponse(
            balance_type=BalanceType.CASH,
            balance=Decimal("12.50"),
            transaction_no="TXN1",
            transaction_id="t-1",
        )

        # When
        response = mocked_client.post(
            "/api/v1/wallet/credit",
            json={"amount": "12.50", "related_id": "pay-1", "related_type": "recharge", "desc": "top up"},
            headers=HEADERS,
        )

        # Then
        assert response.status_code == 200
        assert response.json()["balance"] == "12.50"
        mock_service.credit_cash.assert_called_once_with(
            "router-user",
            Decimal("12.50"),
            related_id="pay-1",
            related_type="recharge",
            description="top up",
        )
