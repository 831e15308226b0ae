"""
Vault API tests

Runs the public vault operations through the HTTP surface against the
seeded in-memory registry.
"""
import pytest
from fastapi.testclient import TestClient

from app.config import settings
from app.core.registry import registry
from app.main import app, status_code_for

from hypervisor.errors import (
    DepositCapError,
    MaxTotalSupplyExceeded,
    PoolError,
    ReentrancyError,
    TransferError,
    UnauthorizedError,
)

OWNER = settings.VAULT_OWNER
ALICE = settings.DEMO_ACCOUNTS[0]
E18 = 10 ** 18


@pytest.fixture
def client():
    registry.reset()
    with TestClient(app) as client:
        yield client


def deposit(client, amount0, amount1, account=ALICE):
    return client.post("/api/v1/vault/deposit", json={
        "deposit0": amount0, "deposit1": amount1, "to": account, "sender": account
    })


class TestReadEndpoints:
    """Health and state queries"""

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_vault_state(self, client):
        response = client.get("/api/v1/vault")
        assert response.status_code == 200
        data = response.json()
        assert data["address"] == settings.VAULT_ADDRESS
        assert data["fee"] == settings.POOL_FEE
        assert data["tick_spacing"] == 60
        assert data["total_supply"] == 0
        assert data["current_tick"] == settings.POOL_INITIAL_TICK
        assert data["owner"] == OWNER
        assert data["price"] == pytest.approx(1.0)

    def test_positions_empty(self, client):
        data = client.get("/api/v1/vault/positions").json()
        assert data["base"]["liquidity"] == 0
        assert data["limit"]["liquidity"] == 0


class TestOperations:
    """Deposit / rebalance / withdraw round trip"""

    def test_first_deposit(self, client):
        response = deposit(client, 1000, 1000)
        assert response.status_code == 200
        assert response.json()["shares"] == 2000
        assert client.get("/api/v1/vault").json()["total_supply"] == 2000

    def test_withdraw_half(self, client):
        deposit(client, 1000, 1000)
        response = client.post("/api/v1/vault/withdraw", json={
            "shares": 1000, "to": ALICE, "from_account": ALICE, "sender": ALICE
        })
        assert response.status_code == 200
        data = response.json()
        assert (data["amount0"], data["amount1"]) == (500, 500)
        assert data["total_supply"] == 1000

    def test_rebalance_deploys_liquidity(self, client):
        deposit(client, 2 * E18, E18)
        response = client.post("/api/v1/vault/rebalance", json={
            "base_lower": -600, "base_upper": 600,
            "limit_lower": 60, "limit_upper": 1200,
            "fee_recipient": "treasury", "swap_quantity": 0, "sender": OWNER
        })
        assert response.status_code == 200
        assert response.json()["total_amount0"] == 2 * E18

        positions = client.get("/api/v1/vault/positions").json()
        assert positions["base"]["lower"] == -600
        assert positions["base"]["liquidity"] > 0
        assert positions["limit"]["liquidity"] > 0

    def test_deposit_cap(self, client):
        response = client.post("/api/v1/vault/deposit-max", json={
            "deposit0_max": 100, "deposit1_max": 100, "sender": OWNER
        })
        assert response.status_code == 200
        assert response.json()["deposit0_max"] == 100

        response = deposit(client, 100, 1)
        assert response.status_code == 400
        assert response.json()["message"] == "DepositCapError"

    def test_max_total_supply_rolls_back(self, client):
        client.post("/api/v1/vault/max-total-supply", json={"max_total_supply": 1500, "sender": OWNER})
        response = deposit(client, 1000, 1000)
        assert response.status_code == 400
        assert response.json()["message"] == "MaxTotalSupplyExceeded"
        assert client.get("/api/v1/vault").json()["total_supply"] == 0


class TestErrorMapping:
    """Vault errors map to HTTP status codes"""

    def test_unauthorized_rebalance(self, client):
        response = client.post("/api/v1/vault/rebalance", json={
            "base_lower": -600, "base_upper": 600,
            "limit_lower": 60, "limit_upper": 1200,
            "fee_recipient": "treasury", "sender": ALICE
        })
        assert response.status_code == 403

    def test_misaligned_range(self, client):
        response = client.post("/api/v1/vault/rebalance", json={
            "base_lower": -600, "base_upper": 610,
            "limit_lower": 60, "limit_upper": 1200,
            "fee_recipient": "treasury", "sender": OWNER
        })
        assert response.status_code == 400
        assert response.json()["message"] == "InvalidRangeError"

    def test_unfunded_sender(self, client):
        response = deposit(client, 1000, 1000, account="stranger")
        assert response.status_code == 502
        assert response.json()["message"] == "TransferError"

    def test_negative_amount_rejected_by_schema(self, client):
        assert deposit(client, -1, 1000).status_code == 422

    @pytest.mark.parametrize("exc, code", [
        (UnauthorizedError("x"), 403),
        (ReentrancyError("x"), 409),
        (TransferError("x"), 502),
        (PoolError("LOK", "x"), 502),
        (DepositCapError("x"), 400),
        (MaxTotalSupplyExceeded("x"), 400),
    ])
    def test_status_code_table(self, exc, code):
        assert status_code_for(exc) == code
