"""
Tests for Mint Action API endpoints.
"""

from types import SimpleNamespace
from typing import Optional

import pytest
from fastapi.testclient import TestClient

from mint_action_api.evm import PreparedTransaction, SerializableTransaction
from mint_action_api.main import app, get_evm_client


ACCOUNT = "0x1234567890abcdef1234567890abcdef12345678"
DROP_ADDRESS = "0x250E7409dA32f078E0531b2d7AAE388027743787"
TX_TO = "0xAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"


class StubChainClient:
    """Deterministic chain client: always resolves the same transaction."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error
        self.claims: list[tuple[str, str, int]] = []

    def get_contract(self, address: Optional[str] = None) -> SimpleNamespace:
        return SimpleNamespace(address=address or DROP_ADDRESS)

    async def prepare_claim_to(self, contract, to, from_, quantity) -> PreparedTransaction:
        self.claims.append((to, from_, quantity))
        if self.error is not None:
            raise self.error
        return PreparedTransaction(
            to=contract.address,
            data="0xdead",
            value=10**18,
            chain_id=84532,
            from_=from_,
        )

    async def to_serializable_transaction(self, transaction, from_) -> SerializableTransaction:
        return SerializableTransaction(
            to=TX_TO,
            value=1000000000000000000,
            data="0xdead",
            chain_id=84532,
            nonce=0,
            gas=150000,
            max_fee_per_gas=2_000_000,
            max_priority_fee_per_gas=1_000_000,
        )


@pytest.fixture
def client():
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def chain_client():
    """Install a stub chain client for the duration of a test."""
    stub = StubChainClient()
    app.dependency_overrides[get_evm_client] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


@pytest.fixture
def failing_chain_client():
    """Install a chain client whose claim preparation raises."""
    stub = StubChainClient(error=TimeoutError("RPC request timed out"))
    app.dependency_overrides[get_evm_client] = lambda: stub
    yield stub
    app.dependency_overrides.clear()


class TestHealthCheck:
    """Tests for /health endpoint."""

    def test_health_check_returns_status(self, client):
        """Health check should report degraded without a reachable RPC."""
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["evm_rpc"] is False
        assert data["chain_id"] == 84532
        assert data["nft_contract"] == DROP_ADDRESS


class TestDescribeMint:
    """Tests for GET /api/mint."""

    def test_returns_metadata(self, client):
        """Should describe the mint action."""
        response = client.get("/api/mint")
        assert response.status_code == 200
        data = response.json()
        assert data["chainId"] == 84532
        assert data["label"] == "Mint NFT"
        assert data["title"] == "Mint OpenEdition NFT"
        assert data["description"] == "Mint OpenEdition NFT to celebrate X"
        assert data["icon"].startswith("https://")

    def test_one_link_per_amount_option(self, client):
        """Direct links should match the amount options, pluralized."""
        actions = client.get("/api/mint").json()["links"]["actions"]

        direct = [action for action in actions if "parameters" not in action]
        assert direct == [
            {"href": "/api/mint/1", "label": "1 NFT"},
            {"href": "/api/mint/2", "label": "2 NFTs"},
            {"href": "/api/mint/3", "label": "3 NFTs"},
        ]

    def test_parameterized_link(self, client):
        """Last link should take a free-form amount."""
        actions = client.get("/api/mint").json()["links"]["actions"]

        assert actions[-1] == {
            "href": "/api/mint/{amount}",
            "label": "Mint",
            "parameters": [
                {"name": "amount", "label": "Enter amount of NFTs to mint"}
            ],
        }

    def test_cors_allows_any_origin(self, client):
        """Actions are fetched cross-origin."""
        response = client.get("/api/mint", headers={"Origin": "https://wallet.example"})
        assert response.headers["access-control-allow-origin"] == "*"

    def test_cors_preflight_for_post(self, client):
        """Preflight for the mint POST should succeed."""
        response = client.options(
            "/api/mint/1",
            headers={
                "Origin": "https://wallet.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "content-type",
            },
        )
        assert response.status_code == 200
        assert response.headers["access-control-allow-origin"] == "*"


class TestMint:
    """Tests for POST /api/mint/{amount}."""

    def test_mint_returns_transaction(self, client, chain_client):
        """Should return the resolved transaction and a message."""
        response = client.post("/api/mint/3", json={"account": ACCOUNT})

        assert response.status_code == 200
        assert response.json() == {
            "transaction": {
                "to": TX_TO,
                "value": "1000000000000000000",
                "data": "0xdead",
                "chainId": 84532,
            },
            "message": f"Mint 3 NFT(s) to {ACCOUNT}",
        }
        assert chain_client.claims == [(ACCOUNT, ACCOUNT, 3)]

    def test_mint_is_deterministic(self, client, chain_client):
        """Identical requests should produce identical bytes."""
        first = client.post("/api/mint/3", json={"account": ACCOUNT})
        second = client.post("/api/mint/3", json={"account": ACCOUNT})

        assert first.status_code == second.status_code == 200
        assert first.content == second.content

    def test_amount_outside_options_is_forwarded(self, client, chain_client):
        """Amounts are not restricted to the suggested options."""
        big = 2**70
        response = client.post(f"/api/mint/{big}", json={"account": ACCOUNT})

        assert response.status_code == 200
        assert chain_client.claims == [(ACCOUNT, ACCOUNT, big)]
        assert response.json()["message"] == f"Mint {big} NFT(s) to {ACCOUNT}"

    def test_extra_body_fields_ignored(self, client, chain_client):
        """Protocol fields beyond account should not fail validation."""
        response = client.post("/api/mint/1", json={"account": ACCOUNT, "type": "transaction"})
        assert response.status_code == 200

    def test_invalid_amount(self, client, chain_client):
        """Non-numeric amount should be rejected."""
        response = client.post("/api/mint/abc", json={"account": ACCOUNT})

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid NFT amount"}
        assert chain_client.claims == []

    @pytest.mark.parametrize("amount", ["-1", "1.5", "1e3"])
    def test_malformed_amount(self, client, chain_client, amount):
        """Negative and non-integer amounts should be rejected."""
        response = client.post(f"/api/mint/{amount}", json={"account": ACCOUNT})

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid NFT amount"

    def test_missing_amount(self, client, chain_client):
        """Empty amount segment should be rejected."""
        response = client.post("/api/mint/", json={"account": ACCOUNT})

        assert response.status_code == 400
        assert response.json() == {"message": "Mint amount is required"}

    def test_missing_account(self, client, chain_client):
        """Validation error should name the missing field."""
        response = client.post("/api/mint/2", json={})

        assert response.status_code == 400
        message = response.json()["message"]
        assert "account" in message
        assert "Field required" in message
        assert chain_client.claims == []

    def test_invalid_account(self, client, chain_client):
        """Account must be an EVM address."""
        response = client.post("/api/mint/2", json={"account": "not-an-address"})

        assert response.status_code == 400
        assert "account" in response.json()["message"]
        assert "valid EVM address" in response.json()["message"]

    def test_body_checked_before_amount(self, client, chain_client):
        """A bad body wins over a bad amount."""
        response = client.post("/api/mint/abc", json={"wallet": ACCOUNT})

        assert response.status_code == 400
        assert "account" in response.json()["message"]

    def test_invalid_json(self, client, chain_client):
        """Non-JSON body should be a validation error."""
        response = client.post(
            "/api/mint/1",
            content=b"account=0x1234",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {"message": "Invalid JSON body"}

    def test_downstream_error(self, client, failing_chain_client):
        """Chain client errors become 500 with the error message."""
        response = client.post("/api/mint/2", json={"account": ACCOUNT})

        assert response.status_code == 500
        assert response.json() == {"message": "RPC request timed out"}
        assert "Traceback" not in response.text

    def test_recovers_after_downstream_error(self, client, failing_chain_client):
        """A failed request should not affect the next one."""
        assert client.post("/api/mint/2", json={"account": ACCOUNT}).status_code == 500

        failing_chain_client.error = None
        response = client.post("/api/mint/2", json={"account": ACCOUNT})
        assert response.status_code == 200

    def test_downstream_error_without_message(self, client, failing_chain_client):
        """Errors with no message get a generic one."""
        failing_chain_client.error = RuntimeError()

        response = client.post("/api/mint/2", json={"account": ACCOUNT})

        assert response.status_code == 500
        assert response.json() == {"message": "Internal server error"}

    def test_client_not_initialized(self, client):
        """Without a chain client the request fails cleanly."""
        response = client.post("/api/mint/1", json={"account": ACCOUNT})

        assert response.status_code == 500
        assert response.json() == {"message": "EVM client not initialized"}

    def test_oversized_amount(self, client, chain_client):
        """Amounts too long to convert are rejected with a JSON error."""
        response = client.post("/api/mint/" + "1" * 5000, json={"account": ACCOUNT})

        assert response.status_code == 400
        assert response.headers["content-type"] == "application/json"
        assert response.json() == {"message": "Invalid NFT amount"}
        assert chain_client.claims == []

    @pytest.mark.parametrize("amount,quantity", [("0x3", 3), ("+3", 3), ("003", 3)])
    def test_message_echoes_raw_amount(self, client, chain_client, amount, quantity):
        """The message repeats the amount exactly as it appeared in the path."""
        response = client.post(f"/api/mint/{amount}", json={"account": ACCOUNT})

        assert response.status_code == 200
        assert response.json()["message"] == f"Mint {amount} NFT(s) to {ACCOUNT}"
        assert chain_client.claims == [(ACCOUNT, ACCOUNT, quantity)]

    def test_whitespace_padded_amount(self, client, chain_client):
        """Surrounding whitespace is tolerated and kept in the message."""
        response = client.post("/api/mint/%203", json={"account": ACCOUNT})

        assert response.status_code == 200
        assert response.json()["message"] == f"Mint  3 NFT(s) to {ACCOUNT}"
        assert chain_client.claims == [(ACCOUNT, ACCOUNT, 3)]
