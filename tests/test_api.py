"""Tests for the REST endpoints."""

from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from app.history import history_service
from app.main import app
from app.merge.engine import fold_transactions
from tests.conftest import SAFE, external_row, parse_rows, token_row, tx_hash

client = TestClient(app)


def _records():
    ext, intl, tok = parse_rows(
        external=[external_row(1, 1700000000)],
        tokens=[token_row(2, 1700000100)],
    )
    return fold_transactions(ext, intl, tok, SAFE, 1)


class TestTransactionsEndpoint:
    def test_blockchain_returns_camel_case_records(self):
        mock = AsyncMock(return_value=_records())
        with patch.object(history_service, "get_transactions", mock):
            resp = client.get("/transactions/blockchain", params={"safeAddress": SAFE, "chainId": 1})

        assert resp.status_code == 200
        txs = resp.json()["transactions"]
        assert txs[0]["txHash"] == tx_hash(1)
        assert txs[0]["from"] == SAFE
        assert txs[0]["isExecuted"] is True
        assert txs[0]["stateChanges"][0]["tokenAddress"] == "0x" + "00" * 20
        assert txs[1]["tokenInfo"]["symbol"] == "TKN"
        assert txs[1]["dataDecoded"]["method"] == "Token Outgoing"

    def test_defaults_passed_through(self):
        mock = AsyncMock(return_value=[])
        with patch.object(history_service, "get_transactions", mock):
            resp = client.get("/transactions/blockchain", params={"safeAddress": SAFE})

        assert resp.status_code == 200
        assert resp.json() == {"transactions": []}
        mock.assert_awaited_once_with(SAFE, 1, 100, 0)

    def test_safe_endpoint(self):
        mock = AsyncMock(return_value=[])
        with patch.object(history_service, "get_safe_transactions", mock):
            resp = client.get(
                "/transactions/safe",
                params={"safeAddress": SAFE, "chainId": 137, "limit": 20, "offset": 40},
            )

        assert resp.status_code == 200
        mock.assert_awaited_once_with(SAFE, 137, 20, 40)

    def test_invalid_address_is_400(self):
        resp = client.get("/transactions/blockchain", params={"safeAddress": "nope"})
        assert resp.status_code == 400

    def test_unsupported_chain_is_400(self):
        resp = client.get("/transactions/blockchain", params={"safeAddress": SAFE, "chainId": 56})
        assert resp.status_code == 400
        assert "Unsupported chain" in resp.json()["detail"]

    def test_missing_address_is_422(self):
        resp = client.get("/transactions/blockchain")
        assert resp.status_code == 422


class TestChainsEndpoint:
    def test_lists_supported_chains(self):
        resp = client.get("/chains")
        chains = {c["chainId"]: c for c in resp.json()["chains"]}
        assert chains[1]["nativeSymbol"] == "ETH"
        assert chains[100]["nativeSymbol"] == "xDAI"
        assert 56 not in chains
