from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app.dependencies import get_chain_client, get_credit_reconciler
from chain.rpc import Web3RPCError
from credits.reconciliation import CreditReconciler
from tests.fakes import ScriptedReader, SleepRecorder, reading

WALLET = "0x000000000000000000000000000000000000dEaD"
PAYMENT = "0x1111111111111111111111111111111111111111"


@pytest.fixture
def chain():
    chain = MagicMock()
    chain.get_mint_price.return_value = 10**16
    chain.payment_address = PAYMENT
    chain.chain_id = 11011
    return chain


def _install(app, chain, primary, fallback=None):
    sleep = SleepRecorder()
    reconciler = CreditReconciler(primary, fallback or ScriptedReader(None), sleep=sleep)
    app.dependency_overrides[get_credit_reconciler] = lambda: reconciler
    app.dependency_overrides[get_chain_client] = lambda: chain
    return sleep


def test_get_credits_returns_decimal_strings(app, client, chain):
    _install(app, chain, ScriptedReader(reading(True, 3)))

    resp = client.get("/v1/credits", params={"address": WALLET})

    assert resp.status_code == 200
    assert resp.json() == {
        "userAddress": WALLET,
        "canMint": True,
        "paidTokenCount": "3",
        "mintPrice": str(10**16),
        "source": "authoritative",
        "contractAddress": PAYMENT,
        "chainId": 11011,
    }


def test_get_credits_reports_fallback_source(app, client, chain):
    _install(app, chain, ScriptedReader(None), ScriptedReader(reading(True, 1)))

    body = client.get("/v1/credits", params={"address": WALLET.lower()}).json()

    assert body["source"] == "fallback"
    assert body["canMint"] is True
    assert body["userAddress"] == WALLET


def test_refresh_retries_until_credits_visible(app, client, chain):
    sleep = _install(app, chain, ScriptedReader(reading(False, 0), reading(True, 1)))

    body = client.post("/v1/credits/refresh", params={"address": WALLET}).json()

    assert body["paidTokenCount"] == "1"
    assert body["canMint"] is True
    assert sleep.calls == [2.0]


def test_credits_unavailable_is_503(app, client, chain):
    _install(app, chain, ScriptedReader(None))

    resp = client.get("/v1/credits", params={"address": WALLET})

    assert resp.status_code == 503
    assert resp.json()["success"] is False


def test_invalid_address_is_422(app, client, chain):
    _install(app, chain, ScriptedReader(reading(True, 1)))

    assert client.get("/v1/credits", params={"address": "0x1234"}).status_code == 422


def test_mint_price(app, client, chain):
    app.dependency_overrides[get_chain_client] = lambda: chain

    body = client.get("/v1/mint-price").json()

    assert body == {
        "mintPrice": "10000000000000000",
        "mintPriceEth": "0.01",
        "contractAddress": PAYMENT,
        "chainId": 11011,
    }


def test_chain_error_is_502(app, client, chain):
    chain.get_mint_price.side_effect = Web3RPCError("mintPrice failed: connection refused")
    app.dependency_overrides[get_chain_client] = lambda: chain

    resp = client.get("/v1/mint-price")

    assert resp.status_code == 502
    assert resp.json()["error"] == "CHAIN_ERROR"
