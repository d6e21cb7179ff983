from __future__ import annotations

import uuid
from unittest.mock import MagicMock

import pytest

from app.dependencies import get_mint_deps
from app.services.mint_service import MintServiceDeps, mint_nft
from credits.reconciliation import CreditReconciler
from db.models import MintRequest
from tests.fakes import (
    MINT_RESULT,
    CountingHandler,
    ScriptedBackend,
    ScriptedReader,
    SleepRecorder,
    call,
    make_registry,
    reading,
    run,
)

WALLET = "0x000000000000000000000000000000000000dEaD"


def _reconciler(*primary_readings, fallback=None):
    return CreditReconciler(
        ScriptedReader(*primary_readings),
        fallback or ScriptedReader(None),
        sleep=SleepRecorder(),
    )


@pytest.fixture
def mint_handler():
    return CountingHandler(result=MINT_RESULT)


@pytest.fixture
def registry(mint_handler):
    return make_registry(
        generate_image=CountingHandler(result={"success": True, "imageUrl": "https://images.example/cat.png"}),
        mint_and_upload=mint_handler,
        use_minting_credit=CountingHandler(result={"success": True}),
    )


def _override(app, backend, registry, reconciler):
    deps = MintServiceDeps(
        backend=backend,
        registry=registry,
        reconciler=reconciler,
        poll_interval_s=0,
        sleep=SleepRecorder(),
    )
    app.dependency_overrides[get_mint_deps] = lambda: deps


def test_mint_happy_path_persists_outcome_and_audit(app, client, registry, mint_handler):
    backend = ScriptedBackend(
        [
            run("queued"),
            run("in_progress"),
            run("requires_action", call("g1", "generate-image", prompt="cat")),
            run("requires_action", call("m1", "mint-and-upload", to=WALLET)),
            run("requires_action", call("u1", "use-minting-credit", userAddress=WALLET)),
            run("completed"),
        ],
        reply="All done",
    )
    _override(app, backend, registry, _reconciler(reading(True, 2), reading(True, 1)))

    resp = client.post("/v1/mint", json={"walletAddress": WALLET.lower(), "theme": "space", "rarity": "rare"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["walletAddress"] == WALLET
    assert body["transactionHash"] == MINT_RESULT["transactionHash"]
    assert body["blockNumber"] == "12345"
    assert body["metadataHash"] == "bafymetadata"
    assert body["imageUrl"] == MINT_RESULT["imageGatewayUrl"]
    assert body["credits"] == {"canMint": True, "credits": 1, "source": "authoritative"}
    assert mint_handler.count == 1

    mint = client.get(f"/v1/mints/{body['mintId']}").json()
    assert mint["status"] == "SUCCEEDED"
    assert mint["theme"] == "space"
    assert mint["rarity"] == "rare"
    assert mint["session_id"] == "thread_1"
    assert mint["run_status"] == "completed"

    tool_calls = client.get(f"/v1/mints/{body['mintId']}/tool-calls").json()
    assert [t["tool_name"] for t in tool_calls] == ["generate-image", "mint-and-upload", "use-minting-credit"]
    assert tool_calls[1]["request"] == {"to": WALLET}


def test_mint_without_credits_is_rejected_before_any_session(app, client, registry):
    backend = ScriptedBackend([])
    _override(app, backend, registry, _reconciler(reading(False, 0)))

    resp = client.post("/v1/mint", json={"walletAddress": WALLET})

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "USER_NO_CREDITS"
    assert backend.messages == []

    mint = client.get(f"/v1/mints/{body['mintId']}").json()
    assert mint["status"] == "REJECTED"
    assert mint["error_code"] == "USER_NO_CREDITS"


def test_duplicate_mint_in_one_batch_is_blocked_and_audited(app, client, registry, mint_handler):
    backend = ScriptedBackend(
        [
            run("requires_action", call("m1", "mint-and-upload", to=WALLET), call("m2", "mint-and-upload", to=WALLET)),
            run("completed"),
        ]
    )
    _override(app, backend, registry, _reconciler(reading(True, 1)))

    body = client.post("/v1/mint", json={"walletAddress": WALLET}).json()

    assert body["success"] is True
    assert mint_handler.count == 1
    tool_calls = client.get(f"/v1/mints/{body['mintId']}/tool-calls").json()
    blocked = {t["tool_call_id"]: t["blocked"] for t in tool_calls}
    assert blocked == {"m1": False, "m2": True}
    assert tool_calls[[t["tool_call_id"] for t in tool_calls].index("m2")]["response"]["error"] == (
        "MINTING_ALREADY_COMPLETED"
    )


def test_agent_failure_is_a_structured_400(app, client, registry):
    backend = ScriptedBackend([run("in_progress"), run("failed", last_error="model overloaded")])
    _override(app, backend, registry, _reconciler(reading(True, 1)))

    resp = client.post("/v1/mint", json={"walletAddress": WALLET})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "AGENT_FAILED"
    assert body["message"] == "I encountered an error: model overloaded"
    assert body["credits"] is None
    assert client.get(f"/v1/mints/{body['mintId']}").json()["status"] == "FAILED"


def test_failed_mint_tool_reports_minting_failed_and_refreshes_credits(app, client):
    registry = make_registry(mint_and_upload=CountingHandler(exc=RuntimeError("pinning failed")))
    backend = ScriptedBackend([run("requires_action", call("m1", "mint-and-upload")), run("completed")])
    _override(app, backend, registry, _reconciler(reading(True, 1)))

    resp = client.post("/v1/mint", json={"walletAddress": WALLET})

    assert resp.status_code == 400
    body = resp.json()
    assert body["error"] == "MINTING_FAILED"
    assert body["message"] == "pinning failed"
    assert body["credits"]["credits"] == 1


def test_reply_text_is_decoded_when_no_mint_result(app, client, registry):
    tx = "0x" + "ef" * 32
    backend = ScriptedBackend([run("completed")], reply=f"NFT minted successfully! Transaction hash: {tx}")
    _override(app, backend, registry, _reconciler(reading(True, 1)))

    body = client.post("/v1/mint", json={"walletAddress": WALLET}).json()

    assert body["success"] is True
    assert body["transactionHash"] == tx
    assert body["credits"] is None


def test_run_ending_without_response(app, client, registry):
    backend = ScriptedBackend([run("expired")])
    _override(app, backend, registry, _reconciler(reading(True, 1)))

    resp = client.post("/v1/mint", json={"walletAddress": WALLET})

    assert resp.status_code == 400
    assert resp.json()["error"] == "NO_RESPONSE"


def test_session_creation_failure_is_502_and_persisted(app, client, registry, db):
    backend = ScriptedBackend([], fail_on={"create_session"})
    _override(app, backend, registry, _reconciler(reading(True, 1)))

    resp = client.post("/v1/mint", json={"walletAddress": WALLET})

    assert resp.status_code == 502
    assert resp.json()["error"] == "TRANSPORT_ERROR"
    mint = db.query(MintRequest).one()
    assert mint.status == "FAILED"
    assert mint.error_code == "TRANSPORT_ERROR"


def test_credits_unavailable_is_503(app, client, registry):
    _override(app, ScriptedBackend([]), registry, _reconciler(None))

    resp = client.post("/v1/mint", json={"walletAddress": WALLET})

    assert resp.status_code == 503
    assert resp.json()["error"] == "CREDITS_UNAVAILABLE"


def test_invalid_wallet_is_422(app, client, registry):
    _override(app, ScriptedBackend([]), registry, _reconciler(reading(True, 1)))

    resp = client.post("/v1/mint", json={"walletAddress": "0xnothex"})

    assert resp.status_code == 422


def test_invalid_rarity_is_422(app, client, registry):
    _override(app, ScriptedBackend([]), registry, _reconciler(reading(True, 1)))

    resp = client.post("/v1/mint", json={"walletAddress": WALLET, "rarity": "mythic"})

    assert resp.status_code == 422


def test_unknown_mint_is_404(client):
    missing = uuid.uuid4()

    assert client.get(f"/v1/mints/{missing}").status_code == 404
    assert client.get(f"/v1/mints/{missing}/tool-calls").status_code == 404


def test_unexpected_error_while_driving_marks_mint_failed(registry, db):
    backend = ScriptedBackend([run("queued")])
    backend.get_latest_run_state = MagicMock(side_effect=RuntimeError("poll exploded"))
    deps = MintServiceDeps(
        backend=backend,
        registry=registry,
        reconciler=_reconciler(reading(True, 1)),
        poll_interval_s=0,
        sleep=SleepRecorder(),
    )

    with pytest.raises(RuntimeError):
        mint_nft(db, wallet_address=WALLET, theme=None, rarity="common", deps=deps)

    db.expire_all()
    mint = db.query(MintRequest).one()
    assert mint.status == "FAILED"
    assert mint.error_code == "INTERNAL_ERROR"
    assert mint.error_message == "poll exploded"
