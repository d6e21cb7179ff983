from __future__ import annotations

import json
import threading
from decimal import Decimal

from orchestrator.dispatcher import MAX_SAFE_INTEGER, ToolDispatcher, json_safe
from orchestrator.errors import MINTING_ALREADY_COMPLETED, ToolHandlerError
from orchestrator.state import MintState
from tests.fakes import MINT_RESULT, CountingHandler, call, make_registry


def test_json_safe_stringifies_values_doubles_cannot_hold():
    big = 2**64 - 1
    out = json_safe({"wei": big, "small": 7, "price": Decimal("0.01"), "raw": b"\x01\x02", "ok": True})

    assert out == {"wei": str(big), "small": 7, "price": "0.01", "raw": "0x0102", "ok": True}
    assert json_safe(MAX_SAFE_INTEGER) == MAX_SAFE_INTEGER
    assert json_safe(-(MAX_SAFE_INTEGER + 1)) == str(-(MAX_SAFE_INTEGER + 1))
    assert json_safe([1, (2, 2**60)]) == [1, [2, str(2**60)]]


def test_batch_runs_allowed_calls_concurrently_and_keeps_order():
    barrier = threading.Barrier(2, timeout=5)

    def waits_for_peer(args):
        barrier.wait()
        return {"ok": True}

    dispatcher = ToolDispatcher(make_registry(get_balance=waits_for_peer, get_nft_balance=waits_for_peer))
    results = dispatcher.dispatch_batch(
        [call("a", "get-nft-balance"), call("b", "get-balance")],
        MintState(),
    )

    assert [r.call.id for r in results] == ["a", "b"]
    assert all(r.error is None for r in results)
    assert [r.output.output for r in results] == ['{"ok": true}', '{"ok": true}']


def test_unknown_tool_is_skipped_without_output():
    dispatcher = ToolDispatcher(make_registry(get_balance=CountingHandler()))
    results = dispatcher.dispatch_batch([call("x", "does-not-exist"), call("y", "get-balance")], MintState())

    assert results[0].skipped is True
    assert results[0].output is None
    assert results[1].output is not None


def test_handler_exception_becomes_error_output_and_batch_completes():
    failing = CountingHandler(exc=ToolHandlerError("boom"))
    healthy = CountingHandler(result={"balanceWei": "1"})
    dispatcher = ToolDispatcher(make_registry(check_payment=failing, get_balance=healthy))

    results = dispatcher.dispatch_batch([call("a", "check-payment"), call("b", "get-balance")], MintState())

    assert results[0].output.output == "Error: boom"
    assert results[0].error == "boom"
    assert json.loads(results[1].output.output) == {"balanceWei": "1"}


def test_large_integers_in_outputs_are_decimal_strings():
    dispatcher = ToolDispatcher(make_registry(get_balance=CountingHandler(result={"balanceWei": 10**20})))
    result = dispatcher.dispatch(call("a", "get-balance"), MintState())

    assert json.loads(result.output.output) == {"balanceWei": str(10**20)}


def test_second_mint_in_same_batch_never_reaches_handler():
    mint = CountingHandler(result=MINT_RESULT)
    dispatcher = ToolDispatcher(make_registry(mint_and_upload=mint))
    state = MintState()

    results = dispatcher.dispatch_batch(
        [call("m1", "mint-and-upload", to="0x1"), call("m2", "mint-and-upload", to="0x1")],
        state,
    )

    assert mint.count == 1
    assert results[0].blocked is False
    assert results[1].blocked is True
    assert json.loads(results[1].output.output)["error"] == MINTING_ALREADY_COMPLETED
    assert state.mint_result == MINT_RESULT


def test_failed_mint_still_latches_and_records_error():
    mint = CountingHandler(exc=RuntimeError("pinning failed"))
    dispatcher = ToolDispatcher(make_registry(mint_and_upload=mint))
    state = MintState()

    first = dispatcher.dispatch(call("m1", "mint-and-upload"), state)
    second = dispatcher.dispatch(call("m2", "mint-and-upload"), state)

    assert first.output.output == "Error: pinning failed"
    assert second.blocked is True
    assert mint.count == 1
    assert state.minting_completed is True
    assert state.mint_error == "pinning failed"
    assert state.mint_result is None


def test_invalid_json_arguments_are_reported_as_error_output():
    handler = CountingHandler()
    dispatcher = ToolDispatcher(make_registry(get_balance=handler))
    bad = call("a", "get-balance").model_copy(update={"arguments": "{not json"})

    result = dispatcher.dispatch(bad, MintState())

    assert result.output.output.startswith("Error: invalid arguments for get-balance")
    assert handler.count == 0
