from __future__ import annotations

import json

from orchestrator.errors import MINTING_ALREADY_COMPLETED
from orchestrator.state import MintState, ToolCall, ToolOutput

MINT_TOOL_NAME = "mint-and-upload"


def is_mint_call(tool_name: str) -> bool:
    return tool_name == MINT_TOOL_NAME


def should_block(tool_name: str, state: MintState) -> bool:
    return is_mint_call(tool_name) and state.minting_completed


def blocked_output(call: ToolCall) -> ToolOutput:
    payload = {
        "success": False,
        "error": MINTING_ALREADY_COMPLETED,
        "message": "An NFT has already been minted for this request. Do not call mint-and-upload again.",
    }
    return ToolOutput(tool_call_id=call.id, output=json.dumps(payload))


def partition_batch(calls: list[ToolCall], state: MintState) -> tuple[list[ToolCall], list[ToolCall]]:
    """
    Split a requires_action batch into (allowed, blocked).

    Mint calls are marked before any handler runs: the first mint call
    that passes the guard latches the state, so every later mint call in
    the same batch (and in later batches) is blocked.
    """
    allowed: list[ToolCall] = []
    blocked: list[ToolCall] = []
    for call in calls:
        if should_block(call.name, state):
            blocked.append(call)
            continue
        if is_mint_call(call.name):
            state.latch()
        allowed.append(call)
    return allowed, blocked
