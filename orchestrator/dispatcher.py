from __future__ import annotations

import contextvars
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any

from app.core.langsmith import trace_tool
from orchestrator.mint_guard import blocked_output, is_mint_call, partition_batch, should_block
from orchestrator.state import DispatchResult, MintState, ToolCall, ToolOutput
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

# Largest integer a JSON consumer using IEEE doubles represents exactly.
MAX_SAFE_INTEGER = 2**53 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def json_safe(value: Any) -> Any:
    """
    Make a handler result JSON-serializable without precision loss.

    Integers outside the double-safe range, Decimals and bytes become strings.
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, int):
        return str(value) if abs(value) > MAX_SAFE_INTEGER else value
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    if isinstance(value, dict):
        return {str(k): json_safe(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [json_safe(v) for v in value]
    return value


class ToolDispatcher:
    def __init__(self, registry: ToolRegistry, *, max_workers: int | None = None) -> None:
        self.registry = registry
        self.max_workers = max_workers

    def dispatch(self, call: ToolCall, state: MintState) -> DispatchResult:
        """
        Resolve a single ToolCall, honouring the mint guard.
        """
        if should_block(call.name, state):
            return self._blocked(call)
        if is_mint_call(call.name):
            state.latch()
        return self._execute(call, state)

    def dispatch_batch(self, calls: list[ToolCall], state: MintState) -> list[DispatchResult]:
        """
        Resolve every call of a requires_action batch.

        Allowed calls run concurrently; the method returns only after all of
        them finished. Results keep the order of `calls`.
        """
        allowed, blocked = partition_batch(calls, state)
        blocked_ids = {c.id for c in blocked}

        for call in blocked:
            logger.info("Mint guard blocked tool_call_id=%s tool=%s", call.id, call.name)

        executed: dict[str, DispatchResult] = {}
        if allowed:
            workers = self.max_workers or len(allowed)
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tool") as pool:
                # workers see the caller's contextvars (mint id, agent run id)
                futures = [
                    pool.submit(contextvars.copy_context().run, self._execute, call, state) for call in allowed
                ]
                for future in futures:
                    result = future.result()
                    executed[result.call.id] = result

        results: list[DispatchResult] = []
        for call in calls:
            if call.id in blocked_ids:
                results.append(self._blocked(call))
            else:
                results.append(executed[call.id])
        return results

    def _blocked(self, call: ToolCall) -> DispatchResult:
        now = _utcnow()
        output = blocked_output(call)
        return DispatchResult(
            call=call,
            output=output,
            response=json.loads(output.output),
            blocked=True,
            started_at=now,
            ended_at=now,
        )

    def _execute(self, call: ToolCall, state: MintState) -> DispatchResult:
        started_at = _utcnow()
        spec = self.registry.get(call.name)
        if spec is None:
            logger.warning("Tool %s not found, skipping tool_call_id=%s", call.name, call.id)
            return DispatchResult(call=call, skipped=True, started_at=started_at, ended_at=_utcnow())

        logger.info("Dispatching tool=%s tool_call_id=%s", call.name, call.id)
        try:
            response = trace_tool(call.name, spec.invoke)(call.arguments)
        except Exception as e:
            logger.exception("Tool %s failed tool_call_id=%s", call.name, call.id)
            message = str(e) or type(e).__name__
            if is_mint_call(call.name):
                state.mint_error = message
            return DispatchResult(
                call=call,
                output=ToolOutput(tool_call_id=call.id, output=f"Error: {message}"),
                error=message,
                started_at=started_at,
                ended_at=_utcnow(),
            )

        safe = json_safe(response)
        if is_mint_call(call.name) and isinstance(safe, dict):
            state.mint_result = safe
        return DispatchResult(
            call=call,
            output=ToolOutput(tool_call_id=call.id, output=json.dumps(safe, default=str)),
            response=safe,
            started_at=started_at,
            ended_at=_utcnow(),
        )
