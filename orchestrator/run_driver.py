from __future__ import annotations

import logging
import time
from typing import Callable

from pydantic import BaseModel

from orchestrator.backend import AgentBackend
from orchestrator.dispatcher import ToolDispatcher
from orchestrator.state import (
    AgentRunStatus,
    ContentBlock,
    DispatchResult,
    MintState,
    RunSnapshot,
    Session,
    is_terminal,
)

logger = logging.getLogger(__name__)

BatchHook = Callable[[RunSnapshot, list[DispatchResult]], None]


class RunOutcome(BaseModel):
    run_id: str
    status: AgentRunStatus
    reply: ContentBlock
    last_error: str | None = None

    @property
    def completed(self) -> bool:
        return self.status == AgentRunStatus.COMPLETED


def failure_message(last_error: str | None) -> str:
    return f"I encountered an error: {last_error or 'unknown error'}"


def no_response_message(status: AgentRunStatus) -> str:
    return f"No Response from assistant. Final status: {status.value}"


class RunDriver:
    """
    Cooperative polling loop over one Run.

    The driver owns nothing but the Run it is given; the MintState latch is
    passed in per call so it never outlives (or leaks across) a Run.
    """

    def __init__(
        self,
        backend: AgentBackend,
        dispatcher: ToolDispatcher,
        *,
        poll_interval_s: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
        on_batch: BatchHook | None = None,
    ) -> None:
        self.backend = backend
        self.dispatcher = dispatcher
        self.poll_interval_s = poll_interval_s
        self.sleep = sleep
        self.on_batch = on_batch

    def drive(self, session: Session, run: RunSnapshot, state: MintState | None = None) -> RunOutcome:
        state = state if state is not None else MintState()
        logger.info("Driving run_id=%s initial_status=%s", run.id, run.status.value)

        while not is_terminal(run.status):
            if run.status == AgentRunStatus.REQUIRES_ACTION:
                run = self._resolve_required_action(session, run, state)
            else:
                run = self._refresh(session, run)

        logger.info("Run finished run_id=%s status=%s", run.id, run.status.value)

        if run.status == AgentRunStatus.FAILED:
            return self._failed(session, run)
        if run.status == AgentRunStatus.COMPLETED:
            reply = self._latest_assistant_reply(session)
            if reply is not None:
                return RunOutcome(run_id=run.id, status=run.status, reply=reply)

        return RunOutcome(
            run_id=run.id,
            status=run.status,
            reply=ContentBlock(type="text", value=no_response_message(run.status)),
            last_error=run.last_error,
        )

    def _refresh(self, session: Session, run: RunSnapshot) -> RunSnapshot:
        self.sleep(self.poll_interval_s)
        latest = self.backend.get_latest_run_state(session.id)
        if latest is None:
            return run
        if latest.status != run.status:
            logger.info("Run status run_id=%s %s -> %s", latest.id, run.status.value, latest.status.value)
        return latest

    def _resolve_required_action(self, session: Session, run: RunSnapshot, state: MintState) -> RunSnapshot:
        if not run.tool_calls:
            return self._refresh(session, run)

        logger.info(
            "Run requires action run_id=%s tools=%s",
            run.id,
            [c.name for c in run.tool_calls],
        )
        results = self.dispatcher.dispatch_batch(run.tool_calls, state)
        if self.on_batch is not None:
            self.on_batch(run, results)

        outputs = [r.output for r in results if r.output is not None]
        if not outputs:
            # nothing to submit; let the backend move the run on its own
            return self._refresh(session, run)

        return self.backend.submit_tool_outputs(session.id, run.id, outputs)

    def _failed(self, session: Session, run: RunSnapshot) -> RunOutcome:
        message = failure_message(run.last_error)
        logger.warning("Run failed run_id=%s error=%s", run.id, run.last_error)
        self.backend.append_message(session.id, "assistant", message)
        return RunOutcome(
            run_id=run.id,
            status=run.status,
            reply=ContentBlock(type="text", value=message),
            last_error=run.last_error,
        )

    def _latest_assistant_reply(self, session: Session) -> ContentBlock | None:
        messages = self.backend.list_messages(session.id)
        for message in reversed(messages):
            if message.role != "assistant":
                continue
            return message.content[0] if message.content else None
        return None
