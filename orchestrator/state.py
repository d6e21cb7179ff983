from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field


class AgentRunStatus(str, Enum):
    QUEUED = "queued"
    IN_PROGRESS = "in_progress"
    REQUIRES_ACTION = "requires_action"
    CANCELLING = "cancelling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    INCOMPLETE = "incomplete"


TERMINAL = {
    AgentRunStatus.COMPLETED,
    AgentRunStatus.FAILED,
    AgentRunStatus.CANCELLED,
    AgentRunStatus.EXPIRED,
    AgentRunStatus.INCOMPLETE,
}


def is_terminal(status: AgentRunStatus) -> bool:
    return status in TERMINAL


class Session(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str


class ToolCall(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    # raw JSON string as sent by the agent
    arguments: str = "{}"


class ToolOutput(BaseModel):
    model_config = ConfigDict(frozen=True)

    tool_call_id: str
    output: str


class RunSnapshot(BaseModel):
    """Latest backend view of a Run."""

    id: str
    status: AgentRunStatus
    tool_calls: list[ToolCall] = Field(default_factory=list)
    last_error: str | None = None


class ContentBlock(BaseModel):
    type: str = "text"
    value: str


class SessionMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: list[ContentBlock] = Field(default_factory=list)


class DispatchResult(BaseModel):
    """One resolved ToolCall of a batch, kept for the audit trail."""

    call: ToolCall
    output: ToolOutput | None = None
    response: Any = None
    error: str | None = None
    blocked: bool = False
    skipped: bool = False
    started_at: datetime
    ended_at: datetime


class MintState(BaseModel):
    """
    Per-Run mint latch. Never shared across Runs.

    Once minting_completed is set it stays set for the remainder of the Run.
    """

    minting_completed: bool = False
    mint_result: Dict[str, Any] | None = None
    mint_error: str | None = None

    def latch(self) -> None:
        self.minting_completed = True
