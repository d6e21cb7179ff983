from __future__ import annotations

from typing import Protocol

from orchestrator.state import RunSnapshot, SessionMessage, ToolOutput


class AgentBackend(Protocol):
    """
    Conversational backend primitives used by the session manager and run driver.

    get_latest_run_state hides how a Run is refreshed (list-with-limit-1 on
    the Assistants API); push-based backends can implement it from events.
    """

    def create_session(self) -> str: ...

    def append_message(self, session_id: str, role: str, content: str) -> None: ...

    def create_run(self, session_id: str) -> RunSnapshot: ...

    def get_latest_run_state(self, session_id: str) -> RunSnapshot | None: ...

    def submit_tool_outputs(
        self,
        session_id: str,
        run_id: str,
        outputs: list[ToolOutput],
    ) -> RunSnapshot: ...

    def list_messages(self, session_id: str) -> list[SessionMessage]: ...
