from __future__ import annotations

import logging

from orchestrator.backend import AgentBackend
from orchestrator.errors import (
    InvalidSessionError,
    RunCreationError,
    SessionCreationError,
    TransportError,
)
from orchestrator.state import RunSnapshot, Session

logger = logging.getLogger(__name__)


class AgentSessionManager:
    def __init__(self, backend: AgentBackend) -> None:
        self.backend = backend

    def open(self, task: str) -> Session:
        """
        Allocate a session and append the task as the first user message.
        """
        try:
            session_id = self.backend.create_session()
        except TransportError as e:
            raise SessionCreationError(f"Failed to create session: {e}") from e

        if not session_id:
            raise SessionCreationError("Failed to create session: no id returned")

        try:
            self.backend.append_message(session_id, "user", task)
        except TransportError as e:
            raise SessionCreationError(f"Failed to append task to session {session_id}: {e}") from e

        logger.info("Session opened session_id=%s", session_id)
        return Session(id=session_id)

    def start_run(self, session: Session) -> RunSnapshot:
        if not session.id:
            raise InvalidSessionError("Session id is empty - cannot create run")

        try:
            run = self.backend.create_run(session.id)
        except TransportError as e:
            raise RunCreationError(f"Failed to create run for session {session.id}: {e}") from e

        logger.info("Run created run_id=%s status=%s", run.id, run.status.value)
        return run
