from __future__ import annotations

import logging
from threading import Lock
from typing import Any

from openai import OpenAI, OpenAIError

from app.config import Settings, get_settings
from app.core.langsmith import maybe_wrap_openai
from llm.prompts import ASSISTANT_INSTRUCTIONS
from orchestrator.errors import BackendError, ToolHandlerError
from orchestrator.state import (
    AgentRunStatus,
    ContentBlock,
    RunSnapshot,
    SessionMessage,
    ToolCall,
    ToolOutput,
)

logger = logging.getLogger(__name__)


def _build_client(settings: Settings) -> OpenAI:
    if not settings.openai_api_key:
        raise BackendError("OPENAI_API_KEY is not set")
    return maybe_wrap_openai(OpenAI(api_key=settings.openai_api_key))


def _to_snapshot(run: Any) -> RunSnapshot:
    try:
        status = AgentRunStatus(run.status)
    except ValueError as e:
        raise BackendError(f"Unknown run status from backend: {run.status}") from e

    tool_calls: list[ToolCall] = []
    required = getattr(run, "required_action", None)
    submit = getattr(required, "submit_tool_outputs", None) if required else None
    for tc in getattr(submit, "tool_calls", None) or []:
        tool_calls.append(ToolCall(id=tc.id, name=tc.function.name, arguments=tc.function.arguments or "{}"))

    last_error = getattr(run, "last_error", None)
    return RunSnapshot(
        id=run.id,
        status=status,
        tool_calls=tool_calls,
        last_error=getattr(last_error, "message", None) if last_error else None,
    )


def _to_content_block(block: Any) -> ContentBlock:
    if block.type == "text":
        return ContentBlock(type="text", value=block.text.value)
    if block.type == "image_file":
        return ContentBlock(type="image_file", value=block.image_file.file_id)
    if block.type == "image_url":
        return ContentBlock(type="image_url", value=block.image_url.url)
    return ContentBlock(type=block.type, value=str(block))


class OpenAIAssistantsBackend:
    """
    AgentBackend over the OpenAI Assistants API (threads = sessions).
    """

    def __init__(
        self,
        *,
        tools: list[dict[str, Any]],
        settings: Settings | None = None,
        client: OpenAI | None = None,
        instructions: str = ASSISTANT_INSTRUCTIONS,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or _build_client(self.settings)
        self.tools = tools
        self.instructions = instructions
        self._assistant_id: str | None = self.settings.openai_assistant_id or None
        self._lock = Lock()

    def assistant_id(self) -> str:
        with self._lock:
            if self._assistant_id:
                return self._assistant_id
            try:
                assistant = self.client.beta.assistants.create(
                    model=self.settings.OPENAI_MODEL,
                    name="forge-mint-assistant",
                    instructions=self.instructions,
                    tools=self.tools,
                )
            except OpenAIError as e:
                raise BackendError(f"assistant create failed: {e}") from e
            logger.info("Assistant created assistant_id=%s", assistant.id)
            self._assistant_id = assistant.id
            return assistant.id

    def create_session(self) -> str:
        try:
            thread = self.client.beta.threads.create()
        except OpenAIError as e:
            raise BackendError(f"thread create failed: {e}") from e
        return thread.id

    def append_message(self, session_id: str, role: str, content: str) -> None:
        try:
            self.client.beta.threads.messages.create(thread_id=session_id, role=role, content=content)
        except OpenAIError as e:
            raise BackendError(f"message create failed: {e}") from e

    def create_run(self, session_id: str) -> RunSnapshot:
        assistant_id = self.assistant_id()
        try:
            run = self.client.beta.threads.runs.create(thread_id=session_id, assistant_id=assistant_id)
        except OpenAIError as e:
            raise BackendError(f"run create failed: {e}") from e
        return _to_snapshot(run)

    def get_latest_run_state(self, session_id: str) -> RunSnapshot | None:
        try:
            page = self.client.beta.threads.runs.list(thread_id=session_id, limit=1)
        except OpenAIError as e:
            raise BackendError(f"run list failed: {e}") from e
        if not page.data:
            return None
        return _to_snapshot(page.data[0])

    def submit_tool_outputs(self, session_id: str, run_id: str, outputs: list[ToolOutput]) -> RunSnapshot:
        try:
            run = self.client.beta.threads.runs.submit_tool_outputs(
                run_id=run_id,
                thread_id=session_id,
                tool_outputs=[o.model_dump() for o in outputs],
            )
        except OpenAIError as e:
            raise BackendError(f"submit_tool_outputs failed: {e}") from e
        return _to_snapshot(run)

    def list_messages(self, session_id: str) -> list[SessionMessage]:
        """The newest page of the thread, returned oldest first."""
        try:
            page = self.client.beta.threads.messages.list(thread_id=session_id, order="desc", limit=100)
        except OpenAIError as e:
            raise BackendError(f"message list failed: {e}") from e
        return [
            SessionMessage(role=m.role, content=[_to_content_block(b) for b in m.content])
            for m in reversed(page.data)
        ]


class ImageGenerator:
    def __init__(self, settings: Settings | None = None, client: OpenAI | None = None) -> None:
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> OpenAI:
        if self._client is None:
            self._client = _build_client(self.settings)
        return self._client

    def generate(self, prompt: str) -> str:
        logger.info("Image generation start model=%s", self.settings.image_model)
        response = self.client.images.generate(
            model=self.settings.image_model,
            prompt=prompt,
            size=self.settings.image_size,
            quality="standard",
            n=1,
        )
        data = response.data or []
        if not data or not data[0].url:
            raise ToolHandlerError("Image response data is empty")
        logger.info("Image generated url_len=%s", len(data[0].url))
        return data[0].url
