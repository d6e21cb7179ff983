from __future__ import annotations

import logging
import os
from typing import Any, Callable

from app.config import get_settings
from app.core.context import get_agent_run_id, get_mint_id

logger = logging.getLogger(__name__)


def configure_langsmith() -> None:
    """Export the LangSmith env vars read by langsmith and langchain-core."""
    s = get_settings()
    if not s.langsmith_tracing:
        return

    env = {
        "LANGCHAIN_TRACING_V2": "true",
        "LANGCHAIN_PROJECT": s.langsmith_project,
        "LANGCHAIN_ENDPOINT": s.langsmith_endpoint,
    }
    if s.langsmith_api_key:
        env["LANGCHAIN_API_KEY"] = s.langsmith_api_key
    os.environ.update(env)
    logger.info("LangSmith tracing on project=%s", s.langsmith_project)


def maybe_wrap_openai(client: Any) -> Any:
    """
    Wrap an OpenAI client for LangSmith tracing when tracing is enabled.
    """
    if not get_settings().langsmith_tracing:
        return client

    from langsmith.wrappers import wrap_openai

    logger.info("LangSmith tracing enabled for OpenAI client")
    return wrap_openai(client)


def trace_tool(name: str, fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Wrap a tool invocation as a LangSmith "tool" run tagged with the
    current mint id and agent run id. Returns fn unchanged when tracing is off.
    """
    if not get_settings().langsmith_tracing:
        return fn

    from langsmith import traceable

    metadata = {"mint_id": get_mint_id(), "agent_run_id": get_agent_run_id()}
    return traceable(run_type="tool", name=name, metadata=metadata)(fn)
