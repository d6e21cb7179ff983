from __future__ import annotations

from contextvars import ContextVar
from typing import Optional

# mint request being served and the agent Run driving it
mint_id_ctx: ContextVar[Optional[str]] = ContextVar("mint_id", default=None)
agent_run_id_ctx: ContextVar[Optional[str]] = ContextVar("agent_run_id", default=None)


def set_mint_id(mint_id: Optional[str]) -> None:
    mint_id_ctx.set(mint_id)


def get_mint_id() -> Optional[str]:
    return mint_id_ctx.get()


def set_agent_run_id(run_id: Optional[str]) -> None:
    agent_run_id_ctx.set(run_id)


def get_agent_run_id() -> Optional[str]:
    return agent_run_id_ctx.get()


def clear_context() -> None:
    mint_id_ctx.set(None)
    agent_run_id_ctx.set(None)
