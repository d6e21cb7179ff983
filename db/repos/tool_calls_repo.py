from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.tool_call import ToolCall
from db.utils.time import utcnow


def log_tool_call(
    db: Session,
    *,
    mint_request_id: uuid.UUID,
    tool_call_id: str,
    tool_name: str,
    request: dict[str, Any] | None = None,
    response: Any = None,
    error: str | None = None,
    blocked: bool = False,
    started_at: datetime | None = None,
    ended_at: datetime | None = None,
    commit: bool = True,
) -> ToolCall:
    if response is not None and error is not None:
        raise ValueError("log_tool_call: provide either response or error, not both")

    tool_call = ToolCall(
        mint_request_id=mint_request_id,
        tool_call_id=tool_call_id,
        tool_name=tool_name,
        request=request,
        response=response,
        error=error,
        blocked=blocked,
        started_at=started_at or utcnow(),
        ended_at=ended_at or (utcnow() if response is not None or error is not None else None),
    )
    db.add(tool_call)
    if commit:
        db.commit()
        db.refresh(tool_call)
    return tool_call


def list_tool_calls_for_mint(
    db: Session,
    *,
    mint_request_id: uuid.UUID,
) -> list[ToolCall]:
    stmt = (
        select(ToolCall)
        .where(ToolCall.mint_request_id == mint_request_id)
        .order_by(ToolCall.started_at.asc())
    )
    return list(db.execute(stmt).scalars().all())
