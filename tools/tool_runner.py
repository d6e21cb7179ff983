from __future__ import annotations

import json
import logging
import uuid
from typing import Any

from sqlalchemy.orm import Session

from db.repos.tool_calls_repo import log_tool_call
from orchestrator.state import DispatchResult

logger = logging.getLogger(__name__)


def _request_payload(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw or "{}")
    except ValueError:
        return {"raw": raw}
    return parsed if isinstance(parsed, dict) else {"raw": raw}


def record_tool_results(
    db: Session,
    *,
    mint_request_id: uuid.UUID,
    results: list[DispatchResult],
) -> int:
    """
    Persist one audit row per dispatched tool call.

    - Skipped calls (unknown tools) are not recorded
    - A failing write is rolled back and logged; the run keeps going
    Returns the number of rows written.
    """
    written = 0
    for result in results:
        if result.skipped:
            continue
        try:
            log_tool_call(
                db,
                mint_request_id=mint_request_id,
                tool_call_id=result.call.id,
                tool_name=result.call.name,
                request=_request_payload(result.call.arguments),
                response=None if result.error else result.response,
                error=result.error,
                blocked=result.blocked,
                started_at=result.started_at,
                ended_at=result.ended_at,
            )
            written += 1
        except Exception:
            db.rollback()
            logger.exception(
                "tool_call.audit_failed",
                extra={"tool_call_id": result.call.id, "tool_name": result.call.name},
            )
    return written
