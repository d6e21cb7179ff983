from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from app.core.context import get_agent_run_id, get_mint_id
from app.config import get_settings

# `extra=` keys promoted into JSON log lines
EXTRA_FIELDS = ("tool_name", "tool_call_id", "address", "attempt", "source")


def utc_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MintContextFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.mint_id = get_mint_id() or "-"
        record.agent_run_id = get_agent_run_id() or "-"
        return True


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "ts": utc_iso(),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
            "mint_id": getattr(record, "mint_id", "-"),
            "agent_run_id": getattr(record, "agent_run_id", "-"),
            "thread": record.threadName,
        }
        for key in EXTRA_FIELDS:
            if hasattr(record, key):
                payload[key] = getattr(record, key)
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        mint_id = getattr(record, "mint_id", "-")
        run_id = getattr(record, "agent_run_id", "-")
        base = f"{utc_iso()} {record.levelname:<7} [{mint_id}/{run_id}] {record.name}: {record.getMessage()}"
        if record.exc_info:
            return base + "\n" + self.formatException(record.exc_info)
        return base


def configure_logging() -> None:
    """
    Install a single stdout handler on the root logger.

    Safe to call more than once; existing root handlers are replaced.
    """
    settings = get_settings()

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(getattr(logging, settings.log_level.upper(), logging.INFO))

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(MintContextFilter())
    handler.setFormatter(JsonFormatter() if settings.log_json else TextFormatter())
    root.addHandler(handler)

    for noisy in ("uvicorn.access", "httpx", "openai", "web3", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)
