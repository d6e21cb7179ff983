from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base
from db.utils.types import JSONType, UUIDType
from db.utils.time import utcnow


class ToolCall(Base):
    __tablename__ = "tool_calls"
    __table_args__ = (Index("idx_tool_calls_tool_name_started_at", "tool_name", "started_at"),)

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)

    mint_request_id: Mapped[uuid.UUID] = mapped_column(
        UUIDType,
        ForeignKey("mint_requests.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # id assigned by the agent backend, unique within one run
    tool_call_id: Mapped[str] = mapped_column(String(128), nullable=False)
    tool_name: Mapped[str] = mapped_column(String(64), nullable=False)

    request: Mapped[dict[str, Any] | None] = mapped_column(JSONType, nullable=True)
    response: Mapped[Any | None] = mapped_column(JSONType, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    ended_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
