from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.domain.mint_status import MintStatus
from db.base import Base
from db.utils.types import JSONType, UUIDType
from db.utils.time import utcnow


class MintRequest(Base):
    __tablename__ = "mint_requests"
    __table_args__ = (Index("idx_mint_requests_status_updated", "status", "updated_at"),)

    id: Mapped[uuid.UUID] = mapped_column(UUIDType, primary_key=True, default=uuid.uuid4)

    wallet_address: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    theme: Mapped[str] = mapped_column(String(32), nullable=False)
    rarity: Mapped[str] = mapped_column(String(32), nullable=False)

    status: Mapped[str] = mapped_column(String(32), nullable=False, default=MintStatus.PENDING.value)

    # conversational backend identities
    session_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    run_id: Mapped[str | None] = mapped_column(String(128), nullable=True)
    run_status: Mapped[str | None] = mapped_column(String(32), nullable=True)

    transaction_hash: Mapped[str | None] = mapped_column(String(66), nullable=True)
    block_number: Mapped[str | None] = mapped_column(String(32), nullable=True)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    metadata_hash: Mapped[str | None] = mapped_column(String(128), nullable=True)

    reply_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    credits: Mapped[dict | None] = mapped_column(JSONType, nullable=True)

    error_code: Mapped[str | None] = mapped_column(String(64), nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )
