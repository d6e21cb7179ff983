from __future__ import annotations

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

Rarity = Literal["common", "rare", "epic", "legendary"]


class MintCreateRequest(BaseModel):
    walletAddress: str = Field(..., min_length=3, max_length=64)
    theme: str | None = Field(default=None, max_length=32)
    rarity: Rarity = "common"


class CreditSnapshot(BaseModel):
    canMint: bool
    credits: int
    source: str


class MintResponse(BaseModel):
    success: bool
    mintId: UUID | None = None
    walletAddress: str
    transactionHash: str | None = None
    blockNumber: str | None = None
    imageUrl: str | None = None
    metadataHash: str | None = None
    error: str | None = None
    message: str
    details: dict[str, Any] | None = None
    credits: CreditSnapshot | None = None


class MintRequestRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    wallet_address: str
    theme: str
    rarity: str
    status: str
    session_id: str | None = None
    run_id: str | None = None
    run_status: str | None = None
    transaction_hash: str | None = None
    block_number: str | None = None
    image_url: str | None = None
    metadata_hash: str | None = None
    reply_text: str | None = None
    credits: dict[str, Any] | None = None
    error_code: str | None = None
    error_message: str | None = None
    created_at: datetime
    updated_at: datetime


class ToolCallRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    mint_request_id: UUID
    tool_call_id: str
    tool_name: str
    request: dict[str, Any] | None
    response: Any | None
    error: str | None
    blocked: bool
    started_at: datetime
    ended_at: datetime | None
