from __future__ import annotations

import uuid
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.domain.mint_status import MintStatus, assert_valid_transition
from db.models.mint_request import MintRequest

_UPDATABLE = {
    "session_id",
    "run_id",
    "run_status",
    "transaction_hash",
    "block_number",
    "image_url",
    "metadata_hash",
    "reply_text",
    "credits",
    "error_code",
    "error_message",
}


class MintRequestNotFoundError(Exception):
    pass


class MintStatusConflictError(Exception):
    pass


def create_mint_request(db: Session, *, wallet_address: str, theme: str, rarity: str) -> MintRequest:
    mint = MintRequest(
        wallet_address=wallet_address,
        theme=theme,
        rarity=rarity,
        status=MintStatus.PENDING.value,
    )
    db.add(mint)
    db.commit()
    db.refresh(mint)
    return mint


def get_mint_request(db: Session, mint_id: uuid.UUID) -> MintRequest | None:
    return db.execute(select(MintRequest).where(MintRequest.id == mint_id)).scalar_one_or_none()


def update_mint_request(
    db: Session,
    *,
    mint_id: uuid.UUID,
    to_status: MintStatus | None = None,
    expected_from: MintStatus | None = None,
    **fields: Any,
) -> MintRequest:
    unknown = set(fields) - _UPDATABLE
    if unknown:
        raise ValueError(f"update_mint_request: unknown fields {sorted(unknown)}")

    mint = get_mint_request(db, mint_id)
    if not mint:
        raise MintRequestNotFoundError(f"Mint request not found: {mint_id}")

    current = MintStatus(mint.status)
    if expected_from is not None and current != expected_from:
        raise MintStatusConflictError(f"Expected {expected_from.value}, found {current.value}")

    if to_status is not None and to_status != current:
        assert_valid_transition(current, to_status)
        mint.status = to_status.value

    for key, value in fields.items():
        setattr(mint, key, value)

    db.commit()
    db.refresh(mint)
    return mint
