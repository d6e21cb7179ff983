from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session
from web3 import Web3

from api.schemas.mint import MintCreateRequest, MintRequestRead, MintResponse, ToolCallRead
from app.dependencies import get_mint_deps
from app.services.mint_service import MintServiceDeps, mint_nft
from db.deps import get_db
from db.repos.mint_requests_repo import get_mint_request
from db.repos.tool_calls_repo import list_tool_calls_for_mint

router = APIRouter(tags=["mint"])


def checksum_wallet(wallet: str) -> str:
    if not Web3.is_address(wallet):
        raise HTTPException(status_code=422, detail="walletAddress is not a valid address")
    return Web3.to_checksum_address(wallet)


@router.post("/mint", response_model=MintResponse)
def create_mint_endpoint(
    payload: MintCreateRequest,
    db: Session = Depends(get_db),
    deps: MintServiceDeps = Depends(get_mint_deps),
):
    wallet = checksum_wallet(payload.walletAddress)

    result = mint_nft(
        db,
        wallet_address=wallet,
        theme=payload.theme,
        rarity=payload.rarity,
        deps=deps,
    )
    if result.success:
        return result

    return JSONResponse(status_code=400, content=result.model_dump(mode="json"))


@router.get("/mints/{mint_id}", response_model=MintRequestRead)
def get_mint_endpoint(mint_id: UUID, db: Session = Depends(get_db)):
    mint = get_mint_request(db, mint_id)
    if not mint:
        raise HTTPException(status_code=404, detail="Mint request not found")
    return mint


@router.get("/mints/{mint_id}/tool-calls", response_model=list[ToolCallRead])
def list_mint_tool_calls(mint_id: UUID, db: Session = Depends(get_db)):
    if get_mint_request(db, mint_id) is None:
        raise HTTPException(status_code=404, detail="Mint request not found")
    return list_tool_calls_for_mint(db, mint_request_id=mint_id)
