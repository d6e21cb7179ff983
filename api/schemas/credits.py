from __future__ import annotations

from pydantic import BaseModel


class CreditsResponse(BaseModel):
    userAddress: str
    canMint: bool
    # decimal strings; wei amounts overflow JSON doubles
    paidTokenCount: str
    mintPrice: str
    source: str
    contractAddress: str
    chainId: int


class MintPriceResponse(BaseModel):
    mintPrice: str
    mintPriceEth: str
    contractAddress: str
    chainId: int
