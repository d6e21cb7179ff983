from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from chain.client import ChainClient


class WalletArgs(BaseModel):
    """A wallet to inspect."""

    wallet: str = Field(..., description="The wallet address")


class NoArgs(BaseModel):
    """No arguments."""


def get_balance(args: WalletArgs, *, chain: ChainClient) -> dict[str, Any]:
    return chain.native_balance(args.wallet)


def get_nft_balance(args: WalletArgs, *, chain: ChainClient) -> dict[str, Any]:
    return chain.nft_balance(args.wallet)


def get_wallet_address(args: NoArgs, *, chain: ChainClient) -> dict[str, Any]:
    return {"address": chain.signer_address()}
