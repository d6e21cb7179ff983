from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from web3 import Web3

from api.schemas.credits import CreditsResponse, MintPriceResponse
from api.v1.mint import checksum_wallet
from app.dependencies import get_chain_client, get_credit_reconciler
from chain.client import ChainClient
from credits.reconciliation import CreditReconciler, CreditState

router = APIRouter(tags=["credits"])


def _credits_response(address: str, state: CreditState, chain: ChainClient) -> CreditsResponse:
    return CreditsResponse(
        userAddress=address,
        canMint=state.can_mint,
        paidTokenCount=str(state.credits),
        mintPrice=str(chain.get_mint_price()),
        source=state.source.value,
        contractAddress=chain.payment_address,
        chainId=chain.chain_id,
    )


@router.get("/credits", response_model=CreditsResponse)
def get_credits(
    address: str = Query(..., min_length=3, max_length=64),
    reconciler: CreditReconciler = Depends(get_credit_reconciler),
    chain: ChainClient = Depends(get_chain_client),
) -> CreditsResponse:
    wallet = checksum_wallet(address)
    return _credits_response(wallet, reconciler.reconcile(wallet), chain)


@router.post("/credits/refresh", response_model=CreditsResponse)
def refresh_credits(
    address: str = Query(..., min_length=3, max_length=64),
    reconciler: CreditReconciler = Depends(get_credit_reconciler),
    chain: ChainClient = Depends(get_chain_client),
) -> CreditsResponse:
    """
    Re-read after a payment transaction, retrying with backoff until the
    new credits become visible.
    """
    wallet = checksum_wallet(address)
    return _credits_response(wallet, reconciler.reconcile_after_change(wallet), chain)


@router.get("/mint-price", response_model=MintPriceResponse)
def get_mint_price(chain: ChainClient = Depends(get_chain_client)) -> MintPriceResponse:
    price = chain.get_mint_price()
    return MintPriceResponse(
        mintPrice=str(price),
        mintPriceEth=str(Web3.from_wei(price, "ether")),
        contractAddress=chain.payment_address,
        chainId=chain.chain_id,
    )
