from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

from chain.client import ChainClient
from chain.rpc import Web3RPCError

logger = logging.getLogger(__name__)


class UserArgs(BaseModel):
    """The user whose minting credits are affected."""

    userAddress: str = Field(..., description="The wallet address of the user")


def check_payment(args: UserArgs, *, chain: ChainClient) -> dict[str, Any]:
    try:
        credits = chain.read_credits(args.userAddress)
        price = chain.get_mint_price()
    except Web3RPCError as e:
        logger.warning("check-payment failed user=%s: %s", args.userAddress, e)
        return {
            "success": False,
            "error": str(e),
            "message": "Failed to check payment status",
        }

    count = credits["paidTokenCount"]
    return {
        "success": True,
        "userAddress": args.userAddress,
        "canMint": credits["canMint"],
        "paidTokenCount": str(count),
        "mintPrice": str(price),
        "message": (
            f"User has {count} paid tokens available for minting"
            if credits["canMint"]
            else f"User has no paid tokens available. They need to pay {price} wei to mint"
        ),
    }


def use_minting_credit(args: UserArgs, *, chain: ChainClient) -> dict[str, Any]:
    try:
        tx_hash = chain.use_minting_credit(args.userAddress)
    except Web3RPCError as e:
        text = str(e)
        logger.warning("use-minting-credit failed user=%s: %s", args.userAddress, text)
        if "User has no paid tokens available" in text:
            return {
                "success": False,
                "error": "USER_NO_CREDITS",
                "message": "User has no minting credits available. They need to pay first.",
            }
        if "Only AI wallet can use minting credits" in text:
            return {
                "success": False,
                "error": "UNAUTHORIZED",
                "message": "Only the AI wallet can use minting credits",
            }
        return {"success": False, "error": text, "message": "Failed to use minting credit"}

    return {
        "success": True,
        "transactionHash": tx_hash,
        "userAddress": args.userAddress,
        "message": f"Used one minting credit for {args.userAddress}. Transaction: {tx_hash}",
    }
