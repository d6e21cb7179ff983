from __future__ import annotations

from functools import partial

from chain.client import ChainClient
from ipfs.pinata import PinataClient
from llm.assistants import ImageGenerator
from orchestrator.mint_guard import MINT_TOOL_NAME
from tools import credit_tools, nft_tools, wallet_tools
from tools.registry import ToolRegistry, ToolSpec


def build_tool_registry(
    *,
    chain: ChainClient,
    pinata: PinataClient,
    images: ImageGenerator,
) -> ToolRegistry:
    return ToolRegistry(
        [
            ToolSpec(
                name="generate-image",
                description="Generate an image based on a prompt and return its URL.",
                args_model=nft_tools.GenerateImageArgs,
                handler=partial(nft_tools.generate_image, images=images),
            ),
            ToolSpec(
                name=MINT_TOOL_NAME,
                description=(
                    "Upload an image (by URL) and its metadata to IPFS and mint EXACTLY ONE NFT. "
                    "Call this only ONCE per request."
                ),
                args_model=nft_tools.MintAndUploadArgs,
                handler=partial(nft_tools.mint_and_upload, chain=chain, pinata=pinata),
            ),
            ToolSpec(
                name="use-minting-credit",
                description=(
                    "Use one minting credit for a user. Call ONLY after the NFT has been "
                    "successfully minted to that user."
                ),
                args_model=credit_tools.UserArgs,
                handler=partial(credit_tools.use_minting_credit, chain=chain),
            ),
            ToolSpec(
                name="check-payment",
                description="Check whether a user has paid minting credits available.",
                args_model=credit_tools.UserArgs,
                handler=partial(credit_tools.check_payment, chain=chain),
            ),
            ToolSpec(
                name="get-balance",
                description="Get the native balance of a wallet.",
                args_model=wallet_tools.WalletArgs,
                handler=partial(wallet_tools.get_balance, chain=chain),
            ),
            ToolSpec(
                name="get-nft-balance",
                description="Get the number of NFTs a wallet holds on the collection contract.",
                args_model=wallet_tools.WalletArgs,
                handler=partial(wallet_tools.get_nft_balance, chain=chain),
            ),
            ToolSpec(
                name="get-wallet-address",
                description="Get your own wallet address.",
                args_model=wallet_tools.NoArgs,
                handler=partial(wallet_tools.get_wallet_address, chain=chain),
            ),
        ]
    )
