from __future__ import annotations

import logging
import re
from typing import Any

from pydantic import BaseModel, Field
from web3 import Web3

from chain.client import ChainClient
from ipfs.pinata import PinataClient
from llm.assistants import ImageGenerator
from orchestrator.errors import ToolHandlerError

logger = logging.getLogger(__name__)


class GenerateImageArgs(BaseModel):
    """Generate an image from a prompt."""

    prompt: str = Field(..., min_length=1, description="The prompt to generate the image from")


class NftAttribute(BaseModel):
    trait_type: str
    value: str | int | float


class MintAndUploadArgs(BaseModel):
    """Pin an image and its metadata to IPFS, then mint exactly one NFT."""

    imageUrl: str = Field(..., description="Direct URL of the generated image")
    name: str = Field(..., min_length=1, description="Name of the NFT")
    description: str = Field(..., description="Description of the NFT")
    attributes: list[NftAttribute] = Field(default_factory=list, description="Optional trait attributes")
    externalUrl: str | None = Field(default=None, description="Optional URL to view the NFT on an external site")
    to: str = Field(..., description="The wallet address to mint the NFT to")


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-") or "nft"


def generate_image(args: GenerateImageArgs, *, images: ImageGenerator) -> dict[str, Any]:
    url = images.generate(args.prompt)
    return {"success": True, "imageUrl": url}


def mint_and_upload(args: MintAndUploadArgs, *, chain: ChainClient, pinata: PinataClient) -> dict[str, Any]:
    if not Web3.is_address(args.to):
        raise ToolHandlerError(f"Invalid recipient address: {args.to}")
    if not args.imageUrl.startswith(("http://", "https://")):
        raise ToolHandlerError("imageUrl must be an http(s) URL")

    slug = _slug(args.name)
    image_cid = pinata.pin_image_url(args.imageUrl, file_name=f"{slug}.png")

    metadata: dict[str, Any] = {
        "name": args.name,
        "description": args.description,
        "image": f"ipfs://{image_cid}",
        "attributes": [a.model_dump() for a in args.attributes],
    }
    if args.externalUrl:
        metadata["external_url"] = args.externalUrl

    metadata_cid = pinata.pin_json(metadata, f"{slug}-metadata")
    logger.info("IPFS upload complete image_cid=%s metadata_cid=%s", image_cid, metadata_cid)

    mint = chain.mint_nft(args.to, f"ipfs://{metadata_cid}")

    return {
        "success": True,
        "message": "Image and metadata uploaded to IPFS and NFT minted",
        "imageIpfsHash": image_cid,
        "imageIpfsUrl": f"ipfs://{image_cid}",
        "imageGatewayUrl": pinata.gateway_url(image_cid),
        "metadataIpfsHash": metadata_cid,
        "metadataIpfsUrl": f"ipfs://{metadata_cid}",
        "metadataGatewayUrl": pinata.gateway_url(metadata_cid),
        "transactionHash": mint["transactionHash"],
        "blockNumber": mint["blockNumber"],
        "recipient": mint["recipient"],
        "contractAddress": chain.nft_address,
        "originalImageUrl": args.imageUrl,
        "nftMintingComplete": True,
    }
