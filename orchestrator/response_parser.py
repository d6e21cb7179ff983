"""
Best-effort decoder for the assistant's final natural-language reply.

Structured tool results are the primary outcome path; this module is only
consulted when no mint result was captured during the run.
"""
from __future__ import annotations

import re

from pydantic import BaseModel

_SUCCESS_MARKERS = (
    "successfully minted your nft",
    "nft has been minted",
    "nft has been successfully minted",
    "nft minted successfully",
    "minting completed",
    "nft minting process has been successfully completed",
    "transaction hash:",
    "nft transaction hash",
    "minting transaction hash",
)

_FAILURE_MARKERS = (
    "minting failed",
    "user has already minted",
    "error uploading to ipfs",
)

_TX_HASH_PATTERNS = (
    re.compile(r"\*\*NFT Transaction Hash:\*\*\s*[\[`]?(0x[a-fA-F0-9]{64})"),
    re.compile(r"\*\*Transaction Hash\*\*[:\s]*[\[`]?(0x[a-fA-F0-9]{64})"),
    re.compile(
        r"(?:Transaction hash|Minting Transaction Hash|NFT Transaction Hash)[^:\n]*:\**\s*[\[`]?(0x[a-fA-F0-9]{64})",
        re.IGNORECASE,
    ),
    re.compile(r"(0x[a-fA-F0-9]{64})"),
)

_METADATA_HASH_PATTERNS = (
    re.compile(r"\*\*Metadata IPFS Hash:\*\*\s*[\[`]?([a-zA-Z0-9]{32,})"),
    re.compile(r"Metadata (?:IPFS )?(?:Hash|CID)[^:\n]*:\**\s*[\[`]?([a-zA-Z0-9]{32,})", re.IGNORECASE),
)

_BLOCK_PATTERNS = (
    re.compile(
        r"(?:Transaction confirmed in block|Minting Block Number|Block Number)[^:\n]*:\**\s*[\[`]?(\d+)",
        re.IGNORECASE,
    ),
)

_IMAGE_URL_PATTERNS = (
    re.compile(r"\[FULL_DALLE_URL\]\((https://[^)\s]+)\)"),
    re.compile(r"FULL_DALLE_URL:\s*(https://[^\s)\]]+)"),
    re.compile(r"(https://oaidalleapiprodscus\.blob\.core\.windows\.net[^\s)\]]+)"),
    re.compile(r"(https://[^\s)\]]*/ipfs/[A-Za-z0-9]+)"),
)


class ParsedReply(BaseModel):
    completed: bool = False
    failed: bool = False
    error: str | None = None
    transaction_hash: str | None = None
    block_number: str | None = None
    image_url: str | None = None
    metadata_hash: str | None = None


def _first_match(patterns, text: str) -> str | None:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match.group(1)
    return None


def parse_mint_reply(text: str | None) -> ParsedReply:
    if not text:
        return ParsedReply()

    lowered = text.lower()

    if any(marker in lowered for marker in _FAILURE_MARKERS):
        if "user has already minted" in lowered:
            error = "MINTING_LIMIT_REACHED"
        else:
            error = "MINTING_FAILED"
        return ParsedReply(failed=True, error=error)

    if not any(marker in lowered for marker in _SUCCESS_MARKERS):
        return ParsedReply()

    return ParsedReply(
        completed=True,
        transaction_hash=_first_match(_TX_HASH_PATTERNS, text),
        block_number=_first_match(_BLOCK_PATTERNS, text),
        image_url=_first_match(_IMAGE_URL_PATTERNS, text),
        metadata_hash=_first_match(_METADATA_HASH_PATTERNS, text),
    )
