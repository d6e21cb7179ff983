from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Dict, Optional

from app.config import get_settings


class UnsupportedChainError(ValueError):
    pass


@dataclass(frozen=True)
class ChainInfo:
    chain_id: int
    name: str
    public_rpc_url: Optional[str] = None


KNOWN_CHAINS: Dict[int, ChainInfo] = {
    11011: ChainInfo(11011, "shape-sepolia", "https://sepolia-rpc.shape.network"),
    360: ChainInfo(360, "shape", "https://mainnet.shape.network"),
    31337: ChainInfo(31337, "hardhat"),
}


def parse_rpc_urls(raw: str) -> Dict[int, str]:
    """
    RPC_URLS is a JSON object keyed by chain id:
      RPC_URLS='{"11011":"https://shape-sepolia.g.alchemy.com/v2/<key>"}'
    """
    if not raw:
        return {}

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ValueError("RPC_URLS must be valid JSON") from e
    if not isinstance(data, dict):
        raise ValueError("RPC_URLS must be a JSON object")

    out: Dict[int, str] = {}
    for key, url in data.items():
        try:
            chain_id = int(key)
        except ValueError:
            raise ValueError(f"Invalid chain_id key in RPC_URLS: {key}")
        if not isinstance(url, str) or not url:
            raise ValueError(f"Invalid RPC URL for chain {chain_id}")
        out[chain_id] = url.rstrip("/")
    return out


def get_rpc_url(chain_id: int) -> str:
    """
    Configured RPC first, then the network's public endpoint.
    """
    configured = parse_rpc_urls(get_settings().RPC_URLS).get(chain_id)
    if configured:
        return configured

    info = KNOWN_CHAINS.get(chain_id)
    if info is None or not info.public_rpc_url:
        raise UnsupportedChainError(f"Unsupported chain_id: {chain_id}")
    return info.public_rpc_url


def get_fallback_rpc_url(chain_id: int) -> str:
    fallback = get_settings().fallback_rpc_url
    if fallback:
        return fallback.rstrip("/")
    return get_rpc_url(chain_id)


def chain_name(chain_id: int) -> str:
    info = KNOWN_CHAINS.get(chain_id)
    return info.name if info else f"chain-{chain_id}"


def list_supported_chains() -> list[int]:
    configured = parse_rpc_urls(get_settings().RPC_URLS)
    public = {cid for cid, info in KNOWN_CHAINS.items() if info.public_rpc_url}
    return sorted(set(configured) | public)
