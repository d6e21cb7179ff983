from __future__ import annotations

import logging
from typing import Protocol

import requests
from pydantic import BaseModel, ValidationError

from chain.chains import UnsupportedChainError
from chain.client import ChainClient, ChainConfigError
from chain.rpc import Web3RPCError

logger = logging.getLogger(__name__)


class CreditReading(BaseModel):
    can_mint: bool
    credits: int


class CreditReader(Protocol):
    def read(self, address: str) -> CreditReading | None:
        """Return the current reading, or None when this read path is unavailable."""
        ...


class ChainCreditReader:
    """
    Contract reads (userCanMint, getUserPaidTokenCount) over web3.

    With pin_latest_block the reads are pinned to the newest block number
    reported by the node, which forces a fresh view on caching RPC providers.
    """

    def __init__(self, chain: ChainClient, *, rpc_url: str | None = None, pin_latest_block: bool = False) -> None:
        self.chain = chain
        self.rpc_url = rpc_url
        self.pin_latest_block = pin_latest_block

    def read(self, address: str) -> CreditReading | None:
        try:
            url = self.rpc_url or self.chain.rpc_url
            block = self.chain.latest_block_number(rpc_url=url) if self.pin_latest_block else "latest"
            data = self.chain.read_credits(address, rpc_url=url, block_identifier=block)
        except (Web3RPCError, ChainConfigError, UnsupportedChainError) as e:
            logger.warning("Chain credit read unavailable address=%s: %s", address, e)
            return None
        return CreditReading(can_mint=data["canMint"], credits=int(data["paidTokenCount"]))


class ProxyCreditReader:
    """
    Server-side proxy read path: GET <base_url>?address=<addr> returning
    {"canMint": bool, "paidTokenCount": "<int>"}.
    """

    def __init__(self, base_url: str, *, timeout_s: int = 10) -> None:
        self.base_url = base_url
        self.timeout_s = timeout_s

    def read(self, address: str) -> CreditReading | None:
        try:
            resp = requests.get(
                self.base_url,
                params={"address": address},
                headers={"Cache-Control": "no-cache"},
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            logger.warning("Proxy credit read failed address=%s: %s", address, exc)
            return None

        if not resp.ok:
            logger.warning("Proxy credit read HTTP %s address=%s", resp.status_code, address)
            return None

        try:
            body = resp.json()
            return CreditReading(can_mint=body["canMint"], credits=int(body["paidTokenCount"]))
        except (ValueError, KeyError, TypeError, ValidationError) as exc:
            logger.warning("Proxy credit read returned malformed body address=%s: %s", address, exc)
            return None
