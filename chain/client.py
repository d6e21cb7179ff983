from __future__ import annotations

import logging
from typing import Any

from web3 import Web3

from app.config import Settings, get_settings
from chain import rpc
from chain.chains import get_fallback_rpc_url, get_rpc_url

logger = logging.getLogger(__name__)


class ChainConfigError(RuntimeError):
    pass


class MintTransactionError(rpc.Web3RPCError):
    pass


class ChainClient:
    """
    High-level Web3 client for the Payment (ForgePayment) and NFT collaborators.

    - Reads go through chain.rpc against the configured RPC URL
    - Writes are signed by the privileged signer (PRIVATE_KEY)
    - Returns JSON-serializable dict outputs (wei and block numbers as strings)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        self.chain_id = self.settings.chain_id

    # ---------------------------
    # Config helpers
    # ---------------------------

    @property
    def rpc_url(self) -> str:
        return get_rpc_url(self.chain_id)

    @property
    def fallback_rpc_url(self) -> str:
        return get_fallback_rpc_url(self.chain_id)

    @property
    def payment_address(self) -> str:
        address = self.settings.forge_payment_address
        if not address:
            raise ChainConfigError("FORGE_PAYMENT_ADDRESS is not set")
        return Web3.to_checksum_address(address)

    @property
    def nft_address(self) -> str:
        address = self.settings.nft_contract_address
        if not address:
            raise ChainConfigError("NFT_CONTRACT_ADDRESS is not set")
        return Web3.to_checksum_address(address)

    def _private_key(self) -> str:
        if not self.settings.private_key:
            raise ChainConfigError("PRIVATE_KEY is not set")
        return self.settings.private_key

    def signer_address(self) -> str:
        return rpc.signer_address(self._private_key())

    # ---------------------------
    # Payment reads
    # ---------------------------

    def get_mint_price(self) -> int:
        return rpc.mint_price(self.rpc_url, self.payment_address)

    def read_credits(
        self,
        user: str,
        *,
        rpc_url: str | None = None,
        block_identifier: Any = "latest",
    ) -> dict[str, Any]:
        url = rpc_url or self.rpc_url
        can_mint = rpc.user_can_mint(url, self.payment_address, user, block_identifier)
        count = rpc.paid_token_count(url, self.payment_address, user, block_identifier)
        return {"canMint": can_mint, "paidTokenCount": count}

    def latest_block_number(self, *, rpc_url: str | None = None) -> int:
        return rpc.latest_block_number(rpc_url or self.rpc_url)

    # ---------------------------
    # Balances
    # ---------------------------

    def native_balance(self, wallet: str) -> dict[str, Any]:
        wallet_cs = Web3.to_checksum_address(wallet)
        wei = rpc.get_native_balance(self.rpc_url, wallet_cs)
        return {
            "wallet": wallet_cs,
            "balanceWei": str(wei),
            "balanceEth": str(Web3.from_wei(wei, "ether")),
        }

    def nft_balance(self, wallet: str) -> dict[str, Any]:
        wallet_cs = Web3.to_checksum_address(wallet)
        balance = rpc.erc721_balance(self.rpc_url, self.nft_address, wallet_cs)
        return {
            "wallet": wallet_cs,
            "contractAddress": self.nft_address,
            "balance": str(balance),
        }

    # ---------------------------
    # Privileged writes
    # ---------------------------

    def mint_nft(self, to: str, metadata_uri: str) -> dict[str, Any]:
        """
        safeMint(to, metadataURI) and wait for the receipt.
        """
        to_cs = Web3.to_checksum_address(to)
        logger.info("Minting NFT to=%s uri=%s", to_cs, metadata_uri)

        tx_hash = rpc.safe_mint(
            self.rpc_url,
            self.chain_id,
            self._private_key(),
            self.nft_address,
            to_cs,
            metadata_uri,
        )
        logger.info("Mint tx sent hash=%s, waiting for receipt", tx_hash)

        receipt = rpc.wait_for_receipt(self.rpc_url, tx_hash, self.settings.receipt_timeout_s)
        if receipt["status"] != 1:
            raise MintTransactionError(f"Mint transaction {tx_hash} reverted in block {receipt['blockNumber']}")

        logger.info("NFT minted hash=%s block=%s", tx_hash, receipt["blockNumber"])
        return {
            "success": True,
            "transactionHash": tx_hash,
            "blockNumber": str(receipt["blockNumber"]),
            "recipient": to_cs,
        }

    def use_minting_credit(self, user: str) -> str:
        user_cs = Web3.to_checksum_address(user)
        tx_hash = rpc.use_minting_credit(
            self.rpc_url,
            self.chain_id,
            self._private_key(),
            self.payment_address,
            user_cs,
        )
        logger.info("Minting credit used user=%s hash=%s", user_cs, tx_hash)
        return tx_hash
