from __future__ import annotations

from functools import lru_cache
from typing import Any

from web3 import Web3
from web3.exceptions import ContractLogicError

from chain.abis import ERC721_ABI, FORGE_PAYMENT_ABI


class Web3RPCError(RuntimeError):
    pass


@lru_cache
def _get_web3(rpc_url: str) -> Web3:
    """
    Lazily create and cache a Web3 instance per RPC URL.
    """
    w3 = Web3(Web3.HTTPProvider(rpc_url))

    if not w3.is_connected():
        raise Web3RPCError(f"Unable to connect to RPC at {rpc_url}")

    return w3


def _payment_contract(rpc_url: str, payment_address: str):
    w3 = _get_web3(rpc_url)
    return w3.eth.contract(address=Web3.to_checksum_address(payment_address), abi=FORGE_PAYMENT_ABI)


def _nft_contract(rpc_url: str, nft_address: str):
    w3 = _get_web3(rpc_url)
    return w3.eth.contract(address=Web3.to_checksum_address(nft_address), abi=ERC721_ABI)


# ---------------------------
# Native chain helpers
# ---------------------------

def get_native_balance(rpc_url: str, address: str) -> int:
    """
    Return native token balance in wei.
    """
    w3 = _get_web3(rpc_url)
    try:
        return w3.eth.get_balance(Web3.to_checksum_address(address))
    except Exception as e:
        raise Web3RPCError(f"get_native_balance failed: {e}") from e


def latest_block_number(rpc_url: str) -> int:
    w3 = _get_web3(rpc_url)
    try:
        return int(w3.eth.block_number)
    except Exception as e:
        raise Web3RPCError(f"latest_block_number failed: {e}") from e


# ---------------------------
# Payment collaborator (reads)
# ---------------------------

def mint_price(rpc_url: str, payment_address: str, block_identifier: Any = "latest") -> int:
    try:
        contract = _payment_contract(rpc_url, payment_address)
        return contract.functions.mintPrice().call(block_identifier=block_identifier)
    except ContractLogicError as e:
        raise Web3RPCError(f"mintPrice reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"mintPrice failed: {e}") from e


def user_can_mint(rpc_url: str, payment_address: str, user: str, block_identifier: Any = "latest") -> bool:
    try:
        contract = _payment_contract(rpc_url, payment_address)
        return bool(
            contract.functions.userCanMint(Web3.to_checksum_address(user)).call(
                block_identifier=block_identifier
            )
        )
    except ContractLogicError as e:
        raise Web3RPCError(f"userCanMint reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"userCanMint failed: {e}") from e


def paid_token_count(rpc_url: str, payment_address: str, user: str, block_identifier: Any = "latest") -> int:
    try:
        contract = _payment_contract(rpc_url, payment_address)
        return int(
            contract.functions.getUserPaidTokenCount(Web3.to_checksum_address(user)).call(
                block_identifier=block_identifier
            )
        )
    except ContractLogicError as e:
        raise Web3RPCError(f"getUserPaidTokenCount reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"getUserPaidTokenCount failed: {e}") from e


# ---------------------------
# NFT collaborator (reads)
# ---------------------------

def erc721_balance(rpc_url: str, nft_address: str, owner: str) -> int:
    try:
        contract = _nft_contract(rpc_url, nft_address)
        return int(contract.functions.balanceOf(Web3.to_checksum_address(owner)).call())
    except ContractLogicError as e:
        raise Web3RPCError(f"balanceOf reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"balanceOf failed: {e}") from e


# ---------------------------
# Privileged writes
# ---------------------------

def signer_address(private_key: str) -> str:
    return Web3().eth.account.from_key(private_key).address


def send_contract_tx(rpc_url: str, chain_id: int, private_key: str, fn) -> str:
    """
    Sign and broadcast a contract function call with the privileged signer.

    Returns the 0x-prefixed transaction hash.
    """
    w3 = _get_web3(rpc_url)
    try:
        account = w3.eth.account.from_key(private_key)
        tx = fn.build_transaction(
            {
                "from": account.address,
                "nonce": w3.eth.get_transaction_count(account.address, "pending"),
                "chainId": chain_id,
            }
        )
        signed = account.sign_transaction(tx)
        tx_hash = w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)
    except ContractLogicError as e:
        raise Web3RPCError(f"transaction reverted: {e}") from e
    except Exception as e:
        raise Web3RPCError(f"transaction failed: {e}") from e


def safe_mint(rpc_url: str, chain_id: int, private_key: str, nft_address: str, to: str, uri: str) -> str:
    contract = _nft_contract(rpc_url, nft_address)
    fn = contract.functions.safeMint(Web3.to_checksum_address(to), uri)
    return send_contract_tx(rpc_url, chain_id, private_key, fn)


def use_minting_credit(rpc_url: str, chain_id: int, private_key: str, payment_address: str, user: str) -> str:
    contract = _payment_contract(rpc_url, payment_address)
    fn = contract.functions.useMintingCredit(Web3.to_checksum_address(user))
    return send_contract_tx(rpc_url, chain_id, private_key, fn)


def wait_for_receipt(rpc_url: str, tx_hash: str, timeout_s: int) -> dict[str, Any]:
    w3 = _get_web3(rpc_url)
    try:
        receipt = w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout_s)
    except Exception as e:
        raise Web3RPCError(f"wait_for_transaction_receipt failed: {e}") from e
    return {
        "blockNumber": int(receipt["blockNumber"]),
        "status": int(receipt["status"]),
        "gasUsed": int(receipt.get("gasUsed", 0)),
    }
