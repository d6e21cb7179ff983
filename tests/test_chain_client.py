from __future__ import annotations

from unittest.mock import patch

import pytest

from app.config import Settings, get_settings
from chain.chains import UnsupportedChainError, chain_name, get_fallback_rpc_url, get_rpc_url, parse_rpc_urls
from chain.client import ChainClient, ChainConfigError, MintTransactionError

PAYMENT = "0x1111111111111111111111111111111111111111"
WALLET = "0x000000000000000000000000000000000000dEaD"
TX = "0x" + "12" * 32
# well-known throwaway key (hardhat account #0)
PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"


@pytest.fixture
def rpc_env(monkeypatch):
    monkeypatch.setenv("RPC_URLS", '{"11011": "https://rpc.example/"}')
    get_settings.cache_clear()


@pytest.fixture
def chain(rpc_env):
    return ChainClient(Settings(private_key=PRIVATE_KEY, forge_payment_address=PAYMENT))


def test_rpc_url_lookup(rpc_env, monkeypatch):
    assert get_rpc_url(11011) == "https://rpc.example"
    assert get_fallback_rpc_url(11011) == "https://rpc.example"
    with pytest.raises(UnsupportedChainError):
        get_rpc_url(1)

    monkeypatch.setenv("FALLBACK_RPC_URL", "https://fallback.example/")
    get_settings.cache_clear()
    assert get_fallback_rpc_url(11011) == "https://fallback.example"


def test_known_chain_falls_back_to_public_rpc(monkeypatch):
    monkeypatch.setenv("RPC_URLS", "")
    get_settings.cache_clear()
    assert get_rpc_url(11011) == "https://sepolia-rpc.shape.network"
    assert chain_name(11011) == "shape-sepolia"
    assert chain_name(5) == "chain-5"
    with pytest.raises(UnsupportedChainError):
        get_rpc_url(31337)


def test_parse_rpc_urls_rejects_bad_input():
    with pytest.raises(ValueError):
        parse_rpc_urls("not json")
    with pytest.raises(ValueError):
        parse_rpc_urls('{"abc": "https://x"}')
    with pytest.raises(ValueError):
        parse_rpc_urls('["https://x"]')
    assert parse_rpc_urls('{"360": "https://x/"}') == {360: "https://x"}


def test_missing_payment_address_is_a_config_error(rpc_env):
    chain = ChainClient(Settings(forge_payment_address=""))

    with pytest.raises(ChainConfigError):
        _ = chain.payment_address


def test_read_credits_pins_block_and_url(chain):
    with patch("chain.client.rpc.user_can_mint", return_value=True) as can_mint, patch(
        "chain.client.rpc.paid_token_count", return_value=2
    ) as count:
        data = chain.read_credits(WALLET, rpc_url="https://other.example", block_identifier=99)

    assert data == {"canMint": True, "paidTokenCount": 2}
    can_mint.assert_called_once_with("https://other.example", PAYMENT, WALLET, 99)
    count.assert_called_once_with("https://other.example", PAYMENT, WALLET, 99)


def test_mint_nft_waits_for_receipt(chain):
    with patch("chain.client.rpc.safe_mint", return_value=TX) as safe_mint, patch(
        "chain.client.rpc.wait_for_receipt",
        return_value={"blockNumber": 321, "status": 1, "gasUsed": 21000},
    ):
        result = chain.mint_nft(WALLET.lower(), "ipfs://bafymeta")

    assert result == {"success": True, "transactionHash": TX, "blockNumber": "321", "recipient": WALLET}
    args = safe_mint.call_args.args
    assert args[0] == "https://rpc.example"
    assert args[4:] == (WALLET, "ipfs://bafymeta")


def test_reverted_mint_raises(chain):
    with patch("chain.client.rpc.safe_mint", return_value=TX), patch(
        "chain.client.rpc.wait_for_receipt",
        return_value={"blockNumber": 321, "status": 0, "gasUsed": 21000},
    ):
        with pytest.raises(MintTransactionError):
            chain.mint_nft(WALLET, "ipfs://bafymeta")


def test_signer_address_requires_key(rpc_env):
    with pytest.raises(ChainConfigError):
        ChainClient(Settings(private_key="")).signer_address()


def test_signer_address_from_key(chain):
    assert chain.signer_address() == "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"


def test_native_balance_formats_wei_and_ether(chain):
    with patch("chain.client.rpc.get_native_balance", return_value=1500000000000000000):
        result = chain.native_balance(WALLET)

    assert result == {"wallet": WALLET, "balanceWei": "1500000000000000000", "balanceEth": "1.5"}
