from __future__ import annotations

import random

import pytest

from llm.prompts import RARITY_ENHANCEMENTS, THEMES, build_mint_prompt, select_theme, wallet_hash

WALLET = "0x000000000000000000000000000000000000dEaD"


def test_wallet_hash_is_a_signed_32_bit_rolling_hash():
    assert wallet_hash("") == 0
    assert wallet_hash("a") == 97
    assert wallet_hash("ab") == 97 * 31 + 98
    h = wallet_hash(WALLET)
    assert -(2**31) <= h < 2**31


def test_select_theme_prefers_requested_theme():
    assert select_theme(WALLET, "space") == "space"


def test_select_theme_derives_from_wallet_when_missing_or_unknown():
    derived = select_theme(WALLET)

    assert derived in THEMES
    assert select_theme(WALLET, None) == derived
    assert select_theme(WALLET, "not-a-theme") == derived


def test_prompt_is_deterministic_with_seeded_rng():
    first = build_mint_prompt(WALLET, "cyberpunk", rng=random.Random(7))
    second = build_mint_prompt(WALLET, "cyberpunk", rng=random.Random(7))

    assert first == second
    assert "Cyberpunk City" in first
    assert WALLET in first
    assert WALLET[-6:] in first


@pytest.mark.parametrize("rarity", ["rare", "epic", "legendary"])
def test_rarity_appends_enhancement(rarity):
    prompt = build_mint_prompt(WALLET, "nature", rarity, rng=random.Random(1))

    assert prompt.endswith(RARITY_ENHANCEMENTS[rarity])
    assert rarity.upper() in prompt


def test_common_rarity_has_no_enhancement():
    prompt = build_mint_prompt(WALLET, "nature", "common", rng=random.Random(1))

    assert "ENHANCEMENT" not in prompt
