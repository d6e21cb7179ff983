from __future__ import annotations

import random
from typing import Any

ASSISTANT_INSTRUCTIONS = """You are a proactive blockchain assistant that takes immediate action whenever possible.
You control a privileged wallet on a test network. You turn a prompt into an image and mint it as an NFT.

Tools:
- generate-image: generate an image from a prompt; returns an image URL.
- mint-and-upload: pin the image and its metadata to IPFS and mint EXACTLY ONE NFT to a wallet.
- use-minting-credit: consume one paid minting credit of the user after a successful mint.
- check-payment: check whether a wallet has paid minting credits.
- get-balance: native balance of a wallet.
- get-nft-balance: NFT balance of a wallet on the collection contract.
- get-wallet-address: your own wallet address.

WORKFLOW - EXECUTE EXACTLY ONCE PER REQUEST:
1. Call generate-image ONCE with a clear, descriptive prompt.
2. Call mint-and-upload ONCE, passing the image URL from step 1 as imageUrl.
3. After a successful mint, call use-minting-credit ONCE for the recipient.
4. Reply with the details below and STOP.

RULES:
- NEVER call mint-and-upload more than once. ONE REQUEST = ONE IMAGE = ONE NFT.
- If a tool returns MINTING_ALREADY_COMPLETED, the NFT was already minted: do not retry, report the first result.
- If mint-and-upload fails, reply with "MINTING FAILED" and the reason. Do not retry.
- Never truncate URLs or hashes.

Final reply format:
**NFT Transaction Hash:** [0x...]
**Block Number:** [number]
**Metadata IPFS Hash:** [cid]
**Image URL:** [FULL_DALLE_URL](https://complete-url)
"""

THEMES: dict[str, dict[str, Any]] = {
    "shape": {
        "name": "Shape Network",
        "style": "geometric-crystalline",
        "colors": ["deep teals", "electric blues", "iridescent whites"],
        "elements": ["3D geometric forms", "crystalline surfaces", "network patterns", "data streams"],
    },
    "abstract": {
        "name": "Abstract Digital",
        "style": "fluid-dynamic",
        "colors": ["neon greens", "cyber oranges", "digital purples"],
        "elements": ["flowing data", "particle systems", "digital waves", "code fragments"],
    },
    "cyberpunk": {
        "name": "Cyberpunk City",
        "style": "neon-urban",
        "colors": ["hot pinks", "electric blues", "acid greens"],
        "elements": ["neon grids", "holographic displays", "urban landscapes", "digital rain"],
    },
    "nature": {
        "name": "Digital Nature",
        "style": "organic-tech",
        "colors": ["forest greens", "earth browns", "sky blues"],
        "elements": ["fractal trees", "digital flowers", "tech-organic fusion", "glowing seeds"],
    },
    "space": {
        "name": "Cosmic Digital",
        "style": "stellar-abstract",
        "colors": ["deep space blues", "stellar whites", "nebula purples"],
        "elements": ["constellation patterns", "cosmic dust", "digital planets", "light streams"],
    },
}

ART_STYLES = [
    "photorealistic 3D rendering",
    "low-poly geometric",
    "vaporwave aesthetic",
    "glitch art inspired",
    "minimalist vector",
    "maximalist detailed",
    "holographic display",
    "wireframe overlay",
]

SHAPES = [
    "icosahedron",
    "dodecahedron",
    "torus knot",
    "möbius strip",
    "tesseract",
    "octahedron",
    "hexagonal prism",
    "klein bottle",
    "sphere lattice",
    "spiral helix",
]

RARITY_ENHANCEMENTS = {
    "common": "",
    "rare": "\n\nENHANCEMENT: Add subtle special effects and enhanced lighting for RARE quality.",
    "epic": "\n\nENHANCEMENT: Include additional atmospheric effects and refined details for EPIC rarity.",
    "legendary": (
        "\n\nENHANCEMENT: Add extra visual complexity with particle effects, multiple light sources, "
        "and intricate details for LEGENDARY rarity."
    ),
}


def wallet_hash(value: str) -> int:
    """
    32-bit signed rolling hash (h = 31*h + c) of a string.
    """
    h = 0
    for ch in value:
        h = (h * 31 + ord(ch)) & 0xFFFFFFFF
    return h - 0x100000000 if h & 0x80000000 else h


def select_theme(wallet_address: str, theme: str | None = None) -> str:
    if theme and theme in THEMES:
        return theme
    keys = list(THEMES)
    return keys[abs(wallet_hash(wallet_address)) % len(keys)]


def build_mint_prompt(
    wallet_address: str,
    theme: str,
    rarity: str = "common",
    rng: random.Random | None = None,
) -> str:
    rng = rng or random.Random()
    cfg = THEMES[theme]
    shape = rng.choice(SHAPES)
    style = rng.choice(ART_STYLES)

    h = wallet_hash(wallet_address)
    color = cfg["colors"][abs(h) % len(cfg["colors"])]
    element = cfg["elements"][abs(h >> 8) % len(cfg["elements"])]

    prompt = f"""Create a {style} digital illustration with {cfg["style"]} aesthetics.

VISUAL ELEMENTS:
- Central focus: {shape} representing {cfg["name"]}
- Primary color: {color} with accents from {", ".join(cfg["colors"])}
- Key element: {element}
- Style: {style} with dramatic lighting and depth

COMPOSITION:
- High contrast lighting with volumetric effects
- Significant negative space for visual balance
- Modern, premium aesthetic suitable for an NFT collection

TECHNICAL REQUIREMENTS:
- Square aspect ratio (1:1)
- Unique visual signature based on wallet: {wallet_address[-6:]}

WORKFLOW:
1. Call generate-image to create the image.
2. Call mint-and-upload EXACTLY ONCE with that image URL to mint ONE NFT to wallet address {wallet_address}.
   Use the name "AI NFT - {cfg["name"]}" and attributes Theme={cfg["name"]}, Rarity={rarity}.
3. Call use-minting-credit for {wallet_address} after the mint succeeds.
4. Do not call any minting tool more than once."""

    return prompt + RARITY_ENHANCEMENTS.get(rarity, "")
