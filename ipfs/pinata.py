from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

import requests

from app.config import Settings, get_settings

logger = logging.getLogger(__name__)

PIN_FILE_URL = "https://api.pinata.cloud/pinning/pinFileToIPFS"
PIN_JSON_URL = "https://api.pinata.cloud/pinning/pinJSONToIPFS"


class PinataError(RuntimeError):
    pass


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class PinataClient:
    def __init__(self, settings: Settings | None = None, *, timeout_s: int = 60) -> None:
        self.settings = settings or get_settings()
        self.timeout_s = timeout_s

    def _headers(self) -> dict[str, str]:
        s = self.settings
        if s.pinata_jwt:
            return {"Authorization": f"Bearer {s.pinata_jwt}"}
        if s.pinata_api_key and s.pinata_api_secret:
            return {
                "pinata_api_key": s.pinata_api_key,
                "pinata_secret_api_key": s.pinata_api_secret,
            }
        raise PinataError("Pinata credentials not configured (PINATA_JWT or PINATA_API_KEY/PINATA_API_SECRET)")

    def gateway_url(self, cid: str) -> str:
        return f"{self.settings.pinata_gateway_url.rstrip('/')}/{cid}"

    def _ipfs_hash(self, resp: requests.Response, what: str) -> str:
        if not resp.ok:
            raise PinataError(f"Failed to pin {what}: HTTP {resp.status_code} {resp.text[:200]}")
        cid = (resp.json() or {}).get("IpfsHash")
        if not cid:
            raise PinataError(f"Failed to pin {what}: no IpfsHash in response")
        return cid

    def pin_file(self, content: bytes, file_name: str, keyvalues: dict[str, Any] | None = None) -> str:
        """
        Pin raw bytes; returns the CID.
        """
        metadata = {"name": file_name, "keyvalues": keyvalues or {"timestamp": _utcnow_iso()}}
        try:
            resp = requests.post(
                PIN_FILE_URL,
                headers=self._headers(),
                files={"file": (file_name, content)},
                data={
                    "pinataMetadata": json.dumps(metadata),
                    "pinataOptions": json.dumps({"cidVersion": 1}),
                },
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            raise PinataError(f"Failed to upload to Pinata: {exc}") from exc

        cid = self._ipfs_hash(resp, file_name)
        logger.info("Pinned file name=%s cid=%s", file_name, cid)
        return cid

    def pin_json(self, content: dict[str, Any], name: str, keyvalues: dict[str, Any] | None = None) -> str:
        payload = {
            "pinataContent": content,
            "pinataOptions": {"cidVersion": 1},
            "pinataMetadata": {
                "name": name,
                "keyvalues": keyvalues or {"type": "NFT-metadata", "timestamp": _utcnow_iso()},
            },
        }
        try:
            resp = requests.post(
                PIN_JSON_URL,
                headers={**self._headers(), "Content-Type": "application/json"},
                json=payload,
                timeout=self.timeout_s,
            )
        except requests.RequestException as exc:
            raise PinataError(f"Failed to upload JSON to Pinata: {exc}") from exc

        cid = self._ipfs_hash(resp, name)
        logger.info("Pinned json name=%s cid=%s", name, cid)
        return cid

    def pin_image_url(self, image_url: str, file_name: str = "image.png") -> str:
        """
        Download a remote image server-side and pin its bytes.
        """
        try:
            resp = requests.get(image_url, timeout=self.timeout_s)
        except requests.RequestException as exc:
            raise PinataError(f"Failed to fetch image: {exc}") from exc
        if not resp.ok:
            raise PinataError(f"Failed to fetch image: HTTP {resp.status_code}")

        return self.pin_file(
            resp.content,
            file_name,
            keyvalues={"originalUrl": image_url[:256], "type": "ai-image", "timestamp": _utcnow_iso()},
        )
