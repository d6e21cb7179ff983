from __future__ import annotations

import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from app.config import Settings
from ipfs.pinata import PIN_FILE_URL, PIN_JSON_URL, PinataClient, PinataError


def _response(status=200, body=None, content=b""):
    resp = MagicMock()
    resp.ok = status < 400
    resp.status_code = status
    resp.text = json.dumps(body or {})
    resp.json.return_value = body
    resp.content = content
    return resp


def test_jwt_auth_is_preferred():
    client = PinataClient(Settings(pinata_jwt="jwt", pinata_api_key="k", pinata_api_secret="s"))

    assert client._headers() == {"Authorization": "Bearer jwt"}


def test_key_pair_auth():
    client = PinataClient(Settings(pinata_jwt="", pinata_api_key="k", pinata_api_secret="s"))

    assert client._headers() == {"pinata_api_key": "k", "pinata_secret_api_key": "s"}


def test_missing_credentials_raise():
    with pytest.raises(PinataError):
        PinataClient(Settings(pinata_jwt="", pinata_api_key="", pinata_api_secret=""))._headers()


def test_pin_image_url_downloads_then_pins():
    client = PinataClient(Settings(pinata_jwt="jwt"))

    with patch("ipfs.pinata.requests.get", return_value=_response(content=b"png-bytes")), patch(
        "ipfs.pinata.requests.post", return_value=_response(body={"IpfsHash": "bafyimage"})
    ) as post:
        cid = client.pin_image_url("https://images.example/cat.png", file_name="cat.png")

    assert cid == "bafyimage"
    assert post.call_args.args[0] == PIN_FILE_URL
    assert post.call_args.kwargs["files"]["file"] == ("cat.png", b"png-bytes")


def test_pin_json_returns_cid():
    client = PinataClient(Settings(pinata_jwt="jwt"))

    with patch("ipfs.pinata.requests.post", return_value=_response(body={"IpfsHash": "bafymeta"})) as post:
        cid = client.pin_json({"name": "x"}, "x-metadata")

    assert cid == "bafymeta"
    assert post.call_args.args[0] == PIN_JSON_URL
    assert post.call_args.kwargs["json"]["pinataContent"] == {"name": "x"}


def test_http_failures_become_pinata_errors():
    client = PinataClient(Settings(pinata_jwt="jwt"))

    with patch("ipfs.pinata.requests.post", return_value=_response(status=401, body={"error": "nope"})):
        with pytest.raises(PinataError):
            client.pin_json({}, "x")
    with patch("ipfs.pinata.requests.get", side_effect=requests.Timeout("slow")):
        with pytest.raises(PinataError):
            client.pin_image_url("https://images.example/cat.png")


def test_gateway_url():
    client = PinataClient(Settings(pinata_gateway_url="https://gw.example/ipfs/"))

    assert client.gateway_url("bafy") == "https://gw.example/ipfs/bafy"
